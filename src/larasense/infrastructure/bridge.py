"""Process bridge: run PHP fragments inside the bootstrapped Laravel application.

Each call is an independent ``php -r`` subprocess.  The fragment is wrapped
in a bootstrap template that silences PHP warnings, boots the console
kernel and frames the fragment's output between sentinel markers, so that
noise printed by the bootstrap can be discarded::

    <noise> START <output> [ERROR <message>] END <noise>

The bridge keeps no state between calls and may be used from several
threads at once.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import threading
from typing import IO, TYPE_CHECKING, Any, TypeVar

from larasense.config import DEFAULT_MAX_OUTPUT_MB, DEFAULT_TIMEOUT
from larasense.errors import ParseFault, ProcessFault, RuntimeFault

if TYPE_CHECKING:
    from pathlib import Path

    from larasense.infrastructure.environment import PhpEnvironment

logger = logging.getLogger(__name__)

OUTPUT_START = "___LARAVEL_LS_START___"
OUTPUT_END = "___LARAVEL_LS_END___"
ERROR_MARKER = "___LARAVEL_LS_ERROR___"

# Set in the child environment so the application can detect the bridge.
BRIDGE_ENV_FLAG = "LARAVEL_LS"

_CHUNK_SIZE = 64 * 1024

_BOOTSTRAP_TEMPLATE = r"""
error_reporting(0);
ini_set('display_errors', '0');

define('LARAVEL_START', microtime(true));

require_once '__ROOT__/vendor/autoload.php';

$app = require_once '__ROOT__/bootstrap/app.php';

$app->register(new class($app) extends \Illuminate\Support\ServiceProvider {
    public function boot() {
        config(['logging.channels.null' => ['driver' => 'monolog', 'handler' => \Monolog\Handler\NullHandler::class], 'logging.default' => 'null']);
    }
});

$kernel = $app->make(Illuminate\Contracts\Console\Kernel::class);
$kernel->bootstrap();

echo '__START__';
try {
    __CODE__
} catch (\Throwable $e) {
    echo '__ERROR__' . $e->getMessage();
}
echo '__END__';
"""

J = TypeVar("J")


def php_quote(value: str) -> str:
    """Escape *value* for use inside a PHP single-quoted string literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_bootstrap(project_root: str, code: str) -> str:
    """Wrap *code* in the Laravel bootstrap template."""
    script = (
        _BOOTSTRAP_TEMPLATE.replace("__ROOT__", php_quote(project_root))
        .replace("__START__", OUTPUT_START)
        .replace("__ERROR__", ERROR_MARKER)
        .replace("__END__", OUTPUT_END)
    )
    # The fragment goes in last so markers inside it are left untouched.
    return script.replace("__CODE__", code).strip()


def extract_output(raw: str) -> str:
    """Return the framed output of a bridge call.

    - no START or END marker: *raw* is returned unchanged (degraded mode,
      callers must tolerate malformed results);
    - ERROR marker between the markers: :class:`RuntimeFault` carrying the
      text after the marker;
    - otherwise: the text between the markers.
    """
    start = raw.find(OUTPUT_START)
    end = raw.find(OUTPUT_END)
    if start == -1 or end == -1:
        return raw

    content = raw[start + len(OUTPUT_START) : end]
    if ERROR_MARKER in content:
        message = content.split(ERROR_MARKER, 1)[1]
        raise RuntimeFault(f"Laravel error: {message}")
    return content


def decode_json(output: str, expected: type[J], source: str) -> J:
    """Parse *output* as JSON and check the top-level type.

    Raises :class:`ParseFault` when the text is not JSON or the decoded
    value is not an instance of *expected*.
    """
    try:
        data: Any = json.loads(output)
    except ValueError as exc:
        snippet = output.strip()[:80]
        raise ParseFault(f"{source}: invalid JSON ({exc}): {snippet!r}") from exc
    if not isinstance(data, expected):
        raise ParseFault(
            f"{source}: expected {expected.__name__}, got {type(data).__name__}"
        )
    return data


class ProcessBridge:
    """Runs PHP inside the Laravel application of *project_root*."""

    def __init__(
        self,
        php: PhpEnvironment,
        project_root: Path,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_output_bytes: int = int(DEFAULT_MAX_OUTPUT_MB * 1024 * 1024),
    ) -> None:
        self.php = php
        self.project_root = project_root
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes

    def run(self, code: str) -> str:
        """Execute *code* after bootstrapping Laravel and return its framed output."""
        script = build_bootstrap(str(self.project_root), code)
        raw = self._execute(self._php_args(script), label="PHP execution")
        return extract_output(raw)

    def run_command(self, command: str, *args: str) -> str:
        """Run ``php artisan <command> <args>`` and return raw stdout."""
        if self.php.kind == "sail":
            argv = [self.php.php_path, "artisan", command, *args]
        else:
            argv = [self.php.php_path, str(self.project_root / "artisan"), command, *args]
        return self._execute(argv, label="Artisan")

    def _php_args(self, script: str) -> list[str]:
        if self.php.kind == "sail":
            return [self.php.php_path, "php", "-r", script]
        return [self.php.php_path, "-r", script]

    def _execute(self, argv: list[str], *, label: str) -> str:
        env = {**os.environ, BRIDGE_ENV_FLAG: "1"}
        try:
            proc = subprocess.Popen(  # noqa: S603
                argv,
                cwd=str(self.project_root),
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise ProcessFault(f"{label} failed: executable not found: {argv[0]}") from exc
        except OSError as exc:
            raise ProcessFault(f"{label} failed: {exc}") from exc

        expired = threading.Event()

        def expire() -> None:
            expired.set()
            proc.kill()

        timer = threading.Timer(self.timeout, expire)
        timer.daemon = True
        stderr_chunks: list[bytes] = []
        drain = threading.Thread(
            target=lambda: stderr_chunks.append(proc.stderr.read()), daemon=True
        )
        timer.start()
        drain.start()
        try:
            raw, overflow = _read_capped(proc.stdout, self.max_output_bytes)
            if overflow:
                proc.kill()
            returncode = proc.wait()
            drain.join(timeout=self.timeout)
        finally:
            timer.cancel()
            proc.stdout.close()
            proc.stderr.close()

        if overflow:
            raise ProcessFault(f"{label} output exceeded {self.max_output_bytes} bytes")
        if expired.is_set():
            raise ProcessFault(f"{label} timed out after {self.timeout:g}s")

        stdout = raw.decode("utf-8", errors="replace")
        if returncode != 0:
            stderr = b"".join(stderr_chunks).decode("utf-8", errors="replace").strip()
            detail = stderr or stdout.strip() or f"exit status {returncode}"
            raise ProcessFault(f"{label} failed: {detail}")

        logger.debug("%s returned %d bytes", label, len(raw))
        return stdout


def _read_capped(stream: IO[bytes], limit: int) -> tuple[bytes, bool]:
    """Read *stream* to EOF, stopping as soon as more than *limit* bytes arrive."""
    chunks: list[bytes] = []
    size = 0
    while True:
        chunk = stream.read1(_CHUNK_SIZE)  # type: ignore[attr-defined]
        if not chunk:
            return b"".join(chunks), False
        chunks.append(chunk)
        size += len(chunk)
        if size > limit:
            return b"".join(chunks), True
