"""Environment variables parsed from ``.env`` with ``.env.example`` fallback."""

from __future__ import annotations

from typing import TYPE_CHECKING

from larasense.errors import FilesystemFault
from larasense.models import EnvVariable
from larasense.repositories.base import Repository

if TYPE_CHECKING:
    from pathlib import Path

ENV_FILE = ".env"
EXAMPLE_FILE = ".env.example"


def parse_env_value(raw: str) -> str:
    """Strip quotes, or an inline `` #`` comment when the value is unquoted."""
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    comment_at = value.find(" #")
    if comment_at != -1:
        value = value[:comment_at].strip()
    return value


def parse_env(content: str, file: str = ENV_FILE) -> list[EnvVariable]:
    """Parse ``KEY=VALUE`` lines.

    A ``#`` comment line directly above a variable is kept as its
    documentation; a blank line detaches it.
    """
    variables: list[EnvVariable] = []
    last_comment: str | None = None

    for number, raw_line in enumerate(content.split("\n"), start=1):
        line = raw_line.strip()
        if line.startswith("#"):
            last_comment = line[1:].strip()
            continue
        if not line:
            last_comment = None
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        variables.append(
            EnvVariable(
                key=key.strip(),
                value=parse_env_value(value),
                line=number,
                comment=last_comment,
                file=file,
            )
        )
        last_comment = None

    return variables


class EnvRepository(Repository[EnvVariable]):
    domain = "env"
    ttl = 5 * 60.0

    def __init__(self, project_root: Path, *, ttl: float | None = None) -> None:
        super().__init__(ttl=ttl)
        self.project_root = project_root

    def key_of(self, record: EnvVariable) -> str:
        return record.key

    def _read(self, name: str) -> list[EnvVariable]:
        return parse_env((self.project_root / name).read_text(encoding="utf-8"), name)

    def _acquire(self) -> list[EnvVariable]:
        env_path = self.project_root / ENV_FILE
        example_path = self.project_root / EXAMPLE_FILE

        if env_path.is_file():
            variables = self._read(ENV_FILE)
        elif example_path.is_file():
            return self._read(EXAMPLE_FILE)
        else:
            raise FilesystemFault("no .env or .env.example file found")

        # Keys documented only in the example are still worth completing.
        if variables and example_path.is_file():
            known = {v.key for v in variables}
            variables.extend(v for v in self._read(EXAMPLE_FILE) if v.key not in known)
        return variables
