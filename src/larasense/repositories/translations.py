"""Translation keys from ``lang/`` (Laravel 9+) or ``resources/lang/``.

Two key spaces are merged: grouped PHP array files (``lang/en/auth.php`` ->
``auth.failed``) and flat JSON files (``lang/en.json``).  The same key
usually exists once per locale; the index keeps the first occurrence.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING

from larasense.errors import FilesystemFault
from larasense.models import TranslationInfo
from larasense.repositories.base import Repository

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

LANG_DIRS = ("lang", "resources/lang")

_ARRAY_KEY_RE = re.compile(r"""['"]([^'"]+)['"]\s*=>""")


def find_lang_dir(project_root: Path) -> Path | None:
    for rel in LANG_DIRS:
        candidate = project_root / rel
        if candidate.is_dir():
            return candidate
    return None


def extract_array_keys(content: str, group: str) -> list[str]:
    """Return ``group.key`` for every ``'key' =>`` found in a PHP array file."""
    return [f"{group}.{m.group(1)}" for m in _ARRAY_KEY_RE.finditer(content)]


def scan_locale_dir(locale_dir: Path, locale: str) -> list[TranslationInfo]:
    result: list[TranslationInfo] = []
    for php_file in sorted(locale_dir.glob("*.php")):
        try:
            content = php_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.debug("Cannot read translation file %s", php_file)
            continue
        for key in extract_array_keys(content, php_file.stem):
            result.append(TranslationInfo(key, "", locale, str(php_file)))
    return result


def load_json_translations(json_file: Path, locale: str) -> list[TranslationInfo]:
    try:
        data = json.loads(json_file.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.debug("Cannot read JSON translations %s", json_file)
        return []
    if not isinstance(data, dict):
        return []
    return [
        TranslationInfo(
            key,
            value if isinstance(value, str) else json.dumps(value),
            locale,
            str(json_file),
        )
        for key, value in data.items()
    ]


class TranslationRepository(Repository[TranslationInfo]):
    domain = "translations"
    first_wins = True

    def __init__(self, project_root: Path, *, ttl: float | None = None) -> None:
        super().__init__(ttl=ttl)
        self.project_root = project_root

    def key_of(self, record: TranslationInfo) -> str:
        return record.key

    def _acquire(self) -> list[TranslationInfo]:
        lang_dir = find_lang_dir(self.project_root)
        if lang_dir is None:
            raise FilesystemFault("no lang directory found")

        translations: list[TranslationInfo] = []
        for entry in sorted(lang_dir.iterdir()):
            if entry.is_dir():
                translations.extend(scan_locale_dir(entry, entry.name))
            elif entry.suffix == ".json":
                translations.extend(load_json_translations(entry, entry.stem))
        return translations
