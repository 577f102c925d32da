"""
Snapshot Codec

Serialises the translation dataset into the two artifact kinds a release
produces:

- per-locale publish snapshots: a flat JSON object ``{key: value}``
  served to clients, with missing non-default translations filled in
  from the default locale
- one gzip-compressed backup per version holding the raw per-language
  rows, which is what a rollback restores from

Backup formats
--------------
Format 2 (written by this module)::

    {"format": 2, "defaultLocale": "en", "locales": ["en", "fr"],
     "translations": [[{"key": ..., "language": "en", "value": ...}], [...]]}

Format 1 (legacy, read only) is the bare ``translations`` array. Older
writers emitted an empty sub-array for languages without rows, and did
not record which locale was the default. Decoding sniffs the top-level
JSON shape to pick the path.
"""

from __future__ import annotations

import gzip
import json
import zlib
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypedDict

from edgecms.exceptions import MalformedBackupError

BACKUP_FORMAT = 2
LEGACY_BACKUP_FORMAT = 1

SNAPSHOT_CONTENT_TYPE = "application/json"
BACKUP_CONTENT_TYPE = "application/gzip"


class TranslationRow(TypedDict):
    key: str
    language: str
    value: str


class SnapshotFile(TypedDict):
    filename: str
    content: str


@dataclass
class BackupDocument:
    """Decoded contents of a backup artifact."""

    translations: list[list[TranslationRow]]
    locales: list[str] = field(default_factory=list)
    default_locale: str | None = None
    format: int = BACKUP_FORMAT

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "defaultLocale": self.default_locale,
            "locales": list(self.locales),
            "translations": self.translations,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BackupDocument:
        return cls(
            translations=data["translations"],
            locales=list(data.get("locales") or []),
            default_locale=data.get("defaultLocale"),
            format=data.get("format", BACKUP_FORMAT),
        )

    @property
    def rows(self) -> list[TranslationRow]:
        return [row for language_rows in self.translations for row in language_rows]


# ── Paths ─────────────────────────────────────────────────────────────────────


def snapshot_path(version_id: int, locale: str) -> str:
    return f"{version_id}/{locale}.json"


def backup_path(version_id: int) -> str:
    return f"{version_id}/backup.gz"


# ── Publish snapshots ─────────────────────────────────────────────────────────


def _dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def translation_map(translations: Iterable[Mapping[str, str]], base: Mapping[str, str] | None = None) -> dict[str, str]:
    """Fold ``{key, value}`` rows into a dict, starting from a copy of ``base``."""
    result = dict(base or {})
    for translation in translations:
        result[translation["key"]] = translation["value"]
    return result


def encode_locale_snapshot(translations: Iterable[Mapping[str, str]]) -> bytes:
    """Encode ``{key, value}`` rows as a compact JSON object."""
    return _dumps(translation_map(translations)).encode("utf-8")


def build_locale_snapshots(
    version_id: int,
    default_locale: str,
    default_rows: Sequence[Mapping[str, str]],
    other_languages: Iterable[tuple[str, Sequence[Mapping[str, str]]]],
) -> list[SnapshotFile]:
    """Build one publish snapshot per language.

    The default locale's file holds its own values. Every other locale's
    file starts from the default map and overlays its own values, so a key
    missing from that locale falls back to the default locale's value.
    """
    default_map = translation_map(default_rows)
    files: list[SnapshotFile] = [
        {"filename": snapshot_path(version_id, default_locale), "content": _dumps(default_map)}
    ]
    for locale, rows in other_languages:
        files.append(
            {
                "filename": snapshot_path(version_id, locale),
                "content": _dumps(translation_map(rows, base=default_map)),
            }
        )
    return files


# ── Backups ───────────────────────────────────────────────────────────────────


def encode_backup(
    rows: Sequence[Sequence[Mapping[str, str]]],
    default_locale: str | None = None,
    locales: Sequence[str] | None = None,
) -> bytes:
    """Serialise per-language row lists as a gzip-compressed format 2 backup.

    ``locales`` defaults to the language of each non-empty row list. The
    gzip header timestamp is zeroed so identical input gives identical bytes.
    """
    translations = [[{"key": r["key"], "language": r["language"], "value": r["value"]} for r in group] for group in rows]
    if locales is None:
        locales = derive_locales(translations)
    document = BackupDocument(
        translations=translations,
        locales=list(locales),
        default_locale=default_locale,
    )
    return gzip.compress(_dumps(document.to_dict()).encode("utf-8"), mtime=0)


def decode_backup(data: bytes) -> list[list[TranslationRow]]:
    """Decompress and parse a backup into its per-language row lists."""
    return decode_backup_document(data).translations


def decode_backup_document(data: bytes) -> BackupDocument:
    """Decompress and parse a backup of any known format.

    Raises:
        MalformedBackupError: if the data is not gzip, not JSON, or not a
            recognised backup shape.
    """
    try:
        payload = json.loads(gzip.decompress(data).decode("utf-8"))
    except (OSError, EOFError, zlib.error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedBackupError(f"Backup could not be decoded: {e}") from e

    if isinstance(payload, list):
        return _decode_legacy(payload)
    if isinstance(payload, dict) and payload.get("format") == BACKUP_FORMAT:
        return _decode_current(payload)
    raise MalformedBackupError("Unrecognised backup format")


def _decode_current(payload: dict[str, Any]) -> BackupDocument:
    translations = _validate_groups(payload.get("translations"))
    locales = payload.get("locales")
    if locales is None:
        locales = derive_locales(translations)
    if not isinstance(locales, list) or not all(isinstance(locale, str) for locale in locales):
        raise MalformedBackupError("Backup locales must be a list of strings")

    default_locale = payload.get("defaultLocale")
    if default_locale is not None and not isinstance(default_locale, str):
        raise MalformedBackupError("Backup defaultLocale must be a string")

    return BackupDocument(
        translations=translations,
        locales=locales,
        default_locale=default_locale,
        format=BACKUP_FORMAT,
    )


def _decode_legacy(payload: list[Any]) -> BackupDocument:
    # Older releases wrote an empty array for languages without rows
    translations = [group for group in _validate_groups(payload) if group]
    locales = derive_locales(translations)
    return BackupDocument(
        translations=translations,
        locales=locales,
        default_locale=locales[0] if locales else None,
        format=LEGACY_BACKUP_FORMAT,
    )


def _validate_groups(groups: Any) -> list[list[TranslationRow]]:
    if not isinstance(groups, list):
        raise MalformedBackupError("Backup translations must be a list of lists")
    for group in groups:
        if not isinstance(group, list):
            raise MalformedBackupError("Backup translations must be a list of lists")
        for row in group:
            if not isinstance(row, dict) or not all(
                isinstance(row.get(name), str) for name in ("key", "language", "value")
            ):
                raise MalformedBackupError(f"Invalid translation row in backup: {row!r}")
    return groups


def derive_locales(translations: Iterable[Sequence[Mapping[str, str]]]) -> list[str]:
    """Locales in the order their row lists appear; empty lists are skipped."""
    locales: list[str] = []
    for group in translations:
        if group and group[0]["language"] not in locales:
            locales.append(group[0]["language"])
    return locales
