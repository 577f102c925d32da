from .codec import (
    BackupDocument,
    SnapshotFile,
    TranslationRow,
    backup_path,
    build_locale_snapshots,
    decode_backup,
    decode_backup_document,
    encode_backup,
    encode_locale_snapshot,
    snapshot_path,
)

__all__ = [
    "BackupDocument",
    "SnapshotFile",
    "TranslationRow",
    "backup_path",
    "build_locale_snapshots",
    "decode_backup",
    "decode_backup_document",
    "encode_backup",
    "encode_locale_snapshot",
    "snapshot_path",
]
