"""
Translation Service

Async accessors for translation keys and per-locale translation values.

Functions:
    get_translations_by_locale: all rows for one locale, ordered by key
    upsert_translation        : insert or update a single value
    bulk_upsert_translations  : insert or update a key→value mapping in batches
    delete_all_translations   : wipe the translations table
    replace_translation_rows  : wipe then batch-insert rows (rollback restore)

Every mutation first makes sure a draft version exists so that edits are
always attributable to the draft.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from edgecms.models.translation import Translation, TranslationKey
from edgecms.services.version_service import ensure_draft_exists
from edgecms.snapshot.codec import TranslationRow

logger = logging.getLogger(__name__)

# Maximum rows per INSERT statement
BATCH_SIZE = 25


def _batched(items: list, size: int) -> Iterable[list]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _row(translation: Translation) -> TranslationRow:
    return {"key": translation.key, "language": translation.language, "value": translation.value}


async def get_translations_by_locale(db: AsyncSession, locale: str) -> list[TranslationRow]:
    result = await db.execute(
        select(Translation).where(Translation.language == locale).order_by(Translation.key)
    )
    return [_row(t) for t in result.scalars().all()]


async def _ensure_keys(db: AsyncSession, keys: Iterable[str], section: str | None = None, *, overwrite: bool) -> None:
    keys = list(dict.fromkeys(keys))
    existing: dict[str, TranslationKey] = {}
    for batch in _batched(keys, BATCH_SIZE):
        result = await db.execute(select(TranslationKey).where(TranslationKey.key.in_(batch)))
        existing.update({k.key: k for k in result.scalars().all()})

    for key in keys:
        if key not in existing:
            db.add(TranslationKey(key=key, section=section))
        elif overwrite:
            existing[key].section = section
    await db.flush()


async def upsert_translation(
    db: AsyncSession,
    key: str,
    language: str,
    value: str,
    section: str | None = None,
    user_id: str | None = None,
) -> TranslationRow:
    """Create or update the value of ``key`` in ``language``.

    The key's section is overwritten with ``section``.
    """
    await ensure_draft_exists(db, user_id)
    await _ensure_keys(db, [key], section, overwrite=True)

    result = await db.execute(
        select(Translation).where(Translation.language == language, Translation.key == key)
    )
    translation = result.scalars().first()
    if translation is None:
        translation = Translation(key=key, language=language, value=value)
        db.add(translation)
    else:
        translation.value = value

    await db.commit()
    logger.info("Translation upserted: key=%s language=%s", key, language)
    return _row(translation)


async def bulk_upsert_translations(
    db: AsyncSession,
    language: str,
    translations: Mapping[str, str],
    section: str | None = None,
    user_id: str | None = None,
    batch_size: int = BATCH_SIZE,
) -> int:
    """Upsert a key→value mapping for one language.

    Existing keys keep their section. Returns the number of rows written.
    """
    if not translations:
        return 0

    await ensure_draft_exists(db, user_id)
    await _ensure_keys(db, translations.keys(), section, overwrite=False)

    items = list(translations.items())
    total_batches = (len(items) + batch_size - 1) // batch_size
    for index, batch in enumerate(_batched(items, batch_size), start=1):
        logger.debug("Upserting batch %d of %d for %s", index, total_batches, language)
        result = await db.execute(
            select(Translation).where(
                Translation.language == language,
                Translation.key.in_([key for key, _ in batch]),
            )
        )
        existing = {t.key: t for t in result.scalars().all()}
        for key, value in batch:
            if key in existing:
                existing[key].value = value
            else:
                db.add(Translation(key=key, language=language, value=value))
        await db.flush()

    await db.commit()
    logger.info("Bulk upserted %d translations for %s", len(items), language)
    return len(items)


async def delete_all_translations(db: AsyncSession, *, commit: bool = True) -> None:
    await db.execute(delete(Translation))
    if commit:
        await db.commit()


async def replace_translation_rows(
    db: AsyncSession,
    rows: Iterable[TranslationRow],
    batch_size: int = BATCH_SIZE,
) -> int:
    """Replace the whole translations table with ``rows``.

    Deletes every translation, then inserts ``rows`` in batches of
    ``batch_size``; all inside one transaction so it can be repeated.
    Keys missing from translation_keys are created without a section.
    """
    rows = list(rows)
    await delete_all_translations(db, commit=False)
    await _ensure_keys(db, (row["key"] for row in rows), overwrite=False)

    for batch in _batched(rows, batch_size):
        db.add_all(Translation(key=row["key"], language=row["language"], value=row["value"]) for row in batch)
        await db.flush()

    await db.commit()
    logger.info("Restored %d translations", len(rows))
    return len(rows)
