"""
Language Service

Async CRUD for the languages table. Exactly one language carries
``default = True`` whenever any language exists.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from edgecms.exceptions import DuplicateResourceError, LanguageNotFoundError, NoDefaultLanguageError
from edgecms.models.language import Language
from edgecms.services.version_service import ensure_draft_exists

logger = logging.getLogger(__name__)


async def get_languages(db: AsyncSession) -> list[Language]:
    result = await db.execute(select(Language).order_by(Language.locale))
    return list(result.scalars().all())


async def get_language(db: AsyncSession, locale: str) -> Language | None:
    result = await db.execute(select(Language).where(Language.locale == locale))
    return result.scalars().first()


def partition_languages(languages: Sequence[Language]) -> tuple[Language, list[Language]]:
    """Split languages into the default one and the rest.

    Raises:
        NoDefaultLanguageError: if no language is flagged as default.
    """
    default_language = None
    other_languages = []
    for language in languages:
        if language.default and default_language is None:
            default_language = language
        else:
            other_languages.append(language)

    if default_language is None:
        raise NoDefaultLanguageError()
    return default_language, other_languages


async def create_language(db: AsyncSession, locale: str, user_id: str | None = None) -> Language:
    """Add a language. The first language created becomes the default."""
    await ensure_draft_exists(db, user_id)

    if await get_language(db, locale) is not None:
        raise DuplicateResourceError("Language", "locale", locale)

    count = (await db.execute(select(func.count()).select_from(Language))).scalar() or 0
    language = Language(locale=locale, default=count == 0)
    db.add(language)
    await db.commit()
    await db.refresh(language)
    logger.info("Language created: locale=%s default=%s", locale, language.default)
    return language


async def set_default_language(db: AsyncSession, locale: str, user_id: str | None = None) -> Language:
    await ensure_draft_exists(db, user_id)

    language = await get_language(db, locale)
    if language is None:
        raise LanguageNotFoundError(locale)

    await db.execute(update(Language).where(Language.default.is_(True)).values(default=False))
    await db.execute(update(Language).where(Language.locale == locale).values(default=True))
    await db.commit()
    await db.refresh(language)
    logger.info("Default language set: locale=%s", locale)
    return language


async def delete_all_languages(db: AsyncSession, *, commit: bool = True) -> None:
    await db.execute(delete(Language))
    if commit:
        await db.commit()


def pick_default_locale(locales: Sequence[str], preferred: str | None) -> str | None:
    """Return ``preferred`` if it is one of ``locales``, else the first locale."""
    if preferred in locales:
        return preferred
    return locales[0] if locales else None


async def replace_languages(db: AsyncSession, locales: Iterable[str], default_locale: str | None) -> list[Language]:
    """Insert ``locales`` as languages, replacing any rows with the same locale.

    ``default_locale`` is flagged as default; when it is None or not among
    ``locales``, the first locale is. Runs in one transaction so it can be
    repeated safely.
    """
    locales = list(dict.fromkeys(locales))
    if not locales:
        return []
    default_locale = pick_default_locale(locales, default_locale)

    await db.execute(delete(Language).where(Language.locale.in_(locales)))
    languages = [Language(locale=locale, default=locale == default_locale) for locale in locales]
    db.add_all(languages)
    await db.commit()
    logger.info("Languages restored: %s (default=%s)", ", ".join(locales), default_locale)
    return languages
