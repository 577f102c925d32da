"""
Language & Translation Routes

    GET  /i18n/languages                  → list languages
    POST /i18n/languages                  → add a language
    PUT  /i18n/languages/{locale}/default → change the default language
    GET  /i18n/translations/{locale}      → draft translations for a locale
    PUT  /i18n/translations               → upsert one translation
    POST /i18n/push/{locale}              → bulk upsert a key→value map

All mutations go to the draft version, which is created on first edit.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from edgecms.context import AppContext
from edgecms.database import get_db
from edgecms.dependencies import get_context, get_current_user_id
from edgecms.exceptions import LanguageNotFoundError
from edgecms.schemas.translation import (
    LanguageCreate,
    LanguageOut,
    TranslationOut,
    TranslationPush,
    TranslationPushResult,
    TranslationUpsert,
)
from edgecms.services import language_service, translation_service

router = APIRouter(prefix="/i18n", tags=["Internationalization"])


@router.get("/languages", response_model=list[LanguageOut])
async def list_languages_route(db: AsyncSession = Depends(get_db)):
    return await language_service.get_languages(db)


@router.post("/languages", response_model=LanguageOut, status_code=status.HTTP_201_CREATED)
async def create_language_route(
    payload: LanguageCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    return await language_service.create_language(db, payload.locale, user_id)


@router.put("/languages/{locale}/default", response_model=LanguageOut)
async def set_default_language_route(
    locale: str,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    return await language_service.set_default_language(db, locale, user_id)


@router.get("/translations/{locale}", response_model=list[TranslationOut])
async def get_translations_route(locale: str, db: AsyncSession = Depends(get_db)):
    return await translation_service.get_translations_by_locale(db, locale)


@router.put("/translations", response_model=TranslationOut)
async def upsert_translation_route(
    payload: TranslationUpsert,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    if await language_service.get_language(db, payload.language) is None:
        raise LanguageNotFoundError(payload.language)
    return await translation_service.upsert_translation(
        db, payload.key, payload.language, payload.value, section=payload.section, user_id=user_id
    )


@router.post("/push/{locale}", response_model=TranslationPushResult)
async def push_translations_route(
    locale: str,
    payload: TranslationPush,
    db: AsyncSession = Depends(get_db),
    context: AppContext = Depends(get_context),
    user_id: str | None = Depends(get_current_user_id),
):
    if await language_service.get_language(db, locale) is None:
        raise LanguageNotFoundError(locale)
    count = await translation_service.bulk_upsert_translations(
        db,
        locale,
        payload.translations,
        section=payload.section,
        user_id=user_id,
        batch_size=context.settings.translation_batch_size,
    )
    return TranslationPushResult(language=locale, count=count)
