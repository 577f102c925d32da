"""
Public read path

    GET /public/i18n/{locale}.json[?version=N]

Serves the published snapshot of the live version (or of the requested
version). A live version without its snapshot file means a release was
promoted before its artifacts were stored, so that case is logged as a
warning before the 404.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from edgecms.context import AppContext
from edgecms.database import get_db
from edgecms.dependencies import get_context
from edgecms.exceptions import ResourceNotFoundError
from edgecms.models.version import VersionStatus
from edgecms.services import version_service
from edgecms.snapshot.codec import SNAPSHOT_CONTENT_TYPE, snapshot_path

router = APIRouter(prefix="/public", tags=["Public"])
logger = logging.getLogger(__name__)


def _cors_headers(context: AppContext, request: Request) -> dict[str, str]:
    """CORS headers for a public response.

    ``trusted_origins`` is a comma separated list. A browser only accepts a
    single origin (or ``*``), so the request's ``Origin`` is echoed back when
    it is listed and the allow-origin header is left out when it is not.
    """
    headers = {"Access-Control-Allow-Methods": "GET", "Access-Control-Max-Age": "86400"}
    origins = [o.strip() for o in (context.settings.trusted_origins or "*").split(",") if o.strip()]
    if "*" in origins:
        headers["Access-Control-Allow-Origin"] = "*"
        return headers

    headers["Vary"] = "Origin"
    origin = request.headers.get("origin")
    if origin in origins:
        headers["Access-Control-Allow-Origin"] = origin
    return headers


@router.options("/i18n/{locale}.json")
async def public_translations_preflight(request: Request, context: AppContext = Depends(get_context)):
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=_cors_headers(context, request))


@router.get("/i18n/{locale}.json")
async def public_translations(
    locale: str,
    request: Request,
    version: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    version_id = version
    if version_id is None:
        live = await version_service.get_latest_version(db, VersionStatus.live)
        if live is None:
            raise ResourceNotFoundError("Live version")
        version_id = live.id

    artifact = await context.artifact_store.get(snapshot_path(version_id, locale))
    if artifact is None:
        if version is None:
            logger.warning(f"Live version {version_id} has no snapshot for locale {locale}")
        raise ResourceNotFoundError("Translation file", f"{version_id}/{locale}")

    return Response(
        content=artifact.data,
        media_type=SNAPSHOT_CONTENT_TYPE,
        headers={
            "Cache-Control": f"public, max-age={context.settings.public_cache_max_age}",
            "ETag": f'"{version_id}-{locale}"',
            **_cors_headers(context, request),
        },
    )
