import logging

import uvicorn
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from edgecms.config import Settings
from edgecms.context import AppContext, build_context
from edgecms.database import Base
from edgecms.exception_handlers import register_exception_handlers
from edgecms.middleware.logging import StructuredLoggingMiddleware, configure_logging
from edgecms.routes import i18n, public, versions
from edgecms.workflows.engine import WorkflowEngine

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    context: AppContext | None = None,
    scheduler: AsyncIOScheduler | None = None,
) -> FastAPI:
    """Create the FastAPI application."""
    settings = settings or (context.settings if context else Settings())
    context = context or build_context(settings)
    scheduler = scheduler or AsyncIOScheduler()

    app = FastAPI(
        title=settings.app_name,
        description="Translation CMS with versioned releases and rollbacks",
        debug=settings.debug,
        version=settings.app_version,
    )
    app.state.context = context
    app.state.scheduler = scheduler
    app.state.workflow_engine = WorkflowEngine(context, scheduler)

    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.trusted_origins.split(",")],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(versions.router, prefix="/api/v1")
    app.include_router(i18n.router, prefix="/api/v1")
    app.include_router(public.router)

    @app.on_event("startup")
    async def startup_event():
        logger.info(f"Starting {settings.app_name} in {settings.environment} mode")
        if settings.debug and context.engine is not None:
            async with context.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created (if not existing).")

        if not scheduler.running:
            scheduler.start()
        if settings.resume_workflows_on_startup:
            resumed = await app.state.workflow_engine.resume_incomplete()
            if resumed:
                logger.info(f"Resumed {len(resumed)} unfinished workflow(s)")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Shutting down the application...")
        if scheduler.running:
            scheduler.shutdown(wait=False)
        await context.dispose()

    @app.get("/health", tags=["Root"])
    async def health():
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    app_settings = Settings()
    configure_logging(app_settings)
    uvicorn.run(create_app(app_settings), host="0.0.0.0", port=8000)
