#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
WikiView — FastAPI application factory
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from wikiview.core.config import get_settings
from wikiview.core.database import create_all_tables, get_session_factory, init_db
from wikiview.core.log_utils import configure_logging
from wikiview.routes import view


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    configure_logging()
    init_db()
    await create_all_tables()   # safe: CREATE TABLE IF NOT EXISTS
    await _seed_defaults()
    log.info("%s %s started", get_settings().app_name, get_settings().app_version)
    yield


# -----------------------------------------------------------------------------

async def _seed_defaults() -> None:
    """Create the default namespace and Main Page if they don't exist yet."""
    from wikiview.services.namespaces import ensure_namespace, get_namespace_by_name_or_none
    from wikiview.services.pages import create_page

    settings = get_settings()
    factory = get_session_factory()

    async with factory() as session:
        try:
            if await get_namespace_by_name_or_none(session, settings.default_namespace):
                return
            await ensure_namespace(session, settings.default_namespace, "The default wiki namespace.")
            await create_page(
                session,
                settings.default_namespace,
                settings.main_page_title,
                (
                    f"# Welcome to {settings.site_name}\n\n"
                    "Every saved revision stays viewable by its id:\n\n"
                    "- `?oldid=<id>` shows an old revision\n"
                    "- `?oldid=<id>&direction=prev` / `next` steps through history\n"
                    "- `?diff=prev` compares with the previous revision\n"
                ),
                comment="Initial welcome page",
            )
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# -----------------------------------------------------------------------------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Page views of a revisioned wiki: old revisions, diffs, deletion.",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # ── Routers ───────────────────────────────────────────────────────────

    app.include_router(view.router)

    # ── Global exception handlers ─────────────────────────────────────────

    @app.exception_handler(404)
    async def not_found(request: Request, exc):
        detail = getattr(exc, "detail", None) or "Not found"
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": detail},
        )

    @app.exception_handler(500)
    async def server_error(request: Request, exc):
        log.exception("unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Health check ──────────────────────────────────────────────────────

    @app.get("/api/health", tags=["system"])
    async def health():
        return {"status": "ok", "version": settings.app_version, "app": settings.app_name}

    return app


# -----------------------------------------------------------------------------

app = create_app()


# -----------------------------------------------------------------------------
