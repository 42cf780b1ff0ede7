from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import SessionLocal, ensure_core_schema
from app.core.errors import register_exception_handlers
from app.core.module_loader import collect_routers
from app.modules.admin.bootstrap import ensure_default_admin


logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Cuidly API", version="0.1.0")

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    routers = collect_routers()
    # Ensure DB schema is present before routes are registered
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        from app.core.migrations import init_and_upgrade

        init_and_upgrade()
    else:
        ensure_core_schema()

    for router in routers:
        app.include_router(router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.on_event("startup")
    def _startup():
        # Ensure default admin is present if configured
        db = SessionLocal()
        try:
            ensure_default_admin(db)
        finally:
            db.close()
        logger.info("Cuidly API started (%s routers)", len(routers))

    return app


app = create_app()
