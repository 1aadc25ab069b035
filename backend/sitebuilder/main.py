from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sitebuilder.core.config import settings
from sitebuilder.core.logging import get_logger, setup_logging
import sitebuilder.models  # noqa: F401  # force model registration

from sitebuilder.api.errors import register_exception_handlers
from sitebuilder.api.v1.tenants import router as tenants_router
from sitebuilder.api.v1.websites import router as websites_router
from sitebuilder.api.v1.pages import router as pages_router
from sitebuilder.api.v1.components import router as components_router
from sitebuilder.api.v1.team import router as team_router

logger = get_logger(__name__)


def create_application() -> FastAPI:
    setup_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    app = FastAPI(title="Site Builder API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_origin_regex=settings.CORS_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/")
    def root():
        return {"status": "ok", "service": "sitebuilder"}

    # Routers
    app.include_router(tenants_router, prefix="/api/v1")
    app.include_router(websites_router, prefix="/api/v1")
    app.include_router(pages_router, prefix="/api/v1")
    app.include_router(components_router, prefix="/api/v1")
    app.include_router(team_router, prefix="/api/v1")

    logger.info("Site builder API ready (environment=%s)", settings.ENVIRONMENT)
    return app


app = create_application()
