import uvicorn
from fastapi import FastAPI

from app.api.routes.activation_codes import router as activation_codes_router
from app.api.routes.health import router as health_router
from app.api.routes.quota import router as quota_router
from app.api.routes.resources import router as resources_router
from app.api.routes.user_activation_codes import router as user_activation_codes_router
from app.core.config import get_settings
from app.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, app_env=getattr(settings, "app_env", "dev"))

    docs_enabled = settings.enable_openapi_docs
    app = FastAPI(
        title="MerchTech Entitlements API",
        version="0.1.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.include_router(health_router)
    app.include_router(activation_codes_router)
    app.include_router(user_activation_codes_router)
    app.include_router(quota_router)
    app.include_router(resources_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
