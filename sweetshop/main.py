import logging

import uvicorn
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .auth_routes import router as auth_router
from .config import Settings, get_settings
from .container import Container, build_container
from .exception_handlers import register_exception_handlers
from .logger import setup_logger
from .sweet_routes import router as sweet_router

log = logging.getLogger(__name__)


# ------------------------------------------------------------
# Configuration
# ------------------------------------------------------------

def create_app(settings: Settings | None = None, container: Container | None = None) -> FastAPI:
    """
    Build the API. A missing JWT_SECRET stops startup here with ConfigurationError.
    Tests pass their own container (in-memory repositories, test secret).
    """
    if container is None:
        container = build_container(settings or get_settings())
    settings = container.settings

    setup_logger("sweetshop", level=settings.log_level, use_json=settings.log_json)

    app = FastAPI(title="Sweet Shop API", version=__version__)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/health")
    def health():
        return {"status": "OK", "message": "Server is running"}

    api = APIRouter(prefix="/api")
    api.include_router(auth_router)
    api.include_router(sweet_router)
    app.include_router(api)

    log.info(
        "Sweet Shop API configured",
        extra={"storage_backend": settings.storage_backend, "mongo_db": settings.mongo_db},
    )
    return app


# ------------------------------------------------------------
# Run the API
# ------------------------------------------------------------

def run() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
