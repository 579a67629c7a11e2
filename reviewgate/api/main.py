from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reviewgate import __version__
from reviewgate.core.config import Settings, get_settings
from reviewgate.core.gate_config import load_gate_config
from reviewgate.core.logger import configure_logging
from reviewgate.providers.memory import InMemoryWorkspace
from reviewgate.providers.registry import build_provider_factory, build_store
from reviewgate.store.base import ItemStore
from reviewgate.api.errors import register_exception_handlers
from reviewgate.api.routers import estimation, health, items


def create_app(
    settings: Optional[Settings] = None,
    *,
    workspace: Optional[InMemoryWorkspace] = None,
    store: Optional[ItemStore] = None,
) -> FastAPI:
    """Build the gate service.

    Args:
        settings: Service settings; read from the environment when omitted
        workspace: Shared workspace for the in-memory provider
        store: Item store to use instead of the configured backend
    """
    settings = settings or get_settings()

    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Approval gate for workflow items",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    gate_config = load_gate_config(settings.gate_config_path)

    app.state.settings = settings
    app.state.gate_config = gate_config
    app.state.provider_factory = build_provider_factory(settings, gate_config, workspace=workspace)
    if store is None and settings.store_backend != "issue_property":
        store = build_store(settings)
    app.state.store = store

    register_exception_handlers(app)

    app.include_router(items.router, prefix="/api")
    app.include_router(estimation.router, prefix="/api")
    app.include_router(health.router)

    @app.get("/")
    async def root():
        return {
            "name": settings.app_name,
            "version": __version__,
            "docs": "/docs" if settings.debug else None,
        }

    return app


app = create_app()
