"""
FastAPI application factory for the KV Explorer console.

This module creates the FastAPI app with:
- CORS configuration for the frontend
- Store client lifecycle management
- Read-only API routes

Run with:
    kvexplorer-console
    uvicorn --factory console.gateway.app:create_app --port 8080
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kvexplorer_core import RetrievalFacade, __version__
from kvexplorer_core.config import ExplorerConfig
from kvexplorer_core.logsetup import setup_logging
from kvexplorer_core.store import TransactionalStore, create_store

from .config import Settings
from .routes import router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage store client lifecycle.

    The store connects lazily on the first scan so that an unreachable
    cluster is reported per request instead of blocking startup.
    """
    yield

    await app.state.store.close()


def create_app(
    settings: Settings | None = None,
    config: ExplorerConfig | None = None,
    store: TransactionalStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Console settings (loaded from env if not provided)
        config: Explorer configuration (loaded from env if not provided;
            logging is configured only in that case)
        store: Store client to browse (built from config if not provided)
    """
    settings = settings or Settings()
    if config is None:
        config = ExplorerConfig.from_env()
        setup_logging(config)
        config.log_config()

    if store is None:
        store = create_store(config.store)

    app = FastAPI(
        title="KV Explorer Console",
        description=(
            "Read-only web interface for browsing every key/value pair "
            "of a transactional key-value store."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.facade = RetrievalFacade(store, batch_limit=config.store.batch_limit)

    # CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],  # Read-only
        allow_headers=["*"],
    )

    # API routes
    app.include_router(router, prefix="/api/v1")

    # Health endpoint at root
    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "service": "kvexplorer-console",
            "mode": "read-only",
            "store_connected": app.state.store.is_connected,
        }

    return app


def main() -> None:
    """Run the console with uvicorn."""
    import uvicorn

    settings = Settings()
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
