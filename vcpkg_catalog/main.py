import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from vcpkg_catalog import __version__
from vcpkg_catalog.core.config import Settings, load_settings
from vcpkg_catalog.domain.catalog import Catalog
from vcpkg_catalog.services.caching import CatalogCache, create_redis_client
from vcpkg_catalog.storage.sql_catalog_store import SqlCatalogStore

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # basicConfig is a no-op once handlers exist; the level still applies.
    logging.getLogger().setLevel(level.upper())


def build_catalog(settings: Settings) -> Catalog:
    """
    Open the store and the cache described by ``settings``.

    The store schema is created if missing. An unreachable Redis is logged but
    not fatal: the catalog then serves every read from the store.
    """
    store = SqlCatalogStore(settings.database_url, settings.database_driver)
    store.initialize()
    cache = CatalogCache(
        create_redis_client(settings.redis_host, settings.redis_port),
        ttl_seconds=settings.cache_ttl_seconds,
    )
    if cache.ping():
        logger.info(f"Connected to Redis at {settings.redis_host}:{settings.redis_port}")
    return Catalog(store, cache)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Acquire the store and cache clients at startup and release them at shutdown.
    A catalog injected through ``create_app`` is used as is and left open.
    """
    if getattr(app.state, "catalog", None) is not None:
        yield
        return

    catalog = build_catalog(app.state.settings)
    app.state.catalog = catalog
    try:
        yield
    finally:
        catalog.cache.close()
        catalog.store.close()
        app.state.catalog = None


def create_app(settings: Optional[Settings] = None, catalog: Optional[Catalog] = None) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(
        title="vcpkg Catalog",
        version=__version__,
        description="Catalog of vcpkg ports with dependencies, features and git version tags.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.catalog = catalog

    @app.get("/health")
    async def health() -> dict:
        """
        Lightweight health check endpoint.
        """
        return {"status": "ok"}

    from vcpkg_catalog.api.packages import router as packages_router

    app.include_router(packages_router, tags=["packages"])
    return app


configure_logging(load_settings().log_level)
app = create_app()


if __name__ == "__main__":
    """
    Allow running `python -m vcpkg_catalog.main` to start the Uvicorn development server.
    """
    import uvicorn

    uvicorn.run(
        "vcpkg_catalog.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
