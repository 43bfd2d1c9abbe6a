from typing import List, Optional
import logging
from datetime import datetime, timezone

from vcpkg_catalog.domain.models import InsertReport, Package
from vcpkg_catalog.services.caching import CatalogCache
from vcpkg_catalog.storage.db_manager import CatalogStore

logger = logging.getLogger(__name__)


class Catalog:
    """
    Read/write entry point used by the API and the ingestion loader.

    Reads of the full catalog go through the cache; single-package reads and
    all writes go to the store, and every write invalidates the cached list.
    """

    def __init__(self, store: CatalogStore, cache: CatalogCache):
        self.store = store
        self.cache = cache

    def list_packages(self) -> List[Package]:
        cached = self.cache.get()
        if cached is not None:
            return cached

        packages = self.store.list_all()
        # A write landing between these two calls leaves a stale list until the TTL expires.
        self.cache.put(packages)
        return packages

    def get_package(self, name: str) -> Optional[Package]:
        return self.store.get_by_name(name)

    def create_package(self, package: Package, stamp: bool = True) -> InsertReport:
        """
        Store a new package. ``stamp`` sets ``last_modified`` to the current UTC
        time, which is what API creates do; bulk loads keep the manifest value.
        """
        if stamp:
            package.last_modified = datetime.now(timezone.utc).isoformat()
        try:
            return self.store.insert(package)
        finally:
            self.cache.invalidate()

    def delete_package(self, name: str) -> None:
        try:
            self.store.delete(name)
        finally:
            self.cache.invalidate()
