from abc import ABC, abstractmethod
from typing import List, Optional

from vcpkg_catalog.domain.models import InsertReport, Package


class CatalogStore(ABC):
    """
    Abstract base class for the authoritative package catalog store.

    Implementations persist a package across four logical collections
    (packages, dependencies, features, feature dependencies) keyed by package
    name, and own every mutation of them.
    """

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the storage subsystem (e.g. create missing tables)."""
        pass

    @abstractmethod
    def insert(self, package: Package) -> InsertReport:
        """
        Persist a package and its dependent rows.

        Raises CatalogStoreError if the package row cannot be written.
        Dependent rows are best-effort; their failures are listed in the report.
        """
        pass

    @abstractmethod
    def delete(self, name: str) -> None:
        """Delete a package and its dependent rows. Unknown names are not an error."""
        pass

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[Package]:
        """Return the full package, or None if it does not exist."""
        pass

    @abstractmethod
    def list_all(self) -> List[Package]:
        """Return every package with dependencies and features."""
        pass

    def close(self) -> None:
        """Release any resources held by the store."""
        pass
