from __future__ import annotations

from typing import Optional


class CatalogError(Exception):
    """Base class for every error raised by the catalog core."""


class ManifestDecodeError(CatalogError, ValueError):
    """
    A raw manifest entry (or the manifest document itself) did not match any
    tolerated shape. The offending package is dropped, the run continues.
    """

    def __init__(self, message: str, package_name: Optional[str] = None):
        self.package_name = package_name
        if package_name:
            message = f"{package_name}: {message}"
        super().__init__(message)


class CatalogStoreError(CatalogError):
    """A relational store operation failed."""


class PackageAlreadyExistsError(CatalogStoreError):
    """A package with the same name is already stored."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Package already exists: {name}")
