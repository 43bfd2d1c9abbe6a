"""
Pydantic models for the vcpkg catalog.

This module defines the data models shared by ingestion, storage and the API:
- Canonical package / feature entities
- The wire shape of a registry dump and its dependency objects
- Per-row write results and ingestion summaries

Canonical entities are built once per normalization pass and only their
version fields are overwritten afterwards (by remote version resolution).
"""

from __future__ import annotations

from typing import Dict, List, Optional, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Canonical Catalog Models
# ---------------------------------------------------------------------------


class Feature(BaseModel):
    """
    An optional feature of a package.

    Identity is ``(package_name, feature_name)``; the feature name is the key
    under which it is stored in ``Package.features``.
    """

    description: str = Field(
        default="",
        description="Feature description (string/array sources are joined with ', ').",
    )
    required_features: List[str] = Field(
        default_factory=list,
        description="Sibling features of the same package that must also be enabled.",
    )
    dependencies: List[str] = Field(
        default_factory=list,
        description="Names of packages this feature depends on, in source order.",
    )


class Package(BaseModel):
    """
    Canonical package entity used by storage, caching and the API.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(
        min_length=1,
        description="Unique package name (e.g. 'fmt').",
    )
    version: str = Field(
        default="",
        description="Currently selected version string. May be empty.",
    )
    versions: List[str] = Field(
        default_factory=list,
        description="All discovered version tags in remote listing order.",
    )
    description: str = Field(
        default="",
        description="Package description.",
    )
    git_url: str = Field(
        default="",
        validation_alias=AliasChoices("git_url", "gitURL"),
        description="Source-control URL used for version discovery.",
    )
    license: str = Field(default="", description="SPDX license expression.")
    supports: str = Field(default="", description="vcpkg platform support expression.")
    stars: int = Field(default=0, ge=0, description="Upstream star count.")
    last_modified: str = Field(default="", description="Last modification timestamp.")
    cmake_target: str = Field(
        default="",
        description="CMake target exported by the port (derived from the name).",
    )
    dependencies: List[str] = Field(
        default_factory=list,
        description="Names of packages this package depends on. Duplicates pass through.",
    )
    features: Dict[str, Feature] = Field(
        default_factory=dict,
        description="Optional features keyed by feature name.",
    )


# ---------------------------------------------------------------------------
# Registry Dump (wire) Models
# ---------------------------------------------------------------------------


class ManifestFile(BaseModel):
    """
    Top-level shape of a vcpkg registry dump.

    ``Source`` entries are intentionally left untyped: each one is probed by
    the normalizer so that a single malformed entry cannot fail the document.
    """

    Baseline: str = ""
    Size: int = 0
    Source: List[Any] = Field(default_factory=list)


class DependencyRef(BaseModel):
    """Object form of a dependency: ``{"name": ..., "platform": ..., "host": ...}``."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(strict=True)
    # Only the name is read; platform expressions and host flags pass through as given.
    platform: Any = None
    host: Any = None


# ---------------------------------------------------------------------------
# Write / Ingestion Results
# ---------------------------------------------------------------------------


RowKind = Literal["package", "dependency", "feature", "feature_dependency"]


class RowResult(BaseModel):
    """Outcome of persisting one row during a package insert."""

    kind: RowKind
    key: str = Field(description="Human readable row key, e.g. 'fmt/dependency/vcpkg-cmake'.")
    ok: bool = True
    error: Optional[str] = None


class InsertReport(BaseModel):
    """
    Per-row results of ``CatalogStore.insert``.

    The package row itself always succeeded if a report exists; dependent rows
    are written best-effort and failures are listed here.
    """

    package: str
    rows: List[RowResult] = Field(default_factory=list)

    @property
    def failures(self) -> List[RowResult]:
        return [r for r in self.rows if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failures


class IngestionReport(BaseModel):
    """Summary of one ingestion run."""

    baseline: str = ""
    total: int = 0
    normalized: int = 0
    dropped: int = 0
    resolved: int = 0
    loaded: int = 0
    errors: List[str] = Field(default_factory=list)
