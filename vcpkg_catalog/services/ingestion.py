"""
Bulk ingestion of a vcpkg registry dump.

Pipeline:
    load_manifest -> IngestionPipeline.run (normalize, resolve versions)
                  -> write_packages and/or load_into_catalog

Normalization is cheap and runs sequentially in input order. Version
resolution spawns one ``git ls-remote`` per package, so it runs concurrently
with a bounded number of in-flight remotes.
"""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import aiofiles
import httpx
from pydantic import TypeAdapter, ValidationError

from vcpkg_catalog.domain.catalog import Catalog
from vcpkg_catalog.domain.errors import CatalogStoreError, ManifestDecodeError
from vcpkg_catalog.domain.models import IngestionReport, ManifestFile, Package
from vcpkg_catalog.services.normalizer import ManifestNormalizer
from vcpkg_catalog.services.resolver import RemoteVersionResolver

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 8
MANIFEST_DOWNLOAD_TIMEOUT = 60.0

_PACKAGE_LIST = TypeAdapter(List[Package])


# ---------------------------------------------------------------------------
# Manifest loading
# ---------------------------------------------------------------------------


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


async def _download_manifest(url: str) -> str:
    logger.info(f"Downloading manifest from {url}")
    async with httpx.AsyncClient(follow_redirects=True, timeout=MANIFEST_DOWNLOAD_TIMEOUT) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.text


def parse_manifest(content: Union[str, bytes]) -> ManifestFile:
    try:
        raw = json.loads(content)
    except json.JSONDecodeError as e:
        raise ManifestDecodeError(f"manifest is not valid JSON: {e}") from e
    if not isinstance(raw, dict) or "Source" not in raw:
        raise ManifestDecodeError("manifest has no 'Source' list")
    # Entries are validated one by one by the normalizer; only the envelope is checked here.
    try:
        return ManifestFile(
            Baseline=raw.get("Baseline") or "",
            Size=raw.get("Size") or 0,
            Source=raw["Source"],
        )
    except ValidationError as e:
        raise ManifestDecodeError(f"invalid manifest envelope: {e}") from e


async def load_manifest(source: Union[str, Path]) -> ManifestFile:
    """Read a registry dump from a local path or an http(s) URL."""
    source = str(source)
    if _is_url(source):
        content = await _download_manifest(source)
    else:
        async with aiofiles.open(source, "r", encoding="utf-8") as f:
            content = await f.read()
    manifest = parse_manifest(content)
    if manifest.Size and manifest.Size != len(manifest.Source):
        logger.warning(f"Manifest declares Size={manifest.Size} but lists {len(manifest.Source)} entries")
    return manifest


# ---------------------------------------------------------------------------
# Normalization + resolution
# ---------------------------------------------------------------------------


class IngestionPipeline:
    def __init__(
        self,
        normalizer: ManifestNormalizer,
        resolver: Optional[RemoteVersionResolver] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.normalizer = normalizer
        self.resolver = resolver
        self.concurrency = concurrency

    def normalize_all(self, entries: Sequence[Dict[str, Any]], report: IngestionReport) -> List[Package]:
        packages: List[Package] = []
        for index, entry in enumerate(entries):
            try:
                packages.append(self.normalizer.normalize(entry))
            except ManifestDecodeError as e:
                report.dropped += 1
                report.errors.append(str(e))
                logger.error(f"Dropping manifest entry #{index}: {e}")
        report.normalized = len(packages)
        return packages

    async def resolve_all(self, packages: List[Package], report: IngestionReport) -> List[Package]:
        if self.resolver is None:
            return packages

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _resolve(package: Package) -> Package:
            async with semaphore:
                return await self.resolver.enrich(package)

        # gather keeps input order regardless of completion order.
        resolved = await asyncio.gather(*(_resolve(p) for p in packages))
        report.resolved = sum(1 for p in resolved if p.versions)
        logger.info(f"Resolved versions for {report.resolved}/{len(resolved)} packages")
        return list(resolved)

    async def run(self, manifest: ManifestFile) -> Tuple[List[Package], IngestionReport]:
        report = IngestionReport(baseline=manifest.Baseline, total=len(manifest.Source))
        packages = self.normalize_all(manifest.Source, report)
        packages = await self.resolve_all(packages, report)
        logger.info(
            f"Ingestion finished: {report.normalized} normalized, {report.dropped} dropped "
            f"out of {report.total} entries"
        )
        return packages, report


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


async def write_packages(packages: List[Package], path: Union[str, Path]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, "wb") as f:
        await f.write(_PACKAGE_LIST.dump_json(packages, indent=2))
    logger.info(f"Wrote {len(packages)} packages to {path}")


def load_into_catalog(packages: List[Package], catalog: Catalog, report: IngestionReport) -> None:
    """Insert every package; a store error on one package does not stop the others."""
    for package in packages:
        try:
            catalog.create_package(package, stamp=False)
            report.loaded += 1
        except CatalogStoreError as e:
            report.errors.append(str(e))
            logger.error(f"Failed to load {package.name} into the catalog: {e}")
