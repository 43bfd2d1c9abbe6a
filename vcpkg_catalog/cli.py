"""Command line entry point: ingest registry dumps and serve the catalog."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import click
import httpx

from vcpkg_catalog.core.config import load_settings
from vcpkg_catalog.domain.errors import CatalogStoreError, ManifestDecodeError
from vcpkg_catalog.main import build_catalog, configure_logging
from vcpkg_catalog.services.ingestion import (
    IngestionPipeline,
    load_into_catalog,
    load_manifest,
    write_packages,
)
from vcpkg_catalog.services.normalizer import ManifestNormalizer
from vcpkg_catalog.services.resolver import RemoteVersionResolver, SubprocessGitRunner

logger = logging.getLogger(__name__)


@click.group()
@click.option("--log-level", default=None, help="Logging level (default: $LOG_LEVEL or INFO)")
@click.pass_context
def main(ctx: click.Context, log_level: Optional[str]) -> None:
    """vcpkg catalog tools"""
    settings = load_settings()
    configure_logging(log_level or settings.log_level)
    ctx.obj = settings


@main.command()
@click.argument("manifest")
@click.option("--output", "-o", default=None, help="Write the canonical package list to this JSON file")
@click.option("--resolve/--no-resolve", default=True, help="Discover versions with git ls-remote")
@click.option("--concurrency", "-j", type=int, default=None, help="Parallel ls-remote calls")
@click.option("--strict/--loose", default=None,
              help="Drop vcpkg-cmake* / vcpkg-msbuild dependencies (default: $FILTER_BOOTSTRAP_DEPENDENCIES)")
@click.option("--load", is_flag=True, default=False, help="Insert the packages into the catalog store")
@click.pass_obj
def ingest(settings, manifest: str, output: Optional[str], resolve: bool,
           concurrency: Optional[int], strict: Optional[bool], load: bool) -> None:
    """Normalize MANIFEST (path or URL) into canonical packages"""
    normalizer = ManifestNormalizer(
        filter_bootstrap=settings.filter_bootstrap_dependencies if strict is None else strict
    )
    resolver = None
    if resolve:
        resolver = RemoteVersionResolver(
            SubprocessGitRunner(settings.git_binary),
            timeout=settings.ls_remote_timeout,
        )
    pipeline = IngestionPipeline(normalizer, resolver, concurrency or settings.resolver_concurrency)

    async def _run():
        manifest_file = await load_manifest(manifest)
        packages, report = await pipeline.run(manifest_file)
        if output:
            await write_packages(packages, output)
        return packages, report

    try:
        packages, report = asyncio.run(_run())
    except (ManifestDecodeError, OSError, httpx.HTTPError) as e:
        raise click.ClickException(f"Cannot read manifest {manifest}: {e}")

    if load:
        try:
            catalog = build_catalog(settings)
        except CatalogStoreError as e:
            raise click.ClickException(str(e))
        try:
            load_into_catalog(packages, catalog, report)
        finally:
            catalog.cache.close()
            catalog.store.close()

    click.echo(
        f"{report.normalized}/{report.total} packages normalized, {report.dropped} dropped, "
        f"{report.resolved} with versions, {report.loaded} loaded"
    )


@main.command()
@click.option("--host", default="0.0.0.0", help="Bind address")
@click.option("--port", default=8000, type=int, help="Listen port")
@click.option("--reload", is_flag=True, default=False, help="Auto-reload on code changes")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the catalog API with uvicorn"""
    import uvicorn

    uvicorn.run("vcpkg_catalog.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
