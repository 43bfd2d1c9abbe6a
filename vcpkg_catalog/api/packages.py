from __future__ import annotations

from typing import List, Optional
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from pydantic import ValidationError

from vcpkg_catalog.core.dependencies import get_catalog
from vcpkg_catalog.domain.catalog import Catalog
from vcpkg_catalog.domain.errors import CatalogStoreError, PackageAlreadyExistsError
from vcpkg_catalog.domain.models import Package

logger = logging.getLogger(__name__)
router = APIRouter()


def _require_name(name: Optional[str]) -> str:
    # A missing name is a 400 here, not FastAPI's default 422.
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing package name")
    return name


# ---------------------------------------------------------------------------
# 1. GET /packages
# ---------------------------------------------------------------------------

@router.get("/packages", response_model=List[Package])
def list_packages(catalog: Catalog = Depends(get_catalog)) -> List[Package]:
    """
    Return every package, served from the cache when it is warm.
    """
    try:
        return catalog.list_packages()
    except CatalogStoreError as e:
        logger.error(f"Error listing packages: {e}")
        raise HTTPException(status_code=500, detail="Error querying database")


# ---------------------------------------------------------------------------
# 2. GET /package?name=<name>
# ---------------------------------------------------------------------------

@router.get("/package", response_model=Package)
def get_package(
    name: Optional[str] = Query(default=None),
    catalog: Catalog = Depends(get_catalog),
) -> Package:
    name = _require_name(name)
    try:
        pkg = catalog.get_package(name)
    except CatalogStoreError as e:
        logger.error(f"Error querying package {name}: {e}")
        raise HTTPException(status_code=500, detail="Error querying database")
    if pkg is None:
        raise HTTPException(status_code=404, detail="Package not found")
    return pkg


# ---------------------------------------------------------------------------
# 3. POST /packages/create
# ---------------------------------------------------------------------------

@router.post("/packages/create", status_code=status.HTTP_201_CREATED)
async def create_package(request: Request, catalog: Catalog = Depends(get_catalog)) -> Response:
    """
    Create a package from a JSON body. The body is validated here rather than
    by FastAPI so that malformed payloads map to 400.
    """
    try:
        body = await request.json()
        pkg = Package.model_validate(body)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        logger.info(f"Rejected package payload: {e}")
        raise HTTPException(status_code=400, detail="Invalid request payload")

    try:
        report = catalog.create_package(pkg)
    except PackageAlreadyExistsError:
        raise HTTPException(status_code=409, detail=f"Package already exists: {pkg.name}")
    except CatalogStoreError as e:
        logger.error(f"Error inserting package {pkg.name}: {e}")
        raise HTTPException(status_code=500, detail="Error inserting package")

    for failure in report.failures:
        logger.warning(f"Row not stored for {pkg.name}: {failure.key} ({failure.error})")
    return Response(status_code=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------------
# 4. DELETE /packages/delete?name=<name>
# ---------------------------------------------------------------------------

@router.delete("/packages/delete")
def delete_package(
    name: Optional[str] = Query(default=None),
    catalog: Catalog = Depends(get_catalog),
) -> Response:
    name = _require_name(name)
    try:
        catalog.delete_package(name)
    except CatalogStoreError as e:
        logger.error(f"Error deleting package {name}: {e}")
        raise HTTPException(status_code=500, detail="Error deleting package")
    return Response(status_code=status.HTTP_200_OK)
