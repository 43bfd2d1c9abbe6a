from fastapi import Request

from vcpkg_catalog.domain.catalog import Catalog


# The catalog is created by the application's startup hook and lives on
# app.state; routes receive it through this provider.

def get_catalog(request: Request) -> Catalog:
    return request.app.state.catalog
