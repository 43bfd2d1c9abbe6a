"""
Process configuration read from environment variables.

Every setting has a fallback default so the service starts against a local
sqlite file and a local Redis without any environment at all.
"""
from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

DATABASE_URL_ENV_VAR = "DATABASE_URL"
DATABASE_DRIVER_ENV_VAR = "DATABASE_DRIVER"
REDIS_HOST_ENV_VAR = "REDIS_HOST"
REDIS_PORT_ENV_VAR = "REDIS_PORT"
CACHE_TTL_ENV_VAR = "CACHE_TTL_SECONDS"
GIT_BINARY_ENV_VAR = "GIT_BINARY"
LS_REMOTE_TIMEOUT_ENV_VAR = "LS_REMOTE_TIMEOUT"
RESOLVER_CONCURRENCY_ENV_VAR = "RESOLVER_CONCURRENCY"
FILTER_BOOTSTRAP_ENV_VAR = "FILTER_BOOTSTRAP_DEPENDENCIES"
LOG_LEVEL_ENV_VAR = "LOG_LEVEL"


class Settings(BaseModel):
    """
    Runtime settings for the catalog service and the ingestion CLI.
    """

    database_url: str = Field(
        default="./data.sql",
        description="Connection target passed to the DB-API driver's connect().",
    )
    database_driver: str = Field(
        default="sqlite3",
        description="Importable DB-API module name (e.g. 'sqlite3', 'psycopg2').",
    )
    redis_host: str = Field(default="localhost", description="Redis host for the catalog cache.")
    redis_port: int = Field(default=6379, description="Redis port for the catalog cache.")
    cache_ttl_seconds: int = Field(
        default=600,
        ge=1,
        description="Expiry of the cached package list.",
    )
    git_binary: str = Field(default="git", description="git executable used for ls-remote.")
    ls_remote_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds before a remote ref listing is abandoned.",
    )
    resolver_concurrency: int = Field(
        default=8,
        ge=1,
        description="Maximum number of concurrent ls-remote calls during ingestion.",
    )
    filter_bootstrap_dependencies: bool = Field(
        default=True,
        description="Drop vcpkg-cmake / vcpkg-cmake-config / vcpkg-msbuild from dependency lists.",
    )
    log_level: str = Field(default="INFO", description="Root logging level.")


_ENV_FIELDS = {
    DATABASE_URL_ENV_VAR: "database_url",
    DATABASE_DRIVER_ENV_VAR: "database_driver",
    REDIS_HOST_ENV_VAR: "redis_host",
    REDIS_PORT_ENV_VAR: "redis_port",
    CACHE_TTL_ENV_VAR: "cache_ttl_seconds",
    GIT_BINARY_ENV_VAR: "git_binary",
    LS_REMOTE_TIMEOUT_ENV_VAR: "ls_remote_timeout",
    RESOLVER_CONCURRENCY_ENV_VAR: "resolver_concurrency",
    FILTER_BOOTSTRAP_ENV_VAR: "filter_bootstrap_dependencies",
    LOG_LEVEL_ENV_VAR: "log_level",
}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build ``Settings`` from the environment. Unset or empty variables keep
    their defaults; pydantic coerces the rest ("6380" -> 6380, "false" -> False).
    """
    env = os.environ if environ is None else environ
    values = {
        field: env[var]
        for var, field in _ENV_FIELDS.items()
        if env.get(var)
    }
    return Settings(**values)
