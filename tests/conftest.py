"""Shared fixtures: sqlite store in tmp_path, dict-backed Redis, scripted git runner."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest
import redis

from vcpkg_catalog.domain.catalog import Catalog
from vcpkg_catalog.domain.models import Feature, Package
from vcpkg_catalog.services.caching import CatalogCache
from vcpkg_catalog.services.resolver import CommandResult
from vcpkg_catalog.storage.sql_catalog_store import SqlCatalogStore


class FakeRedis:
    """Minimal stand-in for redis.Redis covering the commands the cache uses."""

    def __init__(self) -> None:
        self.data: Dict[str, bytes] = {}
        self.expiries: Dict[str, Optional[int]] = {}
        self.available = True
        self.closed = False

    def _check(self) -> None:
        if not self.available:
            raise redis.ConnectionError("redis is down")

    def ping(self) -> bool:
        self._check()
        return True

    def get(self, key: str) -> Optional[bytes]:
        self._check()
        return self.data.get(key)

    def set(self, key: str, value: Union[str, bytes], ex: Optional[int] = None) -> bool:
        self._check()
        self.data[key] = value.encode("utf-8") if isinstance(value, str) else value
        self.expiries[key] = ex
        return True

    def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.expiries.pop(key, None)
        return removed

    def close(self) -> None:
        self.closed = True


class FakeGitRunner:
    """Returns scripted ls-remote results per URL and records every call."""

    def __init__(self, outputs: Optional[Dict[str, object]] = None, delays: Optional[Dict[str, float]] = None):
        self.outputs = outputs or {}
        self.delays = delays or {}
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def ls_remote(self, url: str, timeout: float) -> CommandResult:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, 0))
            outcome = self.outputs.get(url, CommandResult(returncode=128, stdout="", stderr="not found"))
            if isinstance(outcome, BaseException):
                raise outcome
            if isinstance(outcome, str):
                return CommandResult(returncode=0, stdout=outcome)
            return outcome
        finally:
            self.in_flight -= 1


def ls_remote_output(*refs: str) -> str:
    return "".join(f"{i:040x}\t{ref}\n" for i, ref in enumerate(refs))


@pytest.fixture()
def store(tmp_path: Path) -> SqlCatalogStore:
    s = SqlCatalogStore(str(tmp_path / "catalog.sql"))
    s.initialize()
    return s


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def cache(fake_redis: FakeRedis) -> CatalogCache:
    return CatalogCache(fake_redis)


@pytest.fixture()
def catalog(store: SqlCatalogStore, cache: CatalogCache) -> Catalog:
    return Catalog(store, cache)


@pytest.fixture()
def fmt_package() -> Package:
    return Package(
        name="fmt",
        version="10.2.1",
        versions=["10.1.0", "10.2.1"],
        description="Formatting library for C++",
        git_url="https://github.com/fmtlib/fmt",
        license="MIT",
        stars=19000,
        last_modified="2024-01-05T10:00:00Z",
        cmake_target="fmt::fmt",
        dependencies=["vcpkg-cmake", "vcpkg-cmake-config"],
    )


@pytest.fixture()
def curl_package() -> Package:
    return Package(
        name="curl",
        version="8.5.0",
        description="A library for transferring data with URLs",
        git_url="https://github.com/curl/curl",
        license="curl",
        supports="!uwp",
        stars=33000,
        cmake_target="CURL::libcurl",
        dependencies=["zlib"],
        features={
            "ssl": Feature(
                description="Default SSL backend",
                dependencies=["openssl"],
                required_features=["ssl"],
            ),
            "http2": Feature(description="HTTP2 support", dependencies=["nghttp2"]),
        },
    )
