"""SqlCatalogStore: persistence of the package graph"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from vcpkg_catalog.domain.errors import CatalogStoreError, PackageAlreadyExistsError
from vcpkg_catalog.domain.models import Package
from vcpkg_catalog.storage.sql_catalog_store import SqlCatalogStore


def _count(db_path: str, table: str) -> int:
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    finally:
        conn.close()


class TestInsertAndRead:
    def test_round_trip_full_graph(self, store: SqlCatalogStore, curl_package: Package) -> None:
        report = store.insert(curl_package)
        assert report.ok
        assert report.package == "curl"

        loaded = store.get_by_name("curl")
        assert loaded == curl_package

    def test_versions_and_dependency_order_preserved(self, store: SqlCatalogStore) -> None:
        pkg = Package(name="boost", versions=["1.83.0", "1.84.0"], dependencies=["zlib", "bzip2", "zlib"])
        store.insert(pkg)
        loaded = store.get_by_name("boost")
        assert loaded.versions == ["1.83.0", "1.84.0"]
        assert loaded.dependencies == ["zlib", "bzip2", "zlib"]

    def test_report_lists_every_row(self, store: SqlCatalogStore, curl_package: Package) -> None:
        report = store.insert(curl_package)
        kinds = [r.kind for r in report.rows]
        assert kinds.count("package") == 1
        assert kinds.count("dependency") == 1
        assert kinds.count("feature") == 2
        # ssl: openssl + required ssl, http2: nghttp2
        assert kinds.count("feature_dependency") == 3

    def test_get_missing_returns_none(self, store: SqlCatalogStore) -> None:
        assert store.get_by_name("nope") is None

    def test_list_all(self, store: SqlCatalogStore, fmt_package: Package, curl_package: Package) -> None:
        store.insert(fmt_package)
        store.insert(curl_package)
        packages = store.list_all()
        assert [p.name for p in packages] == ["curl", "fmt"]
        assert packages[0].features["ssl"].dependencies == ["openssl"]
        assert packages[1].dependencies == fmt_package.dependencies

    def test_list_all_empty(self, store: SqlCatalogStore) -> None:
        assert store.list_all() == []


class TestDuplicates:
    def test_second_insert_is_rejected(self, store: SqlCatalogStore, fmt_package: Package) -> None:
        store.insert(fmt_package)
        with pytest.raises(PackageAlreadyExistsError):
            store.insert(fmt_package)
        assert _count(store.database_url, "packages") == 1
        assert _count(store.database_url, "dependencies") == len(fmt_package.dependencies)


class TestBestEffortRows:
    def test_failed_dependency_rows_do_not_stop_features(self, store: SqlCatalogStore, curl_package: Package) -> None:
        conn = sqlite3.connect(store.database_url)
        conn.execute("DROP TABLE dependencies")
        conn.commit()
        conn.close()

        report = store.insert(curl_package)

        assert not report.ok
        assert [f.kind for f in report.failures] == ["dependency"]
        assert report.failures[0].key == "curl/zlib"
        assert _count(store.database_url, "features") == 2
        assert _count(store.database_url, "feature_dependencies") == 3

    def test_failed_feature_skips_its_dependency_rows(self, store: SqlCatalogStore, curl_package: Package) -> None:
        conn = sqlite3.connect(store.database_url)
        conn.execute("DROP TABLE features")
        conn.commit()
        conn.close()

        report = store.insert(curl_package)

        assert {f.kind for f in report.failures} == {"feature"}
        assert len(report.failures) == 2
        assert _count(store.database_url, "dependencies") == 1
        assert _count(store.database_url, "feature_dependencies") == 0


class TestDelete:
    def test_cascades_to_dependent_rows(self, store: SqlCatalogStore, curl_package: Package) -> None:
        store.insert(curl_package)
        store.delete("curl")
        assert store.get_by_name("curl") is None
        for table in ("packages", "dependencies", "features", "feature_dependencies"):
            assert _count(store.database_url, table) == 0

    def test_delete_unknown_is_not_an_error(self, store: SqlCatalogStore) -> None:
        store.delete("nope")

    def test_delete_leaves_other_packages(self, store: SqlCatalogStore, fmt_package: Package,
                                          curl_package: Package) -> None:
        store.insert(fmt_package)
        store.insert(curl_package)
        store.delete("curl")
        assert [p.name for p in store.list_all()] == ["fmt"]


class TestStoreErrors:
    def test_unopenable_database(self, tmp_path: Path) -> None:
        bad = SqlCatalogStore(str(tmp_path))
        with pytest.raises(CatalogStoreError):
            bad.list_all()
        with pytest.raises(CatalogStoreError):
            bad.get_by_name("fmt")

    def test_missing_schema(self, tmp_path: Path, fmt_package: Package) -> None:
        uninitialized = SqlCatalogStore(str(tmp_path / "empty.sql"))
        with pytest.raises(CatalogStoreError):
            uninitialized.insert(fmt_package)
        with pytest.raises(CatalogStoreError):
            uninitialized.delete("fmt")

    def test_unsupported_paramstyle(self, monkeypatch) -> None:
        monkeypatch.setattr(sqlite3, "paramstyle", "named")
        with pytest.raises(ValueError, match="paramstyle"):
            SqlCatalogStore(":memory:")
