"""
Relational catalog store on top of any DB-API 2.0 driver (sqlite3 by default).

Layout:
    packages(name PK, ...)
    dependencies(package_name, position, dependency_name)
    features(package_name, feature_name, description)
    feature_dependencies(package_name, feature_name, kind, position, dependency_name)

``kind`` is 'dependency' for a feature's package dependencies and 'feature'
for its required sibling features. ``position`` preserves source order.
"""
from __future__ import annotations

import importlib
import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from vcpkg_catalog.domain.errors import CatalogStoreError, PackageAlreadyExistsError
from vcpkg_catalog.domain.models import Feature, InsertReport, Package, RowResult
from vcpkg_catalog.storage.db_manager import CatalogStore

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS packages (
        name TEXT PRIMARY KEY,
        version TEXT,
        versions TEXT,
        description TEXT,
        git_url TEXT,
        license TEXT,
        supports TEXT,
        stars INTEGER,
        last_modified TEXT,
        cmake_target TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS dependencies (
        package_name TEXT NOT NULL REFERENCES packages(name) ON DELETE CASCADE,
        position INTEGER NOT NULL,
        dependency_name TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS features (
        package_name TEXT NOT NULL REFERENCES packages(name) ON DELETE CASCADE,
        feature_name TEXT NOT NULL,
        description TEXT,
        PRIMARY KEY (package_name, feature_name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS feature_dependencies (
        package_name TEXT NOT NULL REFERENCES packages(name) ON DELETE CASCADE,
        feature_name TEXT NOT NULL,
        kind TEXT NOT NULL,
        position INTEGER NOT NULL,
        dependency_name TEXT NOT NULL
    )
    """,
]

PACKAGE_COLUMNS = (
    "name, version, versions, description, git_url, license, "
    "supports, stars, last_modified, cmake_target"
)

_PLACEHOLDERS = {"qmark": "?", "format": "%s", "pyformat": "%s"}


class SqlCatalogStore(CatalogStore):
    def __init__(self, database_url: str, driver: str = "sqlite3"):
        self.database_url = database_url
        self.driver_name = driver
        self.driver = importlib.import_module(driver)
        paramstyle = getattr(self.driver, "paramstyle", "qmark")
        if paramstyle not in _PLACEHOLDERS:
            raise ValueError(f"Unsupported DB-API paramstyle '{paramstyle}' for driver {driver}")
        self._placeholder = _PLACEHOLDERS[paramstyle]

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def _sql(self, statement: str) -> str:
        return statement.replace("?", self._placeholder)

    @contextmanager
    def _connection(self) -> Iterator[Any]:
        try:
            conn = self.driver.connect(self.database_url)
        except self.driver.Error as e:
            raise CatalogStoreError(f"Failed to connect to database: {e}") from e
        try:
            if self.driver_name == "sqlite3":
                try:
                    conn.execute("PRAGMA foreign_keys = ON")
                except self.driver.Error as e:
                    raise CatalogStoreError(f"Failed to open database: {e}") from e
            yield conn
        finally:
            conn.close()

    def _fetchall(self, conn: Any, statement: str, params: Sequence[Any] = ()) -> List[tuple]:
        cursor = conn.cursor()
        try:
            cursor.execute(self._sql(statement), tuple(params))
            return cursor.fetchall()
        finally:
            cursor.close()

    def _write_row(self, conn: Any, report: InsertReport, kind: str, key: str,
                   statement: str, params: Sequence[Any]) -> bool:
        """Write one dependent row in its own transaction; failures are recorded, not raised."""
        cursor = conn.cursor()
        try:
            cursor.execute(self._sql(statement), tuple(params))
            conn.commit()
        except self.driver.Error as e:
            conn.rollback()
            logger.error(f"Error inserting {kind} {key}: {e}")
            report.rows.append(RowResult(kind=kind, key=key, ok=False, error=str(e)))
            return False
        finally:
            cursor.close()
        report.rows.append(RowResult(kind=kind, key=key))
        return True

    def initialize(self) -> None:
        with self._connection() as conn:
            try:
                cursor = conn.cursor()
                for statement in SCHEMA:
                    cursor.execute(statement)
                cursor.close()
                conn.commit()
            except self.driver.Error as e:
                raise CatalogStoreError(f"Failed to initialize catalog schema: {e}") from e
        logger.info(f"Catalog store ready ({self.driver_name}: {self.database_url})")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, package: Package) -> InsertReport:
        report = InsertReport(package=package.name)
        with self._connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    self._sql(f"INSERT INTO packages ({PACKAGE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"),
                    (
                        package.name,
                        package.version,
                        json.dumps(package.versions),
                        package.description,
                        package.git_url,
                        package.license,
                        package.supports,
                        package.stars,
                        package.last_modified,
                        package.cmake_target,
                    ),
                )
                conn.commit()
            except self.driver.IntegrityError as e:
                conn.rollback()
                raise PackageAlreadyExistsError(package.name) from e
            except self.driver.Error as e:
                conn.rollback()
                raise CatalogStoreError(f"Error inserting package {package.name}: {e}") from e
            finally:
                cursor.close()
            report.rows.append(RowResult(kind="package", key=package.name))

            for position, dep in enumerate(package.dependencies):
                self._write_row(
                    conn, report, "dependency", f"{package.name}/{dep}",
                    "INSERT INTO dependencies (package_name, position, dependency_name) VALUES (?, ?, ?)",
                    (package.name, position, dep),
                )

            for feature_name, feature in package.features.items():
                written = self._write_row(
                    conn, report, "feature", f"{package.name}[{feature_name}]",
                    "INSERT INTO features (package_name, feature_name, description) VALUES (?, ?, ?)",
                    (package.name, feature_name, feature.description),
                )
                if not written:
                    continue
                rows = [("dependency", d) for d in feature.dependencies]
                rows += [("feature", f) for f in feature.required_features]
                for position, (kind, dep) in enumerate(rows):
                    self._write_row(
                        conn, report, "feature_dependency", f"{package.name}[{feature_name}]/{dep}",
                        "INSERT INTO feature_dependencies "
                        "(package_name, feature_name, kind, position, dependency_name) VALUES (?, ?, ?, ?, ?)",
                        (package.name, feature_name, kind, position, dep),
                    )

        if not report.ok:
            logger.warning(f"Package {package.name} stored with {len(report.failures)} failed rows")
        return report

    def delete(self, name: str) -> None:
        with self._connection() as conn:
            cursor = conn.cursor()
            try:
                # Children first so engines without foreign key enforcement behave the same.
                for table in ("feature_dependencies", "features", "dependencies"):
                    cursor.execute(self._sql(f"DELETE FROM {table} WHERE package_name = ?"), (name,))
                cursor.execute(self._sql("DELETE FROM packages WHERE name = ?"), (name,))
                conn.commit()
            except self.driver.Error as e:
                conn.rollback()
                raise CatalogStoreError(f"Error deleting package {name}: {e}") from e
            finally:
                cursor.close()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_name(self, name: str) -> Optional[Package]:
        with self._connection() as conn:
            try:
                rows = self._fetchall(
                    conn, f"SELECT {PACKAGE_COLUMNS} FROM packages WHERE name = ?", (name,)
                )
                if not rows:
                    return None
                return self._build_package(conn, rows[0])
            except self.driver.Error as e:
                raise CatalogStoreError(f"Error querying package {name}: {e}") from e

    def list_all(self) -> List[Package]:
        with self._connection() as conn:
            try:
                rows = self._fetchall(conn, f"SELECT {PACKAGE_COLUMNS} FROM packages ORDER BY name")
                return [self._build_package(conn, row) for row in rows]
            except self.driver.Error as e:
                raise CatalogStoreError(f"Error querying packages: {e}") from e

    def _build_package(self, conn: Any, row: Sequence[Any]) -> Package:
        (name, version, versions, description, git_url, license_,
         supports, stars, last_modified, cmake_target) = row
        return Package(
            name=name,
            version=version or "",
            versions=json.loads(versions) if versions else [],
            description=description or "",
            git_url=git_url or "",
            license=license_ or "",
            supports=supports or "",
            stars=stars or 0,
            last_modified=last_modified or "",
            cmake_target=cmake_target or "",
            dependencies=self._package_dependencies(conn, name),
            features=self._package_features(conn, name),
        )

    def _package_dependencies(self, conn: Any, package_name: str) -> List[str]:
        rows = self._fetchall(
            conn,
            "SELECT dependency_name FROM dependencies WHERE package_name = ? ORDER BY position",
            (package_name,),
        )
        return [r[0] for r in rows]

    def _package_features(self, conn: Any, package_name: str) -> Dict[str, Feature]:
        features: Dict[str, Feature] = {}
        rows = self._fetchall(
            conn,
            "SELECT feature_name, description FROM features WHERE package_name = ? ORDER BY feature_name",
            (package_name,),
        )
        for feature_name, description in rows:
            features[feature_name] = Feature(description=description or "")

        dep_rows = self._fetchall(
            conn,
            "SELECT feature_name, kind, dependency_name FROM feature_dependencies "
            "WHERE package_name = ? ORDER BY feature_name, position",
            (package_name,),
        )
        for feature_name, kind, dependency_name in dep_rows:
            feature = features.get(feature_name)
            if feature is None:
                continue
            if kind == "feature":
                feature.required_features.append(dependency_name)
            else:
                feature.dependencies.append(dependency_name)
        return features
