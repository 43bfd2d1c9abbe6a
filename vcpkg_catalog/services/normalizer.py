"""
Normalize raw vcpkg registry dump entries into canonical ``Package`` entities.

Registry dumps are loosely typed: the same logical field shows up in several
JSON shapes depending on the port. Each field is decoded by shape probing
(try variant A, on mismatch try variant B, on exhaustion fail):

* ``Description``: a string, or a list of strings joined with ", ".
* ``Dependencies``: a list mixing plain names and ``{"name", "platform", "host"}``
  objects. Elements of any other shape are skipped with a warning.
* ``Features``: a mapping of feature name -> feature object. Any other shape
  is logged and treated as "no features".

A decode failure raises ``ManifestDecodeError`` and no ``Package`` is produced;
callers drop that single entry and carry on with the rest of the dump.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import StrictStr, TypeAdapter, ValidationError

from vcpkg_catalog.domain.cmake_targets import cmake_target_for
from vcpkg_catalog.domain.errors import ManifestDecodeError
from vcpkg_catalog.domain.models import DependencyRef, Feature, Package

logger = logging.getLogger(__name__)

# Build-system scaffolding ports, not real dependencies.
BOOTSTRAP_DEPENDENCIES = frozenset({"vcpkg-cmake", "vcpkg-cmake-config", "vcpkg-msbuild"})

_STRING = TypeAdapter(StrictStr)
_STRING_LIST = TypeAdapter(List[StrictStr])


def decode_description(value: Any, package_name: Optional[str] = None) -> str:
    """
    Decode a description that is either a string or a list of strings.

    ``None`` (absent) decodes to an empty string.
    """
    if value is None:
        return ""
    try:
        return _STRING.validate_python(value)
    except ValidationError:
        pass
    try:
        return ", ".join(_STRING_LIST.validate_python(value))
    except ValidationError:
        raise ManifestDecodeError(
            f"description must be a string or a list of strings, got {type(value).__name__}",
            package_name,
        )


def decode_dependency_ref(value: Dict[str, Any], package_name: str) -> DependencyRef:
    try:
        return DependencyRef.model_validate(value)
    except ValidationError as e:
        raise ManifestDecodeError(f"invalid dependency object {value!r}: {e}", package_name) from e


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


class ManifestNormalizer:
    """
    Converts one raw registry entry into one canonical ``Package``.

    ``filter_bootstrap`` selects the strict variant, which removes the
    vcpkg-cmake* / vcpkg-msbuild helper ports from dependency lists. The loose
    variant passes them through untouched.
    """

    def __init__(self, filter_bootstrap: bool = True):
        self.filter_bootstrap = filter_bootstrap

    def normalize(self, raw: Dict[str, Any]) -> Package:
        if not isinstance(raw, dict):
            raise ManifestDecodeError(f"manifest entry must be an object, got {type(raw).__name__}")

        name = raw.get("Name")
        if not isinstance(name, str) or not name:
            raise ManifestDecodeError("missing or invalid 'Name'")

        description = decode_description(raw.get("Description"), name)
        dependencies = self._decode_dependencies(raw.get("Dependencies"), name)
        features = self._decode_features(raw.get("Features"), name)

        try:
            return Package(
                name=name,
                version=_text(raw.get("Version")),
                description=description,
                git_url=_text(raw.get("homepage")),
                license=_text(raw.get("License")),
                supports=_text(raw.get("Supports")),
                stars=raw.get("Stars") or 0,
                last_modified=_text(raw.get("LastModified")),
                cmake_target=cmake_target_for(name),
                dependencies=dependencies,
                features=features,
            )
        except ValidationError as e:
            raise ManifestDecodeError(f"invalid package fields: {e}", name) from e

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def _keep(self, dependency: str) -> bool:
        return not (self.filter_bootstrap and dependency in BOOTSTRAP_DEPENDENCIES)

    def _decode_dependencies(self, value: Any, package_name: str) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ManifestDecodeError(
                f"'Dependencies' must be a list, got {type(value).__name__}", package_name
            )

        dependencies: List[str] = []
        for element in value:
            if isinstance(element, str):
                dep_name = element
            elif isinstance(element, dict):
                dep_name = decode_dependency_ref(element, package_name).name
            else:
                logger.warning(f"Skipping dependency of unexpected shape in {package_name}: {element!r}")
                continue
            if self._keep(dep_name):
                dependencies.append(dep_name)
        return dependencies

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------

    def _decode_features(self, value: Any, package_name: str) -> Dict[str, Feature]:
        if not value:
            return {}
        if not isinstance(value, dict):
            logger.warning(
                f"Ignoring 'Features' of {package_name}: expected an object, got {type(value).__name__}"
            )
            return {}

        features: Dict[str, Feature] = {}
        for feature_name, raw_feature in value.items():
            if not isinstance(raw_feature, dict):
                logger.warning(f"Skipping feature {package_name}[{feature_name}]: not an object")
                continue
            dependencies, required = self._decode_feature_dependencies(
                raw_feature.get("dependencies"), package_name, feature_name
            )
            features[feature_name] = Feature(
                description=decode_description(raw_feature.get("description"), package_name),
                dependencies=dependencies,
                required_features=required,
            )
        return features

    def _decode_feature_dependencies(
        self, value: Any, package_name: str, feature_name: str
    ) -> Tuple[List[str], List[str]]:
        """
        Split a feature's dependency list into (dependencies, required_features).

        An object naming the owning package marks the feature as requiring
        itself on the package; the feature's own name is recorded.
        """
        if value is None:
            return [], []
        if not isinstance(value, list):
            raise ManifestDecodeError(
                f"dependencies of feature '{feature_name}' must be a list", package_name
            )

        dependencies: List[str] = []
        required: List[str] = []
        for element in value:
            if isinstance(element, str):
                if self._keep(element):
                    dependencies.append(element)
            elif isinstance(element, dict):
                ref = decode_dependency_ref(element, package_name)
                if ref.name == package_name:
                    required.append(feature_name)
                elif self._keep(ref.name):
                    dependencies.append(ref.name)
            else:
                logger.warning(
                    f"Skipping dependency of unexpected shape in {package_name}[{feature_name}]: {element!r}"
                )
        return dependencies, required
