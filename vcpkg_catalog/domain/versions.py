"""
Heuristic classification of git ref names as version tags.
"""

import re
from typing import Iterable, List, Optional

# Tried in order, first match wins.
VERSION_TAG_PATTERNS = [
    ("semver", re.compile(r"^v?\d+\.\d+\.\d+$")),
    ("major_minor", re.compile(r"^v?\d+\.\d+$")),
    ("word_underscore_semver", re.compile(r"^[A-Za-z]+[-_.]?\d+_\d+_\d+$")),
    ("word_semver", re.compile(r"^[A-Za-z]+[-_.]?\d+\.\d+\.\d+$")),
    ("word_major_minor", re.compile(r"^[A-Za-z]+[-_.]?\d+\.\d+$")),
    ("keyword", re.compile(r"^(master|latest|stable|main)$")),
]

REF_NAMESPACES = ("refs/tags/", "refs/heads/")


def classify_tag(tag: str) -> Optional[str]:
    """
    Return the name of the first grammar that matches ``tag`` exactly, or None.
    """
    for name, pattern in VERSION_TAG_PATTERNS:
        if pattern.match(tag):
            return name
    return None


def is_version_tag(tag: str) -> bool:
    return classify_tag(tag) is not None


def parse_ls_remote(output: str) -> List[str]:
    """
    Extract version-looking tags from ``git ls-remote`` output.

    Only lines under ``refs/tags/`` or ``refs/heads/`` qualify; the candidate is
    the last ``/`` component. The remote's listing order is preserved.
    """
    return [tag for tag in _candidate_tags(output.splitlines()) if is_version_tag(tag)]


def _candidate_tags(lines: Iterable[str]) -> Iterable[str]:
    for line in lines:
        line = line.strip()
        if not any(ns in line for ns in REF_NAMESPACES):
            continue
        yield line.rsplit("/", 1)[-1]


def select_current(versions: List[str]) -> str:
    """The current version is the last qualifying tag in listing order."""
    return versions[-1] if versions else ""
