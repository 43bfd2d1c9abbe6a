"""
vcpkg catalog service.

Normalizes vcpkg registry dumps into a canonical package graph, enriches
packages with version tags discovered on their git remotes, and serves the
catalog over a FastAPI app backed by a relational store and a Redis cache.
"""

__version__ = "0.1.0"
