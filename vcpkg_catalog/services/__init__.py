"""
Services operating on the catalog:

* Normalizing raw registry dump entries into canonical packages.
* Discovering versions from git remotes.
* Caching the package list in Redis.
* Running bulk ingestion.
"""
