"""
Domain layer: pydantic models, the error taxonomy, version tag grammars and the
``Catalog`` facade used by the API routes.
"""
