"""Configuration and FastAPI dependency providers."""
