"""Relational persistence for the package catalog."""
