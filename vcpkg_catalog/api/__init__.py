"""HTTP routes exposing the package catalog."""
