"""HTTP API."""

from compiler_craft.api.app import create_app

__all__ = ["create_app"]
