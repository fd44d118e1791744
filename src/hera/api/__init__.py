"""HTTP API for hera application."""

from hera.api.server import create_app

__all__ = ["create_app"]
