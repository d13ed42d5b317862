"""HTTP surface for the checkout redirect service."""
from .app import create_app

__all__ = ["create_app"]
