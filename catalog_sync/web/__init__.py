"""Flask control surface for the sync run slot."""

from .app import create_app

__all__ = ['create_app']
