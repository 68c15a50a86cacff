"""CLI module for tracelens."""

from .main import app

__all__ = ['app']
