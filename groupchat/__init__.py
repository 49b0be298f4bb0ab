"""Authenticated group messaging over HTTP."""

__version__ = "1.0.0"
