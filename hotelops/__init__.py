"""Hotel operations booking policy service."""

__version__ = "1.0.0"
