"""PrintHub: campus print shop ordering backend."""

__version__ = "0.1.0"
