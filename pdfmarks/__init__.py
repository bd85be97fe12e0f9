"""PDF bookmark/outline editing engine."""

__version__ = "1.0.0"
