"""Resilient crawler for paginated catalog sites."""

__version__ = "0.1.0"
