"""Sage ingredient extraction, validation and product identity matching."""

__version__ = "0.4.0"
