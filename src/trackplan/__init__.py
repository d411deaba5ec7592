"""Tracking-plan catalog engine: keeps property/value catalogs consistent with event payloads."""

__version__ = "0.1.0"
