"""Flat, navigable view over an in-memory forest of JSON-like records, with structural editing."""

__version__ = "0.1.0"
