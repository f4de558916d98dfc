"""Lapor API: civic complaint reporting services."""

__version__ = "0.1.0"
