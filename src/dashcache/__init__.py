"""Crypto dashboard cache-refresh and technical-indicator pipeline."""

__version__ = "1.0.0"
