"""Messaging and realtime notification backend for the lawyer services app."""

__version__ = "0.1.0"
