"""Async client SDK for the multi-tenant mailroom API."""

__version__ = "1.0.0"
