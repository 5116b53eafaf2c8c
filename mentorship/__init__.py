"""Mentorship Bridge: multi-tenant mentorship program service."""

__version__ = "0.1.0"
