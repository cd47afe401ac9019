"""Validate and apply change sets to lasting power of attorney records."""

__version__ = "0.1.0"