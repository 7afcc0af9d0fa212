"""Rubrik Security Cloud reporting client."""

__version__ = "0.1.0"
