"""Bicycle frame geometry solver and comparison API."""

__version__ = "0.1.0"
