"""Threaded comments for arbitrary commentable entities."""

__version__ = "0.1.0"
