"""
API router modules for different endpoints.

This module contains all the route handlers organized by functionality.
"""

from . import health, pages, uploads

__all__ = [
    "health",
    "pages",
    "uploads",
]
