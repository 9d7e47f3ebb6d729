"""
Presentation layer containing the HTTP interface.

This layer handles the upload pages, the JSON API and request/response
processing.
"""

from .api.app import create_app

__all__ = [
    "create_app",
]
