"""Web layer for Reviewflow.

Exposes the FastAPI application factory.
"""

from reviewflow.web.app import create_app

__all__ = ["create_app"]
