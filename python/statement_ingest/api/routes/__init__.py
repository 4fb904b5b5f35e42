"""
API Routes Package

Contains all route modules for the ingestion API.
"""

from .upload import router as upload_router
from .categories import router as categories_router

__all__ = [
    "upload_router",
    "categories_router",
]
