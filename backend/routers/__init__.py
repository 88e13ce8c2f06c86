"""
API routers for the Newscast backend.
"""

from .podcasts import router as podcasts_router

__all__ = [
    'podcasts_router',
]
