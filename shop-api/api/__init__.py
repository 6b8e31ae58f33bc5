"""
API package - routes and middleware
"""
from .routes import api_v1_router
from .health import router as health_router

__all__ = [
    "api_v1_router",
    "health_router"
]
