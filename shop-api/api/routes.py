"""
API route registration
"""
from fastapi import APIRouter

from .v1 import auth, brands, categories, orders, products, users
from .health import router as health_router

api_v1_router = APIRouter()

api_v1_router.include_router(
    health_router,
    tags=["health"],
    responses={
        200: {"description": "Success"},
        503: {"description": "Service Unavailable"}
    }
)

api_v1_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["auth"],
    responses={
        200: {"description": "Success"},
        400: {"description": "Bad Request"},
    }
)

api_v1_router.include_router(
    users.router,
    prefix="/users",
    tags=["users"],
    responses={
        200: {"description": "Success"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
    }
)

api_v1_router.include_router(
    brands.router,
    prefix="/brands",
    tags=["brands"],
    responses={
        200: {"description": "Success"},
        404: {"description": "Not Found"},
    }
)

api_v1_router.include_router(
    categories.router,
    prefix="/categories",
    tags=["categories"],
    responses={
        200: {"description": "Success"},
        404: {"description": "Not Found"},
    }
)

api_v1_router.include_router(
    products.router,
    prefix="/products",
    tags=["products"],
    responses={
        200: {"description": "Success"},
        400: {"description": "Bad Request"},
        404: {"description": "Not Found"},
    }
)

api_v1_router.include_router(
    orders.router,
    prefix="/orders",
    tags=["orders"],
    responses={
        200: {"description": "Success"},
        400: {"description": "Bad Request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
    }
)

__all__ = ["api_v1_router"]
