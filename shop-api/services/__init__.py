"""
Service Layer Package
"""
from .email_service import email_service, EmailService
from .user_service import user_service, UserService
from .brand_service import brand_service, BrandService
from .category_service import category_service, CategoryService
from .product_service import product_service, ProductService
from .order_service import order_service, OrderService

__all__ = [
    "email_service",
    "EmailService",
    "user_service",
    "UserService",
    "brand_service",
    "BrandService",
    "category_service",
    "CategoryService",
    "product_service",
    "ProductService",
    "order_service",
    "OrderService",
]
