"""
Repositories
"""
from .user_repository import user_repo, UserRepository
from .brand_repository import brand_repo, BrandRepository
from .category_repository import category_repo, CategoryRepository
from .product_repository import product_repo, ProductRepository
from .order_repository import order_repo, OrderRepository

__all__ = [
    "user_repo",
    "UserRepository",
    "brand_repo",
    "BrandRepository",
    "category_repo",
    "CategoryRepository",
    "product_repo",
    "ProductRepository",
    "order_repo",
    "OrderRepository",
]
