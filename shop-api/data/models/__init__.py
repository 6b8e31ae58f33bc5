"""
Data models
"""
from .user import User
from .brand import Brand
from .category import Category
from .product import Product
from .order import Order

__all__ = ["User", "Brand", "Category", "Product", "Order"]
