"""
API model package
"""
from .common import SEO, Address, CategoryRef, BrandRef
from .user import User, AuthResult, UserRole
from .brand import Brand
from .category import Category
from .product import Product, ProductListItem, AdminProductListItem, ProductPagination, AvailableFilters
from .order import Order, OrderStatus, SalesPeriod, OrderDashboard, SalesStat

__all__ = [
    "SEO",
    "Address",
    "CategoryRef",
    "BrandRef",
    "User",
    "AuthResult",
    "UserRole",
    "Brand",
    "Category",
    "Product",
    "ProductListItem",
    "AdminProductListItem",
    "ProductPagination",
    "AvailableFilters",
    "Order",
    "OrderStatus",
    "SalesPeriod",
    "OrderDashboard",
    "SalesStat",
]
