"""
Data access layer
"""
from .database import db_manager
from .models import User, Brand, Category, Product, Order

from utils.logger import get_logger

logger = get_logger(__name__)

__all__ = [
    "db_manager",
    "User",
    "Brand",
    "Category",
    "Product",
    "Order",
    "initialize_data_layer",
    "cleanup_data_layer",
]

async def initialize_data_layer() -> bool:
    """Open the pool and make sure the schema exists"""
    try:
        await db_manager.initialize()
        await db_manager.create_tables()
        return True

    except Exception as e:
        logger.error("Failed to initialize data layer", error=str(e))
        return False

async def cleanup_data_layer() -> bool:
    try:
        await db_manager.close()
        return True

    except Exception as e:
        logger.error("Failed to cleanup data layer", error=str(e))
        return False
