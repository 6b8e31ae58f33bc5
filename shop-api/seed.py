"""
Demo data loader

    python seed.py            # create schema and load demo catalog
    python seed.py --reset    # drop everything first
"""
import argparse
import asyncio

from data.database import db_manager
from data.repositories.user_repository import user_repo
from models.brand import BrandCreateRequest
from models.category import CategoryCreateRequest
from models.product import ProductCreateRequest
from models.user import AdminCreateUserRequest
from services.brand_service import brand_service
from services.category_service import category_service
from services.product_service import product_service
from services.user_service import user_service
from utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

USERS = [
    {"username": "admin", "email": "admin@luxuryshop.com", "password": "admin123",
     "first_name": "Shop", "last_name": "Admin", "role": "admin", "is_verified": True},
    {"username": "jdoe", "email": "jane@example.com", "password": "customer123",
     "first_name": "Jane", "last_name": "Doe"},
]

BRANDS = [
    {"name": "Maison Lumière", "description": "Parisian couture house founded in 1921",
     "website": "https://maison-lumiere.example.com"},
    {"name": "Aurelio Milano", "description": "Italian leather goods and tailoring"},
    {"name": "Nordhaven", "description": "Scandinavian fine jewellery"},
]

# name -> children
CATEGORY_TREE = {
    "Women": {"Dresses": {}, "Handbags": {"Totes": {}, "Clutches": {}}},
    "Men": {"Tailoring": {}, "Accessories": {}},
    "Jewellery": {},
}

PRODUCTS = [
    {"name": "Silk Evening Gown", "category": "Dresses", "brand": "Maison Lumière", "price": 2450.0,
     "description": "Hand finished silk gown with a cathedral train.",
     "attributes": {"material": "silk"}, "is_featured": True,
     "variants": [
         {"name": "Ivory / S", "sku": "GOWN-IV-S", "price": 2450.0,
          "attributes": {"color": "ivory", "size": "S"}, "inventory_quantity": 3},
         {"name": "Noir / M", "sku": "GOWN-NO-M", "price": 2450.0,
          "attributes": {"color": "black", "size": "M"}, "inventory_quantity": 2},
     ]},
    {"name": "Calfskin Tote", "category": "Totes", "brand": "Aurelio Milano", "price": 1890.0,
     "description": "Structured tote in full grain calfskin.",
     "attributes": {"material": "leather", "color": "cognac"}, "inventory_quantity": 12},
    {"name": "Crystal Minaudière", "category": "Clutches", "brand": "Maison Lumière", "price": 3200.0,
     "description": "Evening clutch set with hand applied crystals.",
     "attributes": {"material": "brass", "color": "silver"}, "inventory_quantity": 4, "is_featured": True},
    {"name": "Double-Breasted Wool Suit", "category": "Tailoring", "brand": "Aurelio Milano", "price": 3900.0,
     "description": "Super 150s wool suit, half canvassed.",
     "attributes": {"material": "wool", "color": "navy"}, "inventory_quantity": 6},
    {"name": "Fjord Diamond Pendant", "category": "Jewellery", "brand": "Nordhaven", "price": 5600.0,
     "description": "18k white gold pendant with a 0.5ct diamond.",
     "attributes": {"material": "white gold"}, "inventory_quantity": 2},
]

async def seed_users():
    for data in USERS:
        if await user_repo.get_by_email(data["email"]):
            logger.info("User exists, skipping", email=data["email"])
            continue
        await user_service.create_user(AdminCreateUserRequest(**data))
        logger.info("User seeded", email=data["email"])

async def seed_brands() -> dict:
    brands = {}
    for data in BRANDS:
        brand = await brand_service.create_brand(BrandCreateRequest(**data))
        brands[brand.name] = brand.id
    return brands

async def seed_categories(tree: dict, parent_id: str = None, ids: dict = None) -> dict:
    ids = {} if ids is None else ids
    for order, (name, children) in enumerate(tree.items()):
        category = await category_service.create_category(
            CategoryCreateRequest(name=name, parent=parent_id, display_order=order)
        )
        ids[name] = category.id
        await seed_categories(children, category.id, ids)
    return ids

async def seed_products(categories: dict, brands: dict):
    for data in PRODUCTS:
        payload = dict(data)
        payload["category"] = categories[payload["category"]]
        payload["brand"] = brands[payload["brand"]]
        payload.setdefault("status", "active")
        payload.setdefault("is_published", True)
        payload["images"] = [{"url": f"https://cdn.luxuryshop.example.com/{data['name'].lower().replace(' ', '-')}.jpg",
                              "alt": data["name"]}]
        product = await product_service.create_product(ProductCreateRequest(**payload))
        logger.info("Product seeded", slug=product.slug)

async def seed(reset: bool = False):
    try:
        await db_manager.initialize()
        if reset:
            await db_manager.drop_tables()
        await db_manager.create_tables()

        await seed_users()
        brands = await seed_brands()
        categories = await seed_categories(CATEGORY_TREE)
        await seed_products(categories, brands)
        logger.info("Seeding completed", brands=len(brands), categories=len(categories),
                    products=len(PRODUCTS))

    except Exception as e:
        logger.error("Seeding failed", error=str(e))
        raise
    finally:
        await db_manager.close()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load demo catalog data")
    parser.add_argument("--reset", action="store_true", help="drop existing tables first")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(seed(reset=args.reset))
