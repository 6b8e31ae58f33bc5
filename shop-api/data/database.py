"""
Database connection and management
"""
from typing import Optional
from contextlib import asynccontextmanager
import asyncpg
from asyncpg import Pool
from configs.database_config import database_config
from utils.logger import get_logger

logger = get_logger(__name__)

TABLES = ["users", "brands", "categories", "products", "orders"]

USERS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    username VARCHAR(50) NOT NULL UNIQUE,
    email VARCHAR(255) NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    first_name VARCHAR(100),
    last_name VARCHAR(100),
    phone VARCHAR(50),
    avatar TEXT,
    is_active BOOLEAN DEFAULT TRUE,
    is_verified BOOLEAN DEFAULT FALSE,
    role VARCHAR(20) NOT NULL DEFAULT 'customer' CHECK (role IN ('customer', 'admin', 'manager')),
    preferences JSONB DEFAULT '{}',
    addresses JSONB DEFAULT '[]',
    wishlist JSONB DEFAULT '[]',
    customer_data JSONB DEFAULT '{}',
    password_reset_token VARCHAR(64),
    password_reset_expires TIMESTAMP WITH TIME ZONE,
    password_reset_requested_at TIMESTAMP WITH TIME ZONE,
    last_login TIMESTAMP WITH TIME ZONE,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);
"""

BRANDS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS brands (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    name VARCHAR(100) NOT NULL UNIQUE,
    slug VARCHAR(120) NOT NULL UNIQUE,
    description TEXT,
    logo TEXT,
    website TEXT,
    is_active BOOLEAN DEFAULT TRUE,
    seo JSONB DEFAULT '{}',
    products_count INTEGER DEFAULT 0,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);
"""

# ancestors is the materialized path root -> parent: [{"id", "name", "slug"}, ...]
CATEGORIES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS categories (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    name VARCHAR(100) NOT NULL,
    slug VARCHAR(120) NOT NULL UNIQUE,
    description TEXT,
    parent_id UUID REFERENCES categories(id) ON DELETE RESTRICT,
    ancestors JSONB DEFAULT '[]',
    image TEXT,
    seo JSONB DEFAULT '{}',
    is_active BOOLEAN DEFAULT TRUE,
    display_order INTEGER DEFAULT 0,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);
"""

PRODUCTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS products (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    name VARCHAR(200) NOT NULL,
    slug VARCHAR(220) NOT NULL UNIQUE,
    description TEXT NOT NULL,
    short_description VARCHAR(500),
    brand_id UUID REFERENCES brands(id) ON DELETE RESTRICT,
    category_id UUID NOT NULL REFERENCES categories(id) ON DELETE RESTRICT,
    images JSONB DEFAULT '[]',
    tags TEXT[] DEFAULT '{}',
    attributes JSONB DEFAULT '{}',
    price NUMERIC(12, 2) NOT NULL CHECK (price >= 0),
    compare_at_price NUMERIC(12, 2),
    variants JSONB DEFAULT '[]',
    seo JSONB DEFAULT '{}',
    status VARCHAR(20) NOT NULL DEFAULT 'draft' CHECK (status IN ('draft', 'active', 'archived')),
    is_published BOOLEAN DEFAULT FALSE,
    is_featured BOOLEAN DEFAULT FALSE,
    has_variants BOOLEAN DEFAULT FALSE,
    inventory_quantity INTEGER DEFAULT 0,
    inventory_tracking BOOLEAN DEFAULT TRUE,
    reviews JSONB DEFAULT '[]',
    average_rating DOUBLE PRECISION DEFAULT 0,
    review_count INTEGER DEFAULT 0,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);
"""

ORDERS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS orders (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    order_number VARCHAR(40) NOT NULL UNIQUE,
    user_id UUID REFERENCES users(id) ON DELETE SET NULL,
    user_snapshot JSONB DEFAULT '{}',
    items JSONB NOT NULL DEFAULT '[]',
    subtotal NUMERIC(12, 2) NOT NULL DEFAULT 0,
    shipping_cost NUMERIC(12, 2) NOT NULL DEFAULT 0,
    tax_amount NUMERIC(12, 2) NOT NULL DEFAULT 0,
    discount_total NUMERIC(12, 2) NOT NULL DEFAULT 0,
    total_amount NUMERIC(12, 2) NOT NULL DEFAULT 0,
    currency VARCHAR(3) DEFAULT 'USD',
    status VARCHAR(30) NOT NULL DEFAULT 'pending',
    status_history JSONB DEFAULT '[]',
    payment_status VARCHAR(30) NOT NULL DEFAULT 'pending',
    fulfillment_status VARCHAR(30) NOT NULL DEFAULT 'unfulfilled',
    shipping JSONB DEFAULT '{}',
    billing JSONB DEFAULT '{}',
    coupon_code VARCHAR(50),
    customer_note TEXT,
    internal_notes JSONB DEFAULT '[]',
    ip_address VARCHAR(64),
    metadata JSONB DEFAULT '{}',
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);
"""

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);",
    "CREATE INDEX IF NOT EXISTS idx_users_reset_token ON users(password_reset_token);",
    "CREATE INDEX IF NOT EXISTS idx_brands_active ON brands(is_active);",
    "CREATE INDEX IF NOT EXISTS idx_categories_parent_id ON categories(parent_id);",
    "CREATE INDEX IF NOT EXISTS idx_categories_ancestors ON categories USING GIN (ancestors jsonb_path_ops);",
    "CREATE INDEX IF NOT EXISTS idx_categories_display ON categories(display_order, name);",
    "CREATE INDEX IF NOT EXISTS idx_products_category_id ON products(category_id);",
    "CREATE INDEX IF NOT EXISTS idx_products_brand_id ON products(brand_id);",
    "CREATE INDEX IF NOT EXISTS idx_products_visibility ON products(status, is_published);",
    "CREATE INDEX IF NOT EXISTS idx_products_created_at ON products(created_at, id);",
    "CREATE INDEX IF NOT EXISTS idx_products_price ON products(price, id);",
    "CREATE INDEX IF NOT EXISTS idx_products_rating ON products(average_rating, review_count);",
    "CREATE INDEX IF NOT EXISTS idx_orders_user_id ON orders(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_orders_status ON orders(status);",
    "CREATE INDEX IF NOT EXISTS idx_orders_created_at ON orders(created_at);",
]

class DatabaseManager:
    """Database Manager"""

    def __init__(self):
        self.pool: Optional[Pool] = None
        self._initialized = False

    async def initialize(self):
        """Initialize database connection pool"""
        if self._initialized:
            return

        try:
            logger.info("Initializing database connection pool",
                        host=database_config.host, database=database_config.database)

            self.pool = await asyncpg.create_pool(
                dsn=database_config.database_url,
                min_size=database_config.pool_min_size,
                max_size=database_config.pool_max_size,
                command_timeout=database_config.command_timeout
            )

            async with self.pool.acquire() as conn:
                await conn.execute("SELECT 1")

            self._initialized = True
            logger.info("Database connection pool initialized successfully")

        except Exception as e:
            logger.error("Failed to initialize database connection pool", error=str(e))
            raise

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def close(self):
        """Close database connection pool"""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self._initialized = False
            logger.info("Database connection pool closed")

    @asynccontextmanager
    async def get_connection(self):
        """Get database connection context manager"""
        if not self._initialized:
            await self.initialize()

        async with self.pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self):
        """Connection with an open transaction; rolled back if the block raises"""
        async with self.get_connection() as connection:
            async with connection.transaction():
                yield connection

    async def ping(self) -> bool:
        async with self.get_connection() as conn:
            return await conn.fetchval("SELECT 1") == 1

    async def _enable_uuid_extension(self, conn):
        await conn.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp";')
        logger.debug("UUID extension enabled")

    async def _create_indexes(self, conn):
        for index_sql in INDEXES:
            await conn.execute(index_sql)
            logger.debug("Index created", sql=index_sql)

    async def _create_triggers(self, conn):
        """updated_at is maintained by the database on every UPDATE"""
        await conn.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ language 'plpgsql';
        """)

        for table in TABLES:
            await conn.execute(f"""
            DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table};
            CREATE TRIGGER update_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW
                EXECUTE FUNCTION update_updated_at_column();
            """)
        logger.debug("Triggers created")

    async def drop_tables(self):
        """Drop all tables (for testing or reset)"""
        drop_sql = """
        DROP TABLE IF EXISTS orders CASCADE;
        DROP TABLE IF EXISTS products CASCADE;
        DROP TABLE IF EXISTS categories CASCADE;
        DROP TABLE IF EXISTS brands CASCADE;
        DROP TABLE IF EXISTS users CASCADE;
        DROP FUNCTION IF EXISTS update_updated_at_column() CASCADE;
        """

        async with self.get_connection() as conn:
            await conn.execute(drop_sql)
            logger.info("Database tables dropped")

    async def create_tables(self):
        """Create database tables"""
        try:
            logger.info("Creating database tables...")

            async with self.transaction() as conn:
                await self._enable_uuid_extension(conn)

                for table_sql in (USERS_TABLE_SQL, BRANDS_TABLE_SQL, CATEGORIES_TABLE_SQL,
                                  PRODUCTS_TABLE_SQL, ORDERS_TABLE_SQL):
                    await conn.execute(table_sql)

                await self._create_indexes(conn)
                await self._create_triggers(conn)

            logger.info("Database tables created successfully")

        except Exception as e:
            logger.error("Failed to create database tables", error=str(e))
            raise


db_manager = DatabaseManager()
