"""
Database initialization script

    python -m data.init_db            # create tables
    python -m data.init_db --reset    # drop and recreate
"""
import argparse
import asyncio
from data.database import db_manager
from utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

async def init_database(reset: bool = False):
    """Initialize database"""
    try:
        logger.info("Starting database initialization", reset=reset)

        await db_manager.initialize()

        if reset:
            await db_manager.drop_tables()

        await db_manager.create_tables()

        logger.info("Database initialization completed successfully")

    except Exception as e:
        logger.error("Database initialization failed", error=str(e))
        raise
    finally:
        await db_manager.close()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the shop database schema")
    parser.add_argument("--reset", action="store_true", help="drop existing tables first")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(init_database(reset=args.reset))
