"""
Shared repository helpers
"""
import json
from contextlib import asynccontextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from data.database import db_manager
from utils.logger import get_logger

logger = get_logger(__name__)

def _json_default(value: Any):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")

def to_decimal(value: Any) -> Optional[Decimal]:
    """Money values are written to NUMERIC columns as Decimal"""
    if value is None:
        return None
    return Decimal(str(value))

def to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)

class BaseRepository:
    """Connection handling and JSONB (de)serialisation shared by repositories"""

    @asynccontextmanager
    async def _acquire(self, conn=None):
        """Reuse the caller's connection (e.g. inside a transaction) or borrow one from the pool"""
        if conn is not None:
            yield conn
        else:
            async with db_manager.get_connection() as pooled:
                yield pooled

    def _parse_json(self, value: Any, default: Any = None) -> Any:
        if value is None:
            return default
        if isinstance(value, (dict, list)):
            return value
        if isinstance(value, str):
            try:
                return json.loads(value)
            except (json.JSONDecodeError, TypeError):
                logger.warning("Failed to parse JSON column", value=value[:100])
                return default
        return default

    def _dump_json(self, value: Any) -> str:
        return json.dumps(value, default=_json_default)

    @staticmethod
    def _rows_affected(result: str) -> int:
        parts = result.split() if result else []
        return int(parts[-1]) if parts and parts[-1].isdigit() else 0
