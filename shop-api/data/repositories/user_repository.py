"""
User Data Access Layer
"""
from typing import Any, Dict, List, Optional, Tuple

from data.models.user import User, default_customer_data, default_preferences
from data.query_builder import QueryBuilder
from data.repositories.base import BaseRepository
from utils.logger import get_logger
from utils.time_utils import now

logger = get_logger(__name__)

USER_COLUMNS = """
    id, username, email, password_hash, first_name, last_name, phone, avatar,
    is_active, is_verified, role, preferences, addresses, wishlist, customer_data,
    password_reset_token, password_reset_expires, password_reset_requested_at,
    last_login, created_at, updated_at
"""

SORT_FIELDS = {
    "created_at": "created_at",
    "updated_at": "updated_at",
    "username": "username",
    "email": "email",
    "last_login": "last_login",
}

class UserRepository(BaseRepository):
    """User Data Access Class"""

    def _row_to_user(self, row) -> User:
        return User(
            id=str(row["id"]),
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            phone=row["phone"],
            avatar=row["avatar"],
            is_active=row["is_active"],
            is_verified=row["is_verified"],
            role=row["role"],
            preferences=self._parse_json(row["preferences"], default_preferences()),
            addresses=self._parse_json(row["addresses"], []),
            wishlist=self._parse_json(row["wishlist"], []),
            customer_data=self._parse_json(row["customer_data"], default_customer_data()),
            password_reset_token=row["password_reset_token"],
            password_reset_expires=row["password_reset_expires"],
            password_reset_requested_at=row["password_reset_requested_at"],
            last_login=row["last_login"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def create(self, user: User, conn=None) -> User:
        """Create new user"""
        try:
            async with self._acquire(conn) as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO users (id, username, email, password_hash, first_name, last_name, phone,
                                       avatar, is_active, is_verified, role, preferences, addresses,
                                       wishlist, customer_data)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15)
                    RETURNING {USER_COLUMNS}
                    """,
                    user.id,
                    user.username,
                    user.email,
                    user.password_hash,
                    user.first_name,
                    user.last_name,
                    user.phone,
                    user.avatar,
                    user.is_active,
                    user.is_verified,
                    user.role,
                    self._dump_json(user.preferences),
                    self._dump_json(user.addresses),
                    self._dump_json(user.wishlist),
                    self._dump_json(user.customer_data),
                )

            logger.info("User created", user_id=user.id, role=user.role)
            return self._row_to_user(row)

        except Exception as e:
            logger.error("Failed to create user", error=str(e), email=user.email)
            raise

    async def _get_one(self, where: str, value: Any, conn=None, for_update: bool = False) -> Optional[User]:
        lock = " FOR UPDATE" if for_update else ""
        async with self._acquire(conn) as conn:
            row = await conn.fetchrow(f"SELECT {USER_COLUMNS} FROM users WHERE {where}{lock}", value)
        return self._row_to_user(row) if row else None

    async def get_by_id(self, user_id: str, conn=None, for_update: bool = False) -> Optional[User]:
        """Get user by ID"""
        try:
            return await self._get_one("id = $1", user_id, conn, for_update)
        except Exception as e:
            logger.error("Failed to get user", error=str(e), user_id=user_id)
            raise

    async def get_by_email(self, email: str) -> Optional[User]:
        try:
            return await self._get_one("lower(email) = lower($1)", email)
        except Exception as e:
            logger.error("Failed to get user by email", error=str(e))
            raise

    async def get_by_username(self, username: str) -> Optional[User]:
        try:
            return await self._get_one("lower(username) = lower($1)", username)
        except Exception as e:
            logger.error("Failed to get user by username", error=str(e))
            raise

    async def get_by_reset_token(self, token_hash: str) -> Optional[User]:
        """User holding this (hashed) reset token, provided it has not expired"""
        try:
            async with self._acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    SELECT {USER_COLUMNS} FROM users
                    WHERE password_reset_token = $1 AND password_reset_expires > $2
                    """,
                    token_hash,
                    now(),
                )
            return self._row_to_user(row) if row else None
        except Exception as e:
            logger.error("Failed to get user by reset token", error=str(e))
            raise

    async def find_all(self, role: Optional[str] = None, is_active: Optional[bool] = None,
                   is_verified: Optional[bool] = None, search: Optional[str] = None,
                   sort_by: str = "created_at", sort_order: str = "desc",
                   limit: int = 20, offset: int = 0) -> Tuple[List[User], int]:
        """Filtered page of users plus the total match count"""
        qb = QueryBuilder()
        qb.where_if(role, "role = {}")
        qb.where_if(is_active, "is_active = {}")
        qb.where_if(is_verified, "is_verified = {}")
        qb.search(search, ["username", "email", "first_name", "last_name"])

        column = SORT_FIELDS.get(sort_by, "created_at")
        direction = "ASC" if sort_order == "asc" else "DESC"
        where_sql = qb.where_sql()

        try:
            async with self._acquire() as conn:
                total = await conn.fetchval(f"SELECT COUNT(*) FROM users {where_sql}", *qb.params)
                rows = await conn.fetch(
                    f"""
                    SELECT {USER_COLUMNS} FROM users {where_sql}
                    ORDER BY {column} {direction}, id {direction}
                    LIMIT ${qb.next_index} OFFSET ${qb.next_index + 1}
                    """,
                    *qb.params, limit, offset
                )
            return [self._row_to_user(row) for row in rows], total

        except Exception as e:
            logger.error("Failed to list users", error=str(e))
            raise

    async def update(self, user: User, conn=None) -> User:
        """Persist every mutable column of ``user``"""
        try:
            async with self._acquire(conn) as conn:
                row = await conn.fetchrow(
                    f"""
                    UPDATE users
                    SET username = $2, email = $3, password_hash = $4, first_name = $5, last_name = $6,
                        phone = $7, avatar = $8, is_active = $9, is_verified = $10, role = $11,
                        preferences = $12, addresses = $13, wishlist = $14, customer_data = $15,
                        password_reset_token = $16, password_reset_expires = $17,
                        password_reset_requested_at = $18, last_login = $19
                    WHERE id = $1
                    RETURNING {USER_COLUMNS}
                    """,
                    user.id,
                    user.username,
                    user.email,
                    user.password_hash,
                    user.first_name,
                    user.last_name,
                    user.phone,
                    user.avatar,
                    user.is_active,
                    user.is_verified,
                    user.role,
                    self._dump_json(user.preferences),
                    self._dump_json(user.addresses),
                    self._dump_json(user.wishlist),
                    self._dump_json(user.customer_data),
                    user.password_reset_token,
                    user.password_reset_expires,
                    user.password_reset_requested_at,
                    user.last_login,
                )

            logger.debug("User updated", user_id=user.id)
            return self._row_to_user(row) if row else user

        except Exception as e:
            logger.error("Failed to update user", error=str(e), user_id=user.id)
            raise

    async def touch_last_login(self, user_id: str):
        try:
            async with self._acquire() as conn:
                await conn.execute("UPDATE users SET last_login = NOW() WHERE id = $1", user_id)
        except Exception as e:
            logger.error("Failed to update last login", error=str(e), user_id=user_id)
            raise

    async def update_customer_data(self, user_id: str, customer_data: Dict[str, Any], conn=None):
        try:
            async with self._acquire(conn) as conn:
                await conn.execute(
                    "UPDATE users SET customer_data = $2 WHERE id = $1",
                    user_id,
                    self._dump_json(customer_data),
                )
        except Exception as e:
            logger.error("Failed to update customer data", error=str(e), user_id=user_id)
            raise

    async def delete(self, user_id: str) -> bool:
        try:
            async with self._acquire() as conn:
                result = await conn.execute("DELETE FROM users WHERE id = $1", user_id)

            success = self._rows_affected(result) > 0
            if success:
                logger.info("User deleted", user_id=user_id)
            return success

        except Exception as e:
            logger.error("Failed to delete user", error=str(e), user_id=user_id)
            raise


user_repo = UserRepository()
