"""
User Service
"""
import asyncio
from datetime import timedelta
from typing import Any, Dict, List, Optional, Set

from data.models.user import ROLES, User as DataUser
from data.repositories.product_repository import product_repo
from data.repositories.user_repository import user_repo
from models.product import ProductListItem
from models.user import (
    AddressRequest,
    AdminCreateUserRequest,
    AuthResult,
    LoginRequest,
    PasswordUpdateRequest,
    RegisterRequest,
    User as ApiUser,
    UserUpdateRequest,
)
from services.email_service import email_service
from configs.auth_config import auth_config
from utils.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from utils.id_generator import generate_id, generate_reset_token
from utils.logger import get_logger
from utils.pagination import build_pagination_result, get_pagination_params
from utils.security import create_access_token, hash_password, hash_reset_token, verify_password
from utils.time_utils import ms_from_now, now
from utils.validators import validate_uuid

logger = get_logger(__name__)

class UserService:
    """Accounts, authentication, addresses and wishlist"""

    def __init__(self):
        self._background_tasks: Set[asyncio.Task] = set()

    def _to_api(self, user: DataUser) -> ApiUser:
        return ApiUser.model_validate(user)

    def _auth_result(self, user: DataUser) -> AuthResult:
        token = create_access_token(user.id, user.username, user.email, user.role)
        return AuthResult(user=self._to_api(user), token=token)

    def _spawn(self, coro, description: str):
        """Run ``coro`` in the background; failures are logged, never raised to the request"""
        async def runner():
            try:
                await coro
            except Exception as e:
                logger.error(f"Background task failed: {description}", error=str(e))

        task = asyncio.create_task(runner())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def get_user_model(self, user_id: str) -> DataUser:
        """Data model for ``user_id`` or NotFoundError"""
        user_id = validate_uuid(user_id, "Invalid user ID format")
        user = await user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def _ensure_unique(self, email: Optional[str], username: Optional[str],
                             exclude_id: Optional[str] = None):
        if email:
            existing = await user_repo.get_by_email(email)
            if existing and existing.id != exclude_id:
                raise ConflictError("Email already in use")
        if username:
            existing = await user_repo.get_by_username(username)
            if existing and existing.id != exclude_id:
                raise ConflictError("Username already in use")

    def _ensure_self_or_admin(self, user_id: str, actor: DataUser, action: str):
        if actor.id != user_id and not actor.is_admin:
            raise PermissionDeniedError(f"Not authorized to {action} this user")

    async def register_user(self, dto: RegisterRequest) -> AuthResult:
        """Create a customer account and sign it in"""
        await self._ensure_unique(dto.email, dto.username)

        user = DataUser(
            id=generate_id(),
            username=dto.username,
            email=dto.email,
            password_hash=hash_password(dto.password),
            first_name=dto.first_name,
            last_name=dto.last_name,
            phone=dto.phone,
            role="customer",
        )
        user = await user_repo.create(user)
        logger.info("User registered", user_id=user.id, username=user.username)
        return self._auth_result(user)

    async def login_user(self, dto: LoginRequest) -> AuthResult:
        user = await user_repo.get_by_email(dto.email)
        if not user or not verify_password(dto.password, user.password_hash):
            logger.warning("Failed login attempt", email=dto.email)
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        await user_repo.touch_last_login(user.id)
        user.last_login = now()
        logger.info("User logged in", user_id=user.id)
        return self._auth_result(user)

    async def get_user_by_id(self, user_id: str) -> ApiUser:
        return self._to_api(await self.get_user_model(user_id))

    async def get_current_user(self, user: DataUser) -> ApiUser:
        return self._to_api(user)

    async def get_all_users(self, role: Optional[str] = None, is_active: Optional[bool] = None,
                            is_verified: Optional[bool] = None, search: Optional[str] = None,
                            page: Any = None, limit: Any = None,
                            sort_by: str = "created_at", sort_order: str = "desc") -> Dict[str, Any]:
        params = get_pagination_params(page, limit, default_limit=20)
        users, total = await user_repo.find_all(
            role=role,
            is_active=is_active,
            is_verified=is_verified,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=params.limit,
            offset=params.offset,
        )
        return {
            "users": [self._to_api(user) for user in users],
            "pagination": build_pagination_result(total, params.page, params.limit),
        }

    async def update_user(self, user_id: str, dto: UserUpdateRequest, actor: DataUser) -> ApiUser:
        user = await self.get_user_model(user_id)
        self._ensure_self_or_admin(user.id, actor, "update")

        changes = dto.model_dump(exclude_unset=True)
        if not actor.is_admin:
            # Only admins may change roles
            changes.pop("role", None)

        await self._ensure_unique(
            changes.get("email") if changes.get("email") != user.email else None,
            changes.get("username") if changes.get("username") != user.username else None,
            exclude_id=user.id,
        )

        password = changes.pop("password", None)
        if password:
            user.password_hash = hash_password(password)

        for key, value in changes.items():
            if key == "role" and value is not None:
                value = value.value if hasattr(value, "value") else value
            if key == "preferences" and value is not None:
                value = {**(user.preferences or {}), **value}
            setattr(user, key, value)

        user = await user_repo.update(user)
        logger.info("User updated", user_id=user.id, fields=list(changes))
        return self._to_api(user)

    async def delete_user(self, user_id: str, actor: DataUser):
        user = await self.get_user_model(user_id)
        self._ensure_self_or_admin(user.id, actor, "delete")
        await user_repo.delete(user.id)

    async def update_password(self, user_id: str, dto: PasswordUpdateRequest, actor: DataUser):
        user = await self.get_user_model(user_id)
        if actor.id != user.id:
            raise PermissionDeniedError("Not authorized to change this user's password")
        if not verify_password(dto.current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        user.password_hash = hash_password(dto.new_password)
        await user_repo.update(user)
        logger.info("Password updated", user_id=user.id)

    async def change_user_role(self, user_id: str, role: str) -> ApiUser:
        if role not in ROLES:
            raise ValidationError(f"Invalid role. Must be one of: {', '.join(ROLES)}")
        user = await self.get_user_model(user_id)
        user.role = role
        user = await user_repo.update(user)
        logger.info("User role changed", user_id=user.id, role=role)
        return self._to_api(user)

    async def toggle_user_active(self, user_id: str, is_active: Optional[bool]) -> ApiUser:
        if is_active is None:
            raise ValidationError("is_active field is required")
        user = await self.get_user_model(user_id)
        user.is_active = is_active
        user = await user_repo.update(user)
        logger.info("User active flag changed", user_id=user.id, is_active=is_active)
        return self._to_api(user)

    async def create_user(self, dto: AdminCreateUserRequest) -> Dict[str, Any]:
        """Admin-created account; no token is issued"""
        await self._ensure_unique(dto.email, dto.username)

        user = DataUser(
            id=generate_id(),
            username=dto.username,
            email=dto.email,
            password_hash=hash_password(dto.password),
            first_name=dto.first_name,
            last_name=dto.last_name,
            phone=dto.phone,
            role=dto.role.value if hasattr(dto.role, "value") else dto.role,
            is_active=dto.is_active,
            is_verified=dto.is_verified,
        )
        user = await user_repo.create(user)
        return {"user": self._to_api(user), "message": "User created successfully"}

    async def forgot_password(self, email: str):
        """
        Issue a reset token and email it.

        Always returns normally so callers cannot probe which emails exist.
        """
        user = await user_repo.get_by_email(email)
        if not user:
            logger.info("Password reset requested for unknown email")
            return

        cooldown = timedelta(milliseconds=auth_config.password_reset_cooldown)
        if user.password_reset_requested_at and now() - user.password_reset_requested_at < cooldown:
            logger.info("Password reset requested within cooldown", user_id=user.id)
            return

        token = generate_reset_token()
        user.password_reset_token = hash_reset_token(token)
        user.password_reset_expires = ms_from_now(auth_config.password_reset_expiration)
        user.password_reset_requested_at = now()
        await user_repo.update(user)

        self._spawn(
            email_service.send_password_reset_email(user.email, token, user.full_name),
            "password reset email",
        )
        logger.info("Password reset token issued", user_id=user.id)

    async def reset_password(self, token: str, password: str):
        user = await user_repo.get_by_reset_token(hash_reset_token(token))
        if not user:
            raise ValidationError("Invalid or expired token")

        user.password_hash = hash_password(password)
        user.password_reset_token = None
        user.password_reset_expires = None
        user.password_reset_requested_at = None
        await user_repo.update(user)
        logger.info("Password reset completed", user_id=user.id)

        if user.wants_email:
            self._spawn(
                email_service.send_password_reset_confirmation(user.email, user.full_name),
                "password reset confirmation",
            )

    async def add_address(self, user: DataUser, dto: AddressRequest) -> ApiUser:
        address = dto.model_dump()
        address["id"] = generate_id()
        user.addresses.append(address)
        if address["is_default"] or len(user.addresses) == 1:
            user.set_default_address(address["id"])
        user = await user_repo.update(user)
        return self._to_api(user)

    async def remove_address(self, user: DataUser, address_id: str) -> ApiUser:
        remaining = [addr for addr in user.addresses if addr.get("id") != address_id]
        if len(remaining) == len(user.addresses):
            raise NotFoundError("Address not found")
        removed_default = any(
            addr.get("is_default") for addr in user.addresses if addr.get("id") == address_id
        )
        user.addresses = remaining
        if removed_default and remaining:
            user.set_default_address(remaining[0]["id"])
        user = await user_repo.update(user)
        return self._to_api(user)

    async def set_default_address(self, user: DataUser, address_id: str) -> ApiUser:
        if not user.set_default_address(address_id):
            raise NotFoundError("Address not found")
        user = await user_repo.update(user)
        return self._to_api(user)

    async def _get_wishlist_product(self, product_id: str, variant_id: Optional[str]):
        product_id = validate_uuid(product_id, "Invalid product ID format")
        product = await product_repo.get_by_id(product_id)
        if not product:
            raise NotFoundError("Product not found")
        if variant_id and not product.find_variant(variant_id):
            raise NotFoundError("Variant not found")
        return product

    async def add_to_wishlist(self, user: DataUser, product_id: str,
                              variant_id: Optional[str] = None) -> List[Dict[str, Any]]:
        product = await self._get_wishlist_product(product_id, variant_id)
        if user.find_wishlist_entry(product.id, variant_id) < 0:
            user.wishlist.append({
                "product_id": product.id,
                "variant_id": variant_id,
                "added_at": now().isoformat(),
            })
            user = await user_repo.update(user)
        return user.wishlist

    async def remove_from_wishlist(self, user: DataUser, product_id: str,
                                   variant_id: Optional[str] = None) -> List[Dict[str, Any]]:
        index = user.find_wishlist_entry(product_id, variant_id)
        if index < 0:
            raise NotFoundError("Product not in wishlist")
        user.wishlist.pop(index)
        user = await user_repo.update(user)
        return user.wishlist

    async def toggle_wishlist(self, user: DataUser, product_id: str,
                              variant_id: Optional[str] = None) -> Dict[str, Any]:
        """Add when absent, remove when present"""
        if user.find_wishlist_entry(product_id, variant_id) >= 0:
            wishlist = await self.remove_from_wishlist(user, product_id, variant_id)
            return {"in_wishlist": False, "wishlist": wishlist}
        wishlist = await self.add_to_wishlist(user, product_id, variant_id)
        return {"in_wishlist": True, "wishlist": wishlist}

    async def get_wishlist_products(self, user: DataUser) -> List[ProductListItem]:
        product_ids = [entry["product_id"] for entry in user.wishlist]
        products = {p.id: p for p in await product_repo.get_by_ids(product_ids)}
        # Keep wishlist order, skip products that were deleted since
        return [
            ProductListItem.model_validate(products[pid])
            for pid in dict.fromkeys(product_ids) if pid in products
        ]

    async def update_customer_data(self, user_id: str, order_total: float, conn=None):
        user = await user_repo.get_by_id(user_id, conn=conn, for_update=conn is not None)
        if not user:
            logger.warning("Customer data update skipped, user missing", user_id=user_id)
            return
        user.record_order(order_total, now())
        await user_repo.update_customer_data(user.id, user.customer_data, conn=conn)


user_service = UserService()
