"""
User API routes
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from api.deps import get_current_user, require_admin
from data.models.user import User
from models.user import (
    ActiveUpdateRequest,
    AddressRequest,
    AdminCreateUserRequest,
    LoginRequest,
    PasswordUpdateRequest,
    RegisterRequest,
    RoleUpdateRequest,
    UserUpdateRequest,
)
from services.user_service import user_service
from utils.logger import get_logger
from utils.response_utils import success_response

logger = get_logger(__name__)
router = APIRouter()

@router.post("/register", status_code=201)
async def register_user(request: RegisterRequest):
    """Create a customer account and return it with a token"""
    result = await user_service.register_user(request)
    return success_response(result, message="User registered successfully")

@router.post("/login")
async def login_user(request: LoginRequest):
    result = await user_service.login_user(request)
    return success_response(result, message="Login successful")

@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
    return success_response(await user_service.get_current_user(user))

@router.post("/profile/addresses", status_code=201)
async def add_address(request: AddressRequest, user: User = Depends(get_current_user)):
    result = await user_service.add_address(user, request)
    return success_response(result, message="Address added successfully")

@router.delete("/profile/addresses/{address_id}")
async def remove_address(address_id: str, user: User = Depends(get_current_user)):
    result = await user_service.remove_address(user, address_id)
    return success_response(result, message="Address removed successfully")

@router.patch("/profile/addresses/{address_id}/default")
async def set_default_address(address_id: str, user: User = Depends(get_current_user)):
    result = await user_service.set_default_address(user, address_id)
    return success_response(result, message="Default address updated")

@router.get("")
async def get_all_users(
    role: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    is_verified: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Matches username, email or name"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc"),
    admin: User = Depends(require_admin),
):
    result = await user_service.get_all_users(
        role=role,
        is_active=is_active,
        is_verified=is_verified,
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return success_response(result["users"], pagination=result["pagination"])

@router.post("", status_code=201)
async def create_user(request: AdminCreateUserRequest, admin: User = Depends(require_admin)):
    result = await user_service.create_user(request)
    logger.info("User created by admin", admin_id=admin.id, user_id=result["user"].id)
    return success_response(result["user"], message=result["message"])

@router.get("/{user_id}")
async def get_user(user_id: str, user: User = Depends(get_current_user)):
    return success_response(await user_service.get_user_by_id(user_id))

@router.put("/{user_id}")
async def update_user(user_id: str, request: UserUpdateRequest, user: User = Depends(get_current_user)):
    result = await user_service.update_user(user_id, request, user)
    return success_response(result, message="User updated successfully")

@router.delete("/{user_id}")
async def delete_user(user_id: str, user: User = Depends(get_current_user)):
    await user_service.delete_user(user_id, user)
    return success_response(message="User deleted successfully")

@router.put("/{user_id}/password")
async def update_password(user_id: str, request: PasswordUpdateRequest,
                          user: User = Depends(get_current_user)):
    await user_service.update_password(user_id, request, user)
    return success_response(message="Password updated successfully")

@router.patch("/{user_id}/role")
async def change_user_role(user_id: str, request: RoleUpdateRequest, admin: User = Depends(require_admin)):
    result = await user_service.change_user_role(user_id, request.role)
    return success_response(result, message="User role updated successfully")

@router.patch("/{user_id}/active")
async def toggle_user_active(user_id: str, request: ActiveUpdateRequest,
                             admin: User = Depends(require_admin)):
    result = await user_service.toggle_user_active(user_id, request.is_active)
    status = "activated" if result.is_active else "deactivated"
    return success_response(result, message=f"User {status} successfully")
