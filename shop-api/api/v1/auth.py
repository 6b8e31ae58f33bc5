"""
Password recovery routes
"""
from fastapi import APIRouter

from models.user import ForgotPasswordRequest, ResetPasswordRequest
from services.user_service import user_service
from utils.response_utils import success_response

router = APIRouter()

@router.post("/forgot-password")
async def forgot_password(request: ForgotPasswordRequest):
    """Always answers the same way so account existence is not disclosed"""
    await user_service.forgot_password(request.email)
    return success_response(
        message="If an account with that email exists, a password reset link has been sent"
    )

@router.post("/reset-password")
async def reset_password(request: ResetPasswordRequest):
    await user_service.reset_password(request.token, request.password)
    return success_response(message="Password has been reset successfully")
