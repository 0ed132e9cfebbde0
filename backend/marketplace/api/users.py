"""
Users API Endpoints
Login, passwords and password reset over OTP

Author: TM3
Date: 2026-10-17
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from marketplace.api.deps import get_identity_service
from marketplace.core.auth import TokenUser, get_current_user
from marketplace.services import IdentityService

router = APIRouter()

PASSWORD_MIN_LENGTH = 6


# Request models
class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=1)


class SetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)


class PhoneRequest(BaseModel):
    phone_number: str = Field(..., min_length=8, max_length=16)


class ResetCodeRequest(PhoneRequest):
    code: str = Field(..., pattern=r"^\d{6}$")


class ResetPasswordRequest(ResetCodeRequest):
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)


@router.post("/login")
def login(
    request: LoginRequest,
    identity: IdentityService = Depends(get_identity_service)
):
    user = identity.authenticate(request.username, request.password)
    return {
        "status": "success",
        "data": {
            "user": user,
            "token": identity.issue_token(user)
        }
    }


@router.post("/set-password")
def set_password(
    request: SetPasswordRequest,
    current_user: TokenUser = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service)
):
    """
    Set a password for the authenticated account

    The token from /verification/verify identifies the phone; the phone
    must already be verified.
    """
    identity.set_password(current_user.username or "", request.password)
    return {"status": "success", "message": "Password set"}


@router.post("/check-phone")
def check_phone(
    request: PhoneRequest,
    identity: IdentityService = Depends(get_identity_service)
):
    return {
        "status": "success",
        "data": {"exists": identity.phone_exists(request.phone_number)}
    }


@router.post("/password-reset/request")
def request_password_reset(
    request: PhoneRequest,
    identity: IdentityService = Depends(get_identity_service)
):
    identity.request_password_reset(request.phone_number)
    return {"status": "success", "message": "Verification code sent"}


@router.post("/password-reset/verify")
def verify_password_reset_code(
    request: ResetCodeRequest,
    identity: IdentityService = Depends(get_identity_service)
):
    """Check the reset code; it stays valid for /password-reset/confirm"""
    identity.verify_reset_code(request.phone_number, request.code)
    return {"status": "success", "message": "Code is valid"}


@router.post("/password-reset/confirm")
def confirm_password_reset(
    request: ResetPasswordRequest,
    identity: IdentityService = Depends(get_identity_service)
):
    identity.reset_password(request.phone_number, request.code, request.new_password)
    return {"status": "success", "message": "Password updated"}
