"""
Verification API Endpoints
Phone verification with one-time codes delivered over WhatsApp

Author: TM3
Date: 2026-10-17
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from marketplace.api.deps import get_identity_service, get_otp_service
from marketplace.services import IdentityService, OTPService

router = APIRouter()


# Request models
class PhoneRequest(BaseModel):
    phone_number: str = Field(..., min_length=8, max_length=16, examples=["+77011234567"])


class VerifyRequest(PhoneRequest):
    code: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")


@router.post("/register")
def send_verification_code(
    request: PhoneRequest,
    otp: OTPService = Depends(get_otp_service)
):
    """Issue a verification code; any earlier code for the phone stops working"""
    code = otp.issue_code(request.phone_number)
    return {
        "status": "success",
        "message": "Verification code sent",
        "data": {
            "phone_number": code.phone_number,
            "expires_at": code.expires_at
        }
    }


@router.get("/status")
def verification_status(
    phone_number: str,
    identity: IdentityService = Depends(get_identity_service)
):
    """Verification lifecycle state of a phone number"""
    return {
        "status": "success",
        "data": {"state": identity.verification_state(phone_number)}
    }


@router.post("/verify")
def verify_code(
    request: VerifyRequest,
    identity: IdentityService = Depends(get_identity_service)
):
    """
    Check the code and mark the phone verified

    Creates the supplier and the user on first verification and returns
    an access token for the account.
    """
    user, supplier = identity.confirm_phone(request.phone_number, request.code)
    token = identity.issue_token(user)
    return {
        "status": "success",
        "message": "Phone number verified",
        "data": {
            "user": user,
            "supplier": supplier,
            "has_password": user.has_password,
            "token": token
        }
    }
