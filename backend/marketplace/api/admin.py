"""
Admin API Endpoints
Maintenance operations (admin role only)

Author: TM3
Date: 2026-10-17
"""
from fastapi import APIRouter, Depends

from marketplace.api.deps import get_otp_service
from marketplace.core.auth import TokenUser, require_admin
from marketplace.services import OTPService

router = APIRouter()


@router.post("/verification-codes/purge")
def purge_verification_codes(
    user: TokenUser = Depends(require_admin),
    otp: OTPService = Depends(get_otp_service)
):
    """Delete expired and superseded verification codes"""
    deleted = otp.purge_expired()
    return {"status": "success", "data": {"deleted": deleted}}
