"""
Verification Code Domain Model

Author: TM3
Date: 2026-10-17
"""
from enum import Enum
from datetime import datetime
from pydantic import BaseModel


class OTPState(str, Enum):
    """
    Per-phone verification lifecycle

    UNVERIFIED  -> no code row for the phone
    CODE_ISSUED -> latest code exists and has not expired
    EXPIRED     -> latest code has expired (re-issue goes back to CODE_ISSUED)
    CONSUMED    -> supplier verified and its codes deleted (terminal until a
                   new code is issued)
    """
    UNVERIFIED = "unverified"
    CODE_ISSUED = "code_issued"
    EXPIRED = "expired"
    CONSUMED = "consumed"


class VerificationCode(BaseModel):
    id: int
    phone_number: str
    code: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """A code is already expired at exactly expires_at"""
        return now >= self.expires_at
