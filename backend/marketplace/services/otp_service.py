"""
OTP Verification Service
Issues, validates and consumes phone verification codes

Rules:
- Every delivered code inserts a new row; the most recently created row per phone
  is the only one that can validate (older codes are silently superseded).
  A code the provider failed to deliver is never stored
- A code is expired at exactly expires_at
- Failed validation never deletes anything; consume() deletes every row
  for the phone once verification side effects are done
- Codes are never logged; phone numbers are masked

Author: TM3
Date: 2026-10-17
"""
import re
import hmac
import secrets
import logging
from typing import Callable, Optional, Protocol
from datetime import datetime, timedelta, timezone

from marketplace.core.config import settings
from marketplace.core.errors import InvalidError, RateLimitedError, UpstreamError
from marketplace.core.logging_config import mask_phone
from marketplace.core.rate_limit import RateLimiter
from marketplace.domain.verification import OTPState, VerificationCode
from marketplace.repositories.verification_repository import VerificationCodeRepository

logger = logging.getLogger(__name__)

# E.164: "+", country code without leading zero, up to 15 digits total
PHONE_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")

MESSAGE_TEMPLATE = "Your verification code: {code}"


class MessageSender(Protocol):
    def send(self, body: str, recipient: str) -> None: ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_phone_number(phone_number: str) -> str:
    """Strip whitespace and check E.164 format; raises InvalidError"""
    normalized = (phone_number or "").strip()
    if not PHONE_PATTERN.match(normalized):
        raise InvalidError("phone number must be in E.164 format, e.g. +77011234567")
    return normalized


def generate_code() -> str:
    """Uniformly distributed 6-digit code, zero padded"""
    return f"{secrets.randbelow(10 ** 6):06d}"


class OTPService:
    """
    One-time passcode engine

    Collaborators are injected so tests can supply a fake sender, a
    MagicMock repository and a fixed clock.
    """

    def __init__(
        self,
        repository: VerificationCodeRepository,
        sender: MessageSender,
        rate_limiter: Optional[RateLimiter] = None,
        ttl: Optional[timedelta] = None,
        max_issues: Optional[int] = None,
        issue_window_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.repository = repository
        self.sender = sender
        self.rate_limiter = rate_limiter or RateLimiter()
        self.ttl = ttl or timedelta(minutes=settings.OTP_TTL_MINUTES)
        self.max_issues = max_issues or settings.OTP_MAX_ISSUES_PER_WINDOW
        self.issue_window_seconds = issue_window_seconds or settings.OTP_ISSUE_WINDOW_SECONDS
        self.clock = clock

    def issue_code(self, phone_number: str) -> VerificationCode:
        """
        Generate and deliver a new code, storing it once delivered

        Raises:
            InvalidError: phone number is not E.164
            RateLimitedError: too many codes requested for this phone
            UpstreamError: the messaging provider failed
        """
        phone_number = validate_phone_number(phone_number)
        masked = mask_phone(phone_number)

        limit_key = f"otp:{phone_number}"
        allowed, _, retry_after = self.rate_limiter.is_allowed(
            limit_key, self.max_issues, self.issue_window_seconds
        )
        if not allowed:
            logger.warning(f"OTP issue rate limit hit for {masked}")
            raise RateLimitedError(
                f"too many verification codes requested, retry in {retry_after}s",
                retry_after=retry_after
            )

        # Stored only after delivery: an undelivered code must not supersede
        # the one the user already holds
        value = generate_code()
        try:
            self.sender.send(MESSAGE_TEMPLATE.format(code=value), phone_number)
        except UpstreamError as e:
            self.rate_limiter.release(limit_key)
            raise e.wrap(f"deliver verification code to {masked}")

        now = self.clock()
        code = self.repository.create(phone_number, value, now, now + self.ttl)

        logger.info(f"Verification code issued for {masked}, expires at {code.expires_at.isoformat()}")
        return code

    def validate_code(self, phone_number: str, code: str) -> bool:
        """
        Check a code against the latest row for the phone

        False when no row exists, the latest row has expired, or the code
        differs. Nothing is deleted here.
        """
        latest = self.repository.find_latest(phone_number)
        if latest is None:
            logger.info(f"No verification code on record for {mask_phone(phone_number)}")
            return False

        if latest.is_expired(self.clock()):
            logger.info(f"Verification code for {mask_phone(phone_number)} has expired")
            return False

        if not hmac.compare_digest(latest.code.encode(), (code or "").strip().encode()):
            logger.info(f"Wrong verification code for {mask_phone(phone_number)}")
            return False

        return True

    def consume(self, phone_number: str) -> int:
        """Delete every code for the phone; returns deleted row count"""
        deleted = self.repository.delete_all(phone_number)
        logger.info(f"Consumed {deleted} verification code(s) for {mask_phone(phone_number)}")
        return deleted

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete expired and superseded codes; returns deleted row count"""
        deleted = self.repository.delete_stale(now or self.clock())
        logger.info(f"Purged {deleted} stale verification code(s)")
        return deleted

    def state(self, phone_number: str) -> OTPState:
        """
        Code lifecycle state for a phone number

        Only the code rows are visible here, so a consumed phone reads as
        UNVERIFIED; IdentityService.verification_state reports CONSUMED.
        """
        latest = self.repository.find_latest(phone_number)
        if latest is None:
            return OTPState.UNVERIFIED
        if latest.is_expired(self.clock()):
            return OTPState.EXPIRED
        return OTPState.CODE_ISSUED
