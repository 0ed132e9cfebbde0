"""
Identity & Supplier Directory Service
Users, suppliers, passwords and phone verification glue

Flows:
- register_supplier: upsert an unverified supplier profile on its phone number,
  send an OTP (a verified profile is left unchanged)
- confirm_phone: validate the OTP, mark the supplier verified, ensure and
  link the user, consume the codes
- set_password / authenticate: bcrypt passwords for verified phones
- request_password_reset / verify_reset_code / reset_password: OTP-gated reset

Author: TM3
Date: 2026-10-17
"""
import logging
from typing import List, Optional, Tuple

from marketplace.core.auth import IssuedToken, create_access_token, hash_password, verify_password
from marketplace.core.config import settings
from marketplace.core.errors import ExpiredCodeError, NotFoundError, UnauthorizedError
from marketplace.core.logging_config import mask_phone
from marketplace.domain.user import Market, Supplier, User
from marketplace.domain.verification import OTPState
from marketplace.repositories.supplier_repository import SupplierRepository
from marketplace.repositories.user_repository import UserRepository
from marketplace.services.otp_service import OTPService, validate_phone_number

logger = logging.getLogger(__name__)


class IdentityService:
    """User and supplier operations built on the OTP engine"""

    def __init__(
        self,
        users: UserRepository,
        suppliers: SupplierRepository,
        otp: OTPService,
        default_roles: Optional[List[str]] = None
    ):
        self.users = users
        self.suppliers = suppliers
        self.otp = otp
        self.default_roles = default_roles or settings.get_default_roles()

    # ------------------------------------------------------------------
    # Directory primitives
    # ------------------------------------------------------------------

    def ensure_user(self, identifier: str) -> User:
        """Get or create a password-less user with the default roles"""
        user, created = self.users.ensure(identifier, self.default_roles)
        if created:
            logger.info(f"Created user {user.id} for {mask_phone(identifier)}")
        return user

    def mark_phone_verified(self, phone_number: str) -> None:
        """Idempotent; raises NotFoundError when no supplier has the phone"""
        if not self.suppliers.mark_verified(phone_number):
            raise NotFoundError(f"no supplier with phone {mask_phone(phone_number)}")

    def update_supplier_details(
        self,
        user_id: int,
        market_id: Optional[int] = None,
        place_name: Optional[str] = None,
        row_name: Optional[str] = None,
        category_ids: Optional[List[int]] = None
    ) -> Supplier:
        return self.suppliers.update_details(user_id, market_id, place_name, row_name, category_ids)

    def _require_valid_code(self, phone_number: str, code: str) -> None:
        if self.otp.validate_code(phone_number, code):
            return
        if self.otp.state(phone_number) == OTPState.EXPIRED:
            raise ExpiredCodeError("verification code expired, request a new one")
        raise UnauthorizedError("invalid verification code")

    # ------------------------------------------------------------------
    # Registration and verification
    # ------------------------------------------------------------------

    def register_supplier(
        self,
        phone_number: str,
        name: Optional[str] = None,
        market_id: Optional[int] = None,
        place_name: Optional[str] = None,
        row_name: Optional[str] = None,
        category_ids: Optional[List[int]] = None
    ) -> Supplier:
        """Create or refresh an unverified supplier profile and send a verification code"""
        phone_number = validate_phone_number(phone_number)
        supplier = self.suppliers.upsert_by_phone(
            phone_number,
            name=name,
            market_id=market_id,
            place_name=place_name,
            row_name=row_name,
            category_ids=category_ids
        )
        self.otp.issue_code(phone_number)
        return supplier

    def confirm_phone(self, phone_number: str, code: str) -> Tuple[User, Supplier]:
        """
        Complete phone verification

        Raises:
            UnauthorizedError: wrong code or no code on record
            ExpiredCodeError: the latest code has expired
        """
        phone_number = validate_phone_number(phone_number)
        self._require_valid_code(phone_number, code)

        self.suppliers.upsert_by_phone(phone_number)
        self.mark_phone_verified(phone_number)

        user = self.ensure_user(phone_number)
        self.suppliers.link_user(phone_number, user.id)
        self.otp.consume(phone_number)

        supplier = self.suppliers.find_by_phone(phone_number)
        logger.info(f"Phone {mask_phone(phone_number)} verified for user {user.id}")
        return user, supplier

    def verification_state(self, phone_number: str) -> OTPState:
        """
        Lifecycle state of a phone number

        CONSUMED once the supplier is verified and no newer code is pending;
        a code issued afterwards (password reset) reads as CODE_ISSUED.
        """
        phone_number = validate_phone_number(phone_number)
        state = self.otp.state(phone_number)
        if state != OTPState.UNVERIFIED:
            return state

        supplier = self.suppliers.find_by_phone(phone_number)
        if supplier is not None and supplier.is_verified:
            return OTPState.CONSUMED
        return state

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def set_password(self, phone_number: str, password: str) -> User:
        """Set the password of a verified phone's account"""
        phone_number = validate_phone_number(phone_number)
        supplier = self.suppliers.find_by_phone(phone_number)
        if supplier is None or not supplier.is_verified:
            raise UnauthorizedError("phone number is not verified")

        user = self.ensure_user(phone_number)
        self.users.set_password_hash(user.id, hash_password(password))
        if supplier.user_id != user.id:
            self.suppliers.link_user(phone_number, user.id)

        logger.info(f"Password set for user {user.id}")
        return user

    def authenticate(self, username: str, password: str) -> User:
        user = self.users.find_by_username(username.strip())
        if user is None or not verify_password(password, user.password_hash):
            logger.info(f"Failed login for {mask_phone(username)}")
            raise UnauthorizedError("invalid username or password")
        return user

    def phone_exists(self, username: str) -> bool:
        return self.users.exists(username.strip())

    def request_password_reset(self, phone_number: str) -> None:
        phone_number = validate_phone_number(phone_number)
        if not self.users.exists(phone_number):
            raise NotFoundError("no account for this phone number")
        self.otp.issue_code(phone_number)

    def verify_reset_code(self, phone_number: str, code: str) -> None:
        """Check a reset code without consuming it"""
        self._require_valid_code(validate_phone_number(phone_number), code)

    def reset_password(self, phone_number: str, code: str, new_password: str) -> User:
        phone_number = validate_phone_number(phone_number)
        self._require_valid_code(phone_number, code)

        user = self.users.find_by_username(phone_number)
        if user is None:
            raise NotFoundError("no account for this phone number")

        self.users.set_password_hash(user.id, hash_password(new_password))
        self.otp.consume(phone_number)
        logger.info(f"Password reset for user {user.id}")
        return user

    # ------------------------------------------------------------------
    # Supplier profile
    # ------------------------------------------------------------------

    def get_supplier_for_user(self, user_id: int) -> Supplier:
        supplier = self.suppliers.find_by_user_id(user_id)
        if supplier is None:
            raise NotFoundError(f"no supplier for user {user_id}")
        return supplier

    def update_supplier_profile(
        self,
        user_id: int,
        name: Optional[str] = None,
        market_name: Optional[str] = None,
        places_rows: Optional[str] = None,
        category: Optional[str] = None
    ) -> Supplier:
        return self.suppliers.update_profile(user_id, name, market_name, places_rows, category)

    def list_markets(self) -> List[Market]:
        return self.suppliers.list_markets()

    @staticmethod
    def issue_token(user: User) -> IssuedToken:
        return create_access_token(user.id, username=user.username, roles=user.roles)
