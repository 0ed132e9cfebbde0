"""
User and Supplier Domain Models

Author: TM3
Date: 2026-10-17
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime


class User(BaseModel):
    """
    Account record

    username is unique and is usually the supplier's phone number.
    password_hash is None for accounts created through OTP only.
    """
    id: int
    username: str
    password_hash: Optional[str] = Field(None, exclude=True)
    roles: List[str] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)


class Supplier(BaseModel):
    """Supplier profile, 1:1 with a user once linked"""
    id: int
    user_id: Optional[int] = None
    phone_number: str
    is_verified: bool = False
    name: Optional[str] = None
    market_id: Optional[int] = None
    place_name: Optional[str] = None
    row_name: Optional[str] = None
    market_name: Optional[str] = None
    places_rows: Optional[str] = None
    category: Optional[str] = None
    category_ids: List[int] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class Market(BaseModel):
    id: int
    name: str
