"""
Authentication for the Marketplace backend
Issues and validates HS256 JWT bearer tokens and hashes passwords
"""
from typing import List, Optional
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from pydantic import BaseModel

from .config import settings


# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenUser(BaseModel):
    """User data extracted from JWT token"""
    id: int
    username: Optional[str] = None
    roles: List[str] = []

    def has_role(self, role: str) -> bool:
        return role in self.roles


class IssuedToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """OTP-only accounts have no hash and never match"""
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: int, username: Optional[str] = None, roles: Optional[List[str]] = None) -> IssuedToken:
    """
    Create a signed access token

    Payload:
    {
        "sub": "42",
        "user_id": 42,
        "username": "+77011234567",
        "roles": ["supplier"],
        "iss": "MarketplaceApp",
        "iat": 1234567890,
        "exp": 1234567890
    }
    """
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(hours=settings.JWT_EXPIRATION_HOURS)
    payload = {
        "sub": str(user_id),
        "user_id": user_id,
        "username": username,
        "roles": roles or [],
        "iss": settings.JWT_ISSUER,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return IssuedToken(access_token=token, expires_at=expires_at)


def decode_access_token(token: str) -> dict:
    """Decode and validate a token; raises 401 HTTPException on any problem"""
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
        )
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"}
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"}
        )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenUser:
    """
    Dependency that extracts and validates the current user from JWT.

    Usage:
        @router.get("/protected")
        def protected_route(user: TokenUser = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    payload = decode_access_token(credentials.credentials)

    user_id = payload.get("user_id")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload: missing user id",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return TokenUser(
        id=int(user_id),
        username=payload.get("username"),
        roles=payload.get("roles") or []
    )


def require_role(required_role: str):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/categories")
        def create_category(user: TokenUser = Depends(require_role("admin"))):
            ...
    """
    async def role_checker(
        user: TokenUser = Depends(get_current_user)
    ) -> TokenUser:
        if not user.has_role(required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {required_role}"
            )
        return user

    return role_checker


require_admin = require_role("admin")
