"""
Error taxonomy shared by repositories, services and the API layer

Every error raised on purpose by the application derives from
MarketplaceError. The API layer maps each class to an HTTP status
(see marketplace.main); 5xx classes never leak their message to clients.

Author: TM3
Date: 2026-10-17
"""


class MarketplaceError(Exception):
    """Base class for application errors"""

    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    def wrap(self, context: str) -> "MarketplaceError":
        """Return an error of the same class with call-site context prepended"""
        wrapped = self.__class__(f"{context}: {self.message}")
        wrapped.__cause__ = self
        return wrapped

    @property
    def client_message(self) -> str:
        """Message safe to return to API clients"""
        if self.status_code >= 500:
            return self.public_message
        return self.message


class NotFoundError(MarketplaceError):
    """No matching row (user, supplier, category, product)"""
    status_code = 404
    public_message = "Not found"


class ConflictError(MarketplaceError):
    """Unique-constraint violation"""
    status_code = 409
    public_message = "Conflict"


class InvalidError(MarketplaceError):
    """Malformed or out-of-range input"""
    status_code = 400
    public_message = "Invalid request"


class UnauthorizedError(MarketplaceError):
    """Credentials or one-time code rejected"""
    status_code = 401
    public_message = "Unauthorized"


class ExpiredCodeError(UnauthorizedError):
    public_message = "Verification code expired"


class RateLimitedError(MarketplaceError):
    status_code = 429
    public_message = "Too many requests"

    def __init__(self, message: str = "", retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after

    def wrap(self, context: str) -> "RateLimitedError":
        wrapped = RateLimitedError(f"{context}: {self.message}", retry_after=self.retry_after)
        wrapped.__cause__ = self
        return wrapped


class UpstreamError(MarketplaceError):
    """Messaging or storage collaborator failure"""
    status_code = 502
    public_message = "Upstream service unavailable"


class InternalError(MarketplaceError):
    """Transaction or connection failure"""
    status_code = 500
    public_message = "Internal server error"
