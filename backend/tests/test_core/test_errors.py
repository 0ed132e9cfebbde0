"""
Unit tests for the error taxonomy

Author: TM3
Date: 2026-10-17
"""
from marketplace.core.errors import (
    ConflictError,
    ExpiredCodeError,
    InternalError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
    UpstreamError,
)
from marketplace.core.logging_config import mask_phone


class TestWrap:
    def test_keeps_class_and_prepends_context(self):
        cause = NotFoundError("category 5 does not exist")

        wrapped = cause.wrap("create product 'Shirt'")

        assert type(wrapped) is NotFoundError
        assert wrapped.message == "create product 'Shirt': category 5 does not exist"
        assert wrapped.__cause__ is cause

    def test_rate_limited_keeps_retry_after(self):
        wrapped = RateLimitedError("slow down", retry_after=30).wrap("issue code")

        assert wrapped.retry_after == 30


class TestClientMessage:
    def test_client_errors_expose_message(self):
        assert ConflictError("path exists").client_message == "path exists"

    def test_server_errors_hide_message(self):
        assert InternalError("password authentication failed for user x").client_message == "Internal server error"
        assert UpstreamError("provider returned 500").client_message == "Upstream service unavailable"

    def test_expired_code_is_unauthorized(self):
        error = ExpiredCodeError("expired")

        assert isinstance(error, UnauthorizedError)
        assert error.status_code == 401


class TestMaskPhone:
    def test_masks_middle_digits(self):
        assert mask_phone("+77011234567") == "+770*****567"

    def test_short_values_fully_masked(self):
        assert mask_phone("123") == "***"
