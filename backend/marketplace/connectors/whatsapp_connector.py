"""
Wappi WhatsApp API Connector
Delivers one-time codes to suppliers over WhatsApp

API CONFIGURATION:
- Base URL: https://wappi.pro/api/sync
- Send: POST /message/send?profile_id=<profile>
  - Header: Authorization: <api key> (no "Bearer" prefix)
  - Body: {"body": "...", "recipient": "77011234567"}

Outbound sends are throttled by a token bucket (WAPPI_RATE_PER_SECOND,
burst WAPPI_BURST) shared by every request handled by this process.

Author: TM3
Date: 2026-10-17
"""
import logging
from typing import Dict, Optional

import httpx

from marketplace.core.config import settings
from marketplace.core.errors import UpstreamError
from marketplace.core.logging_config import mask_phone
from marketplace.core.rate_limit import TokenBucket

logger = logging.getLogger(__name__)


class WappiConnector:
    """
    Messaging sender backed by the Wappi WhatsApp gateway

    Handles:
    - Outbound rate limiting
    - Transport errors and non-2xx responses (both raise UpstreamError)
    """

    SEND_PATH = "/message/send"

    def __init__(
        self,
        profile_id: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        bucket: Optional[TokenBucket] = None,
        client: Optional[httpx.Client] = None
    ):
        self.profile_id = profile_id or settings.WAPPI_PROFILE_ID
        self.api_key = api_key or settings.WAPPI_API_KEY
        self.base_url = (base_url or settings.WAPPI_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.WAPPI_TIMEOUT
        self.bucket = bucket or TokenBucket(settings.WAPPI_RATE_PER_SECOND, settings.WAPPI_BURST)
        self._client = client or httpx.Client(timeout=self.timeout)

        if not self.profile_id or not self.api_key:
            logger.warning("Wappi credentials not configured (WAPPI_PROFILE_ID / WAPPI_API_KEY); sends will fail")

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": self.api_key,
        }

    def send(self, body: str, recipient: str) -> None:
        """
        Send a text message

        Args:
            body: Message text
            recipient: Phone number, with or without the leading "+"

        Raises:
            UpstreamError: throttled past the timeout, transport failure or non-2xx
        """
        masked = mask_phone(recipient)

        if not self.profile_id or not self.api_key:
            raise UpstreamError("messaging credentials not configured")

        if not self.bucket.acquire(timeout=self.timeout):
            logger.warning(f"WhatsApp send to {masked} throttled")
            raise UpstreamError("messaging rate limit exceeded")

        url = f"{self.base_url}{self.SEND_PATH}"
        payload = {"body": body, "recipient": recipient.lstrip("+")}

        try:
            response = self._client.post(
                url,
                params={"profile_id": self.profile_id},
                json=payload,
                headers=self._headers,
                timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"WhatsApp send to {masked} failed: {e.response.status_code} - {e.response.text}")
            raise UpstreamError(f"messaging provider returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"WhatsApp send to {masked} error: {e}")
            raise UpstreamError(f"messaging provider unreachable: {e}") from e

        logger.info(f"WhatsApp message sent to {masked}")

    def close(self) -> None:
        self._client.close()
