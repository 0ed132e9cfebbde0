#!/usr/bin/env python3
"""
Purge stale verification codes

Deletes expired codes and codes superseded by a newer one for the same
phone. Safe to run on a schedule (cron) next to the API.

Usage:
    cd backend
    python scripts/purge_verification_codes.py
"""

import sys
import logging
from pathlib import Path

# Add backend to path
BACKEND_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BACKEND_DIR))

from dotenv import load_dotenv

load_dotenv(BACKEND_DIR / '.env')

from marketplace.core.config import settings
from marketplace.core.database import Database
from marketplace.core.errors import MarketplaceError
from marketplace.core.logging_config import setup_logging
from marketplace.repositories.verification_repository import VerificationCodeRepository
from marketplace.services.otp_service import OTPService

logger = logging.getLogger("purge_verification_codes")


class NoopSender:
    """Purging never sends messages"""

    def send(self, body: str, recipient: str) -> None:
        raise RuntimeError("purge script does not send messages")


def main() -> int:
    setup_logging(settings.LOG_LEVEL)
    db = Database.from_settings(settings)

    try:
        db.open()
        otp = OTPService(VerificationCodeRepository(db), NoopSender())
        deleted = otp.purge_expired()
        logger.info(f"Done: {deleted} code(s) deleted")
        return 0
    except MarketplaceError as e:
        logger.error(f"Purge failed: {e.message}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
