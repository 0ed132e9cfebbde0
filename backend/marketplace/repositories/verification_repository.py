"""
Verification Code Repository - Data Access Layer for one-time codes

Rows are never updated: every issue inserts a new row, the latest row
per phone number is the only authoritative one, and successful
verification deletes them all.

Author: TM3
Date: 2026-10-17
"""
from typing import Optional
from datetime import datetime

from marketplace.core.database import Database
from marketplace.domain.verification import VerificationCode


class VerificationCodeRepository:
    """Repository for verification_codes"""

    def __init__(self, db: Database):
        self.db = db

    @staticmethod
    def _map_row_to_code(row: dict) -> VerificationCode:
        return VerificationCode(
            id=row['id'],
            phone_number=row['phone_number'],
            code=row['code'].strip(),
            created_at=row['created_at'],
            expires_at=row['expires_at']
        )

    def create(self, phone_number: str, code: str, created_at: datetime, expires_at: datetime) -> VerificationCode:
        """Insert a new code row; earlier rows for the phone stay but lose authority"""
        with self.db.cursor() as cursor:
            cursor.execute("""
                INSERT INTO verification_codes (phone_number, code, created_at, expires_at)
                VALUES (%s, %s, %s, %s)
                RETURNING id, phone_number, code, created_at, expires_at
            """, (phone_number, code, created_at, expires_at))
            return self._map_row_to_code(cursor.fetchone())

    def find_latest(self, phone_number: str) -> Optional[VerificationCode]:
        """
        Most recently created code for a phone number

        id breaks ties between rows created in the same microsecond.
        """
        with self.db.cursor() as cursor:
            cursor.execute("""
                SELECT id, phone_number, code, created_at, expires_at
                FROM verification_codes
                WHERE phone_number = %s
                ORDER BY created_at DESC, id DESC
                LIMIT 1
            """, (phone_number,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_code(row)

    def delete_all(self, phone_number: str) -> int:
        """Delete every code for a phone number, returns deleted row count"""
        with self.db.cursor() as cursor:
            cursor.execute("""
                DELETE FROM verification_codes
                WHERE phone_number = %s
            """, (phone_number,))
            return cursor.rowcount

    def delete_stale(self, now: datetime) -> int:
        """
        Garbage-collect codes that can never validate again

        Deletes superseded rows (not the latest for their phone) and rows
        already expired at `now`. Both kinds go in one statement, so no older
        row can become the latest while the newer one is being removed.
        """
        with self.db.cursor() as cursor:
            cursor.execute("""
                DELETE FROM verification_codes vc
                WHERE vc.expires_at <= %s
                   OR vc.id <> (
                        SELECT latest.id
                        FROM verification_codes latest
                        WHERE latest.phone_number = vc.phone_number
                        ORDER BY latest.created_at DESC, latest.id DESC
                        LIMIT 1
                   )
            """, (now,))
            return cursor.rowcount
