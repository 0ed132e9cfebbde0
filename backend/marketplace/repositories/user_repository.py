"""
User Repository - Data Access Layer for users

Author: TM3
Date: 2026-10-17
"""
from typing import List, Optional, Tuple

from marketplace.core.database import Database
from marketplace.core.errors import InternalError
from marketplace.domain.user import User

USER_COLUMNS = "id, username, password_hash, roles, created_at, updated_at"


class UserRepository:
    """
    Repository for User data access

    username is unique in the database; ensure() relies on that constraint
    instead of a read-then-insert sequence.
    """

    # Attempts for ensure() when the conflicting row vanishes between the
    # INSERT and the follow-up SELECT
    ENSURE_ATTEMPTS = 3

    def __init__(self, db: Database):
        self.db = db

    @staticmethod
    def _map_row_to_user(row: dict) -> User:
        return User(
            id=row['id'],
            username=row['username'],
            password_hash=row.get('password_hash'),
            roles=list(row.get('roles') or []),
            created_at=row['created_at'],
            updated_at=row.get('updated_at')
        )

    def find_by_id(self, user_id: int) -> Optional[User]:
        with self.db.cursor() as cursor:
            cursor.execute(f"""
                SELECT {USER_COLUMNS}
                FROM users
                WHERE id = %s
            """, (user_id,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_user(row)

    def find_by_username(self, username: str) -> Optional[User]:
        with self.db.cursor() as cursor:
            cursor.execute(f"""
                SELECT {USER_COLUMNS}
                FROM users
                WHERE username = %s
            """, (username,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_user(row)

    def exists(self, username: str) -> bool:
        with self.db.cursor() as cursor:
            cursor.execute("SELECT EXISTS(SELECT 1 FROM users WHERE username = %s) AS found", (username,))
            return bool(cursor.fetchone()['found'])

    def ensure(self, username: str, roles: List[str]) -> Tuple[User, bool]:
        """
        Get or create a password-less user

        Returns:
            Tuple of (user, created)
        """
        for _ in range(self.ENSURE_ATTEMPTS):
            with self.db.cursor() as cursor:
                cursor.execute(f"""
                    INSERT INTO users (username, password_hash, roles, created_at, updated_at)
                    VALUES (%s, NULL, %s::text[], NOW(), NOW())
                    ON CONFLICT (username) DO NOTHING
                    RETURNING {USER_COLUMNS}
                """, (username, roles))

                row = cursor.fetchone()
                if row:
                    return self._map_row_to_user(row), True

                cursor.execute(f"""
                    SELECT {USER_COLUMNS}
                    FROM users
                    WHERE username = %s
                """, (username,))

                row = cursor.fetchone()
                if row:
                    return self._map_row_to_user(row), False

        raise InternalError(f"could not get or create user after {self.ENSURE_ATTEMPTS} attempts")

    def set_password_hash(self, user_id: int, password_hash: str) -> bool:
        """Returns False when no user has that id"""
        with self.db.cursor() as cursor:
            cursor.execute("""
                UPDATE users
                SET password_hash = %s, updated_at = NOW()
                WHERE id = %s
            """, (password_hash, user_id))
            return cursor.rowcount > 0
