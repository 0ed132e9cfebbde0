"""
Unit tests for VerificationCodeRepository

These tests validate repository logic without requiring a database connection.

Author: TM3
Date: 2026-10-17
"""
from datetime import timedelta

from marketplace.domain.verification import VerificationCode
from marketplace.repositories.verification_repository import VerificationCodeRepository


class TestVerificationCodeRepository:
    """Test VerificationCodeRepository methods"""

    def test_find_latest_orders_by_creation_then_id(self, db, mock_cursor, now):
        # Arrange: CHAR(6) column comes back padded
        mock_cursor.fetchone.return_value = {
            'id': 3,
            'phone_number': '+77011234567',
            'code': '004211',
            'created_at': now,
            'expires_at': now + timedelta(minutes=10)
        }

        # Act
        code = VerificationCodeRepository(db).find_latest('+77011234567')

        # Assert
        assert isinstance(code, VerificationCode)
        assert code.code == '004211'
        sql = mock_cursor.execute.call_args[0][0]
        assert "ORDER BY created_at DESC, id DESC" in sql
        assert "LIMIT 1" in sql

    def test_find_latest_returns_none_without_rows(self, db, mock_cursor):
        mock_cursor.fetchone.return_value = None

        assert VerificationCodeRepository(db).find_latest('+77011234567') is None

    def test_create_inserts_new_row(self, db, mock_cursor, mock_conn, now):
        # Arrange
        expires_at = now + timedelta(minutes=10)
        mock_cursor.fetchone.return_value = {
            'id': 9, 'phone_number': '+77011234567', 'code': '123456',
            'created_at': now, 'expires_at': expires_at
        }

        # Act
        code = VerificationCodeRepository(db).create('+77011234567', '123456', now, expires_at)

        # Assert
        assert code.id == 9
        params = mock_cursor.execute.call_args[0][1]
        assert params == ('+77011234567', '123456', now, expires_at)
        mock_conn.commit.assert_called_once()

    def test_delete_all_returns_rowcount(self, db, mock_cursor):
        mock_cursor.rowcount = 2

        assert VerificationCodeRepository(db).delete_all('+77011234567') == 2
        assert "DELETE FROM verification_codes" in mock_cursor.execute.call_args[0][0]

    def test_delete_stale_removes_expired_and_superseded_in_one_statement(self, db, mock_cursor, now):
        mock_cursor.rowcount = 5

        deleted = VerificationCodeRepository(db).delete_stale(now)

        assert deleted == 5
        mock_cursor.execute.assert_called_once()
        sql, params = mock_cursor.execute.call_args[0]
        assert "vc.expires_at <= %s" in sql
        assert "vc.id <> (" in sql
        assert params == (now,)
