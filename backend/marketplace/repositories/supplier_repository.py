"""
Supplier Repository - Data Access Layer for suppliers and markets

Author: TM3
Date: 2026-10-17
"""
from typing import List, Optional

from marketplace.core.database import Database
from marketplace.core.errors import NotFoundError
from marketplace.domain.user import Supplier, Market

# Supplier row plus its linked category ids
SUPPLIER_SELECT = """
    SELECT
        s.id, s.user_id, s.phone_number, s.is_verified, s.name,
        s.market_id, s.place_name, s.row_name,
        s.market_name, s.places_rows, s.category,
        s.created_at, s.updated_at,
        COALESCE(
            array_agg(sc.category_id ORDER BY sc.category_id)
                FILTER (WHERE sc.category_id IS NOT NULL),
            '{}'
        ) AS category_ids
    FROM supplier s
    LEFT JOIN supplier_categories sc ON sc.supplier_id = s.id
"""


class SupplierRepository:
    """Repository for Supplier data access"""

    def __init__(self, db: Database):
        self.db = db

    @staticmethod
    def _map_row_to_supplier(row: dict) -> Supplier:
        return Supplier(
            id=row['id'],
            user_id=row.get('user_id'),
            phone_number=row['phone_number'],
            is_verified=row['is_verified'],
            name=row.get('name'),
            market_id=row.get('market_id'),
            place_name=row.get('place_name'),
            row_name=row.get('row_name'),
            market_name=row.get('market_name'),
            places_rows=row.get('places_rows'),
            category=row.get('category'),
            category_ids=list(row.get('category_ids') or []),
            created_at=row['created_at'],
            updated_at=row.get('updated_at')
        )

    def _find_one(self, where: str, params: tuple) -> Optional[Supplier]:
        with self.db.cursor() as cursor:
            cursor.execute(f"""
                {SUPPLIER_SELECT}
                WHERE {where}
                GROUP BY s.id
            """, params)

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_supplier(row)

    def find_by_phone(self, phone_number: str) -> Optional[Supplier]:
        return self._find_one("s.phone_number = %s", (phone_number,))

    def find_by_user_id(self, user_id: int) -> Optional[Supplier]:
        return self._find_one("s.user_id = %s", (user_id,))

    def upsert_by_phone(
        self,
        phone_number: str,
        name: Optional[str] = None,
        market_id: Optional[int] = None,
        place_name: Optional[str] = None,
        row_name: Optional[str] = None,
        category_ids: Optional[List[int]] = None
    ) -> Supplier:
        """
        Create the supplier for a phone number or fill in its profile

        phone_number is unique, so concurrent registrations of the same
        number converge on one row. Supplied fields overwrite, omitted
        fields keep their value; is_verified is never touched here.
        A verified supplier is left as is: its profile only changes through
        the authenticated update_details / update_profile.
        """
        with self.db.transaction() as cursor:
            cursor.execute("""
                INSERT INTO supplier (
                    phone_number, name, market_id, place_name, row_name,
                    is_verified, created_at, updated_at
                ) VALUES (%s, %s, %s, %s, %s, FALSE, NOW(), NOW())
                ON CONFLICT (phone_number) DO UPDATE SET
                    name = COALESCE(EXCLUDED.name, supplier.name),
                    market_id = COALESCE(EXCLUDED.market_id, supplier.market_id),
                    place_name = COALESCE(EXCLUDED.place_name, supplier.place_name),
                    row_name = COALESCE(EXCLUDED.row_name, supplier.row_name),
                    updated_at = NOW()
                WHERE supplier.is_verified = FALSE
                RETURNING id
            """, (phone_number, name, market_id, place_name, row_name))
            row = cursor.fetchone()

            # No row back: the phone belongs to a verified supplier
            if row is not None and category_ids is not None:
                self._replace_categories(cursor, row['id'], category_ids)

        return self.find_by_phone(phone_number)

    def mark_verified(self, phone_number: str) -> bool:
        """
        Set is_verified; already-verified rows are left untouched

        Returns:
            False when no supplier has that phone number
        """
        with self.db.cursor() as cursor:
            cursor.execute("""
                UPDATE supplier
                SET is_verified = TRUE,
                    updated_at = CASE WHEN is_verified THEN updated_at ELSE NOW() END
                WHERE phone_number = %s
                RETURNING id
            """, (phone_number,))
            return cursor.fetchone() is not None

    def link_user(self, phone_number: str, user_id: int) -> bool:
        with self.db.cursor() as cursor:
            cursor.execute("""
                UPDATE supplier
                SET user_id = %s, updated_at = NOW()
                WHERE phone_number = %s
            """, (user_id, phone_number))
            return cursor.rowcount > 0

    def update_details(
        self,
        user_id: int,
        market_id: Optional[int] = None,
        place_name: Optional[str] = None,
        row_name: Optional[str] = None,
        category_ids: Optional[List[int]] = None
    ) -> Supplier:
        """
        Partial update of the market placement; None keeps the stored value

        category_ids replaces the linked categories when given (an empty
        list clears them) and is left alone when None.
        """
        with self.db.transaction() as cursor:
            cursor.execute("""
                UPDATE supplier
                SET market_id = COALESCE(%s, market_id),
                    place_name = COALESCE(%s, place_name),
                    row_name = COALESCE(%s, row_name),
                    updated_at = NOW()
                WHERE user_id = %s
                RETURNING id
            """, (market_id, place_name, row_name, user_id))

            row = cursor.fetchone()
            if not row:
                raise NotFoundError(f"no supplier for user {user_id}")

            if category_ids is not None:
                self._replace_categories(cursor, row['id'], category_ids)

        return self.find_by_user_id(user_id)

    def update_profile(
        self,
        user_id: int,
        name: Optional[str] = None,
        market_name: Optional[str] = None,
        places_rows: Optional[str] = None,
        category: Optional[str] = None
    ) -> Supplier:
        """Partial update of the free-text profile fields"""
        with self.db.cursor() as cursor:
            cursor.execute("""
                UPDATE supplier
                SET name = COALESCE(%s, name),
                    market_name = COALESCE(%s, market_name),
                    places_rows = COALESCE(%s, places_rows),
                    category = COALESCE(%s, category),
                    updated_at = NOW()
                WHERE user_id = %s
                RETURNING id
            """, (name, market_name, places_rows, category, user_id))

            if cursor.fetchone() is None:
                raise NotFoundError(f"no supplier for user {user_id}")

        return self.find_by_user_id(user_id)

    def list_markets(self) -> List[Market]:
        with self.db.cursor() as cursor:
            cursor.execute("SELECT id, name FROM market ORDER BY name")
            return [Market(id=row['id'], name=row['name']) for row in cursor.fetchall()]

    @staticmethod
    def _replace_categories(cursor, supplier_id: int, category_ids: List[int]) -> None:
        cursor.execute("DELETE FROM supplier_categories WHERE supplier_id = %s", (supplier_id,))
        for category_id in sorted(set(category_ids)):
            cursor.execute("""
                INSERT INTO supplier_categories (supplier_id, category_id)
                VALUES (%s, %s)
            """, (supplier_id, category_id))
