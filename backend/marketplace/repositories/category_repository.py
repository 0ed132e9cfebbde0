"""
Category Repository - Data Access Layer for the category tree

Author: TM3
Date: 2026-10-17
"""
from typing import List, Optional

from psycopg2.extras import Json

from marketplace.core.database import Database
from marketplace.domain.category import (
    AttributeOptionType,
    AttributeValueImages,
    Category,
    CategoryAttribute,
    CategoryAttributeInput,
)

CATEGORY_COLUMNS = "id, name, path, image_url, parent_id"


class CategoryRepository:
    """
    Repository for Category data access

    path is unique in the database, so create() surfaces duplicates as
    ConflictError straight from the constraint.
    """

    def __init__(self, db: Database):
        self.db = db

    @staticmethod
    def _map_row_to_category(row: dict) -> Category:
        return Category(
            id=row['id'],
            name=row['name'],
            path=row['path'],
            image_url=row.get('image_url'),
            parent_id=row.get('parent_id')
        )

    def find_all(self) -> List[Category]:
        with self.db.cursor() as cursor:
            cursor.execute(f"""
                SELECT {CATEGORY_COLUMNS}
                FROM categories
                ORDER BY id
            """)
            return [self._map_row_to_category(row) for row in cursor.fetchall()]

    def find_by_id(self, category_id: int) -> Optional[Category]:
        with self.db.cursor() as cursor:
            cursor.execute(f"""
                SELECT {CATEGORY_COLUMNS}
                FROM categories
                WHERE id = %s
            """, (category_id,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_category(row)

    def find_by_path(self, path: str) -> Optional[Category]:
        with self.db.cursor() as cursor:
            cursor.execute(f"""
                SELECT {CATEGORY_COLUMNS}
                FROM categories
                WHERE path = %s
            """, (path,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_category(row)

    def find_roots(self) -> List[Category]:
        """Categories without a parent (parent_id NULL or 0)"""
        with self.db.cursor() as cursor:
            cursor.execute(f"""
                SELECT {CATEGORY_COLUMNS}
                FROM categories
                WHERE parent_id IS NULL OR parent_id = 0
                ORDER BY id
            """)
            return [self._map_row_to_category(row) for row in cursor.fetchall()]

    def find_children_by_path(self, parent_path: str) -> List[Category]:
        """Direct children of the category at parent_path"""
        with self.db.cursor() as cursor:
            cursor.execute("""
                SELECT c.id, c.name, c.path, c.image_url, c.parent_id
                FROM categories c
                JOIN categories parent ON parent.id = c.parent_id
                WHERE parent.path = %s
                ORDER BY c.id
            """, (parent_path,))
            return [self._map_row_to_category(row) for row in cursor.fetchall()]

    def create(
        self,
        name: str,
        path: str,
        image_url: Optional[str] = None,
        parent_id: Optional[int] = None
    ) -> Category:
        with self.db.cursor() as cursor:
            cursor.execute(f"""
                INSERT INTO categories (name, path, image_url, parent_id)
                VALUES (%s, %s, %s, %s)
                RETURNING {CATEGORY_COLUMNS}
            """, (name, path, image_url, parent_id))
            return self._map_row_to_category(cursor.fetchone())

    def update_image_url(self, category_id: int, image_url: str) -> Optional[Category]:
        """Returns None when the category does not exist"""
        with self.db.cursor() as cursor:
            cursor.execute(f"""
                UPDATE categories
                SET image_url = %s
                WHERE id = %s
                RETURNING {CATEGORY_COLUMNS}
            """, (image_url, category_id))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_category(row)

    @staticmethod
    def _map_row_to_attribute(row: dict) -> CategoryAttribute:
        return CategoryAttribute(
            id=row['id'],
            name=row['name'],
            description=row.get('description'),
            type_of_option=row.get('type_of_option') or AttributeOptionType.DROPDOWN,
            options=row.get('options'),
            values=list(row.get('value_list') or [])
        )

    def find_attributes(self, category_id: int) -> List[CategoryAttribute]:
        """Attributes of a category, each with its option spec and known values"""
        with self.db.cursor() as cursor:
            cursor.execute("""
                SELECT
                    a.id, a.name, a.description, a.type_of_option,
                    a.value AS options,
                    COALESCE(
                        array_agg(av.value ORDER BY av.value) FILTER (WHERE av.id IS NOT NULL),
                        '{}'
                    ) AS value_list
                FROM attributes a
                LEFT JOIN attribute_value av ON av.attribute_id = a.id
                WHERE a.category_id = %s
                GROUP BY a.id
                ORDER BY a.name
            """, (category_id,))
            return [self._map_row_to_attribute(row) for row in cursor.fetchall()]

    def upsert_attributes(self, category_id: int, attributes: List[CategoryAttributeInput]) -> List[int]:
        """
        Define typed attributes for a category in one transaction

        (category_id, name) is unique: an existing attribute, including one
        created implicitly by product ingestion, gets the new type and options.
        """
        with self.db.transaction() as cursor:
            attribute_ids = []
            for attribute in attributes:
                cursor.execute("""
                    INSERT INTO attributes (category_id, name, description, type_of_option, value)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (category_id, name) DO UPDATE SET
                        description = EXCLUDED.description,
                        type_of_option = EXCLUDED.type_of_option,
                        value = EXCLUDED.value
                    RETURNING id
                """, (
                    category_id,
                    attribute.name,
                    attribute.description,
                    attribute.type_of_option.value,
                    Json(attribute.options)
                ))
                attribute_ids.append(cursor.fetchone()['id'])
            return attribute_ids

    def find_by_supplier(self, supplier_id: int) -> List[Category]:
        """Categories linked to a supplier"""
        with self.db.cursor() as cursor:
            cursor.execute("""
                SELECT c.id, c.name, c.path, c.image_url, c.parent_id
                FROM categories c
                JOIN supplier_categories sc ON sc.category_id = c.id
                WHERE sc.supplier_id = %s
                ORDER BY c.id
            """, (supplier_id,))
            return [self._map_row_to_category(row) for row in cursor.fetchall()]

    # ------------------------------------------------------------------
    # Attribute value images
    # ------------------------------------------------------------------

    @staticmethod
    def _map_row_to_value_images(row: dict) -> AttributeValueImages:
        return AttributeValueImages(
            id=row['id'],
            attribute_value_id=row['attribute_value_id'],
            image_urls=list(row['image_urls'] or [])
        )

    def set_attribute_value_images(self, attribute_value_id: int, image_urls: List[str]) -> AttributeValueImages:
        """
        Store the image set of an attribute value, replacing any earlier set

        An unknown attribute_value_id fails the foreign key (NotFoundError).
        """
        with self.db.cursor() as cursor:
            cursor.execute("""
                INSERT INTO attribute_value_image (attribute_value_id, image_urls)
                VALUES (%s, %s)
                ON CONFLICT (attribute_value_id) DO UPDATE SET
                    image_urls = EXCLUDED.image_urls
                RETURNING id, attribute_value_id, image_urls
            """, (attribute_value_id, image_urls))
            return self._map_row_to_value_images(cursor.fetchone())

    def find_attribute_value_images(self, attribute_value_id: int) -> Optional[AttributeValueImages]:
        with self.db.cursor() as cursor:
            cursor.execute("""
                SELECT id, attribute_value_id, image_urls
                FROM attribute_value_image
                WHERE attribute_value_id = %s
            """, (attribute_value_id,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_value_images(row)
