"""
Product Repository - Data Access Layer for Products

Handles all database queries for products and returns Product domain models.
create_aggregate() writes a whole product (images, variations, attribute
values) on a cursor supplied by the caller, so the caller owns the
transaction boundary.

Author: TM3
Date: 2026-10-17
"""
from typing import Dict, List, Optional, Tuple
from collections import defaultdict

from marketplace.core.database import Database
from marketplace.domain.product import (
    Product,
    ProductDetail,
    ProductAggregate,
    ProductVariation,
    VariationAttribute,
    VariationCreate,
)

PRODUCT_COLUMNS = """
    id, name, description, price, stock,
    category_id, market_id, status_id, supplier_id, created_at
"""


class AttributeResolver:
    """
    Get-or-create for attributes and attribute values within one aggregate

    Every lookup is a single INSERT ... ON CONFLICT ... DO UPDATE ...
    RETURNING id, so two transactions racing on the same pair both end up
    with the same row. Resolved ids are memoised, a pair repeated across
    variations hits the database once.
    """

    def __init__(self, cursor, category_id: int):
        self.cursor = cursor
        self.category_id = category_id
        self._attributes: Dict[str, int] = {}
        self._values: Dict[Tuple[int, str], int] = {}

    def attribute_id(self, name: str) -> int:
        if name not in self._attributes:
            self.cursor.execute("""
                INSERT INTO attributes (category_id, name)
                VALUES (%s, %s)
                ON CONFLICT (category_id, name) DO UPDATE SET name = EXCLUDED.name
                RETURNING id
            """, (self.category_id, name))
            self._attributes[name] = self.cursor.fetchone()['id']
        return self._attributes[name]

    def value_id(self, name: str, value: str) -> int:
        attribute_id = self.attribute_id(name)
        key = (attribute_id, value)
        if key not in self._values:
            self.cursor.execute("""
                INSERT INTO attribute_value (attribute_id, value)
                VALUES (%s, %s)
                ON CONFLICT (attribute_id, value) DO UPDATE SET value = EXCLUDED.value
                RETURNING id
            """, (attribute_id, value))
            self._values[key] = self.cursor.fetchone()['id']
        return self._values[key]


class ProductRepository:
    """
    Repository for Product data access

    All SQL queries for products are centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    def __init__(self, db: Database):
        self.db = db

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        return Product(
            id=row['id'],
            name=row['name'],
            description=row.get('description'),
            price=row.get('price'),
            stock=row.get('stock') or 0,
            category_id=row['category_id'],
            market_id=row.get('market_id'),
            status_id=row['status_id'],
            supplier_id=row['supplier_id'],
            created_at=row.get('created_at')
        )

    def _find_page(self, where_clause: str, params: list, limit: int, offset: int) -> Tuple[List[Product], int]:
        with self.db.cursor() as cursor:
            # Get total count
            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM product
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            # Get products
            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM product
                WHERE {where_clause}
                ORDER BY id
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            rows = cursor.fetchall()
            return [self._map_row_to_product(row) for row in rows], total

    def find_by_status(self, status_id: int, limit: int, offset: int) -> Tuple[List[Product], int]:
        """
        Offset page of products with the given status, ordered by id

        Returns:
            Tuple of (list of products, total count)
        """
        return self._find_page("status_id = %s", [status_id], limit, offset)

    def find_by_supplier_and_status(
        self,
        supplier_id: int,
        status_id: int,
        limit: int,
        offset: int
    ) -> Tuple[List[Product], int]:
        return self._find_page("supplier_id = %s AND status_id = %s", [supplier_id, status_id], limit, offset)

    def find_by_id(self, product_id: int) -> Optional[ProductDetail]:
        """
        Find product by ID, with its images and variations

        Returns:
            ProductDetail or None if not found
        """
        with self.db.cursor() as cursor:
            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM product
                WHERE id = %s
            """, (product_id,))

            row = cursor.fetchone()
            if not row:
                return None
            product = self._map_row_to_product(row)

            cursor.execute("""
                SELECT image_urls
                FROM product_image
                WHERE product_id = %s
                ORDER BY id
            """, (product_id,))
            images = [url for image_row in cursor.fetchall() for url in (image_row['image_urls'] or [])]

            cursor.execute("""
                SELECT
                    v.id, v.product_id, v.sku, v.price, v.stock,
                    COALESCE(
                        (SELECT array_agg(u ORDER BY vi.id)
                         FROM product_variation_image vi, unnest(vi.image_urls) AS u
                         WHERE vi.product_variation_id = v.id),
                        '{}'
                    ) AS images
                FROM product_variation v
                WHERE v.product_id = %s
                ORDER BY v.position, v.id
            """, (product_id,))
            variation_rows = cursor.fetchall()

            cursor.execute("""
                SELECT
                    vav.product_variation_id,
                    a.id AS attribute_id, a.name,
                    av.id AS attribute_value_id, av.value
                FROM variation_attribute_value vav
                JOIN product_variation v ON v.id = vav.product_variation_id
                JOIN attribute_value av ON av.id = vav.attribute_value_id
                JOIN attributes a ON a.id = av.attribute_id
                WHERE v.product_id = %s
                ORDER BY vav.id
            """, (product_id,))

            attributes_by_variation = defaultdict(list)
            for attribute_row in cursor.fetchall():
                attributes_by_variation[attribute_row['product_variation_id']].append(VariationAttribute(
                    attribute_id=attribute_row['attribute_id'],
                    attribute_value_id=attribute_row['attribute_value_id'],
                    name=attribute_row['name'],
                    value=attribute_row['value']
                ))

            variations = [
                ProductVariation(
                    id=v['id'],
                    product_id=v['product_id'],
                    sku=v['sku'],
                    price=v['price'],
                    stock=v['stock'],
                    images=list(v.get('images') or []),
                    attributes=attributes_by_variation.get(v['id'], [])
                )
                for v in variation_rows
            ]

            return ProductDetail(**product.model_dump(), images=images, variations=variations)

    # ------------------------------------------------------------------
    # Aggregate write
    # ------------------------------------------------------------------

    def create_aggregate(self, cursor, aggregate: ProductAggregate) -> int:
        """
        Insert a product with its images, variations and attribute links

        Must run on a transactional cursor (Database.transaction or
        Database.run_in_transaction); any exception leaves nothing behind
        once the caller rolls back.

        Returns:
            The new product id
        """
        cursor.execute("""
            INSERT INTO product (
                name, description, price, stock,
                category_id, market_id, status_id, supplier_id, created_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, NOW())
            RETURNING id
        """, (
            aggregate.name, aggregate.description, aggregate.price, aggregate.stock,
            aggregate.category_id, aggregate.market_id, aggregate.status_id, aggregate.supplier_id
        ))
        product_id = cursor.fetchone()['id']

        if aggregate.images:
            cursor.execute("""
                INSERT INTO product_image (product_id, image_urls)
                VALUES (%s, %s)
            """, (product_id, list(aggregate.images)))

        resolver = AttributeResolver(cursor, aggregate.category_id)
        for position, variation in enumerate(aggregate.variations):
            self._insert_variation(cursor, resolver, product_id, position, variation)

        return product_id

    @staticmethod
    def _insert_variation(cursor, resolver: AttributeResolver, product_id: int, position: int, variation: VariationCreate) -> int:
        cursor.execute("""
            INSERT INTO product_variation (product_id, position, sku, price, stock)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING id
        """, (product_id, position, variation.sku, variation.price, variation.stock))
        variation_id = cursor.fetchone()['id']

        if variation.images:
            cursor.execute("""
                INSERT INTO product_variation_image (product_variation_id, image_urls)
                VALUES (%s, %s)
            """, (variation_id, list(variation.images)))

        linked = set()
        for attribute in variation.attributes:
            value_id = resolver.value_id(attribute.name, attribute.value)
            # Same pair listed twice on one variation
            if value_id in linked:
                continue
            cursor.execute("""
                INSERT INTO variation_attribute_value (product_variation_id, attribute_value_id)
                VALUES (%s, %s)
            """, (variation_id, value_id))
            linked.add(value_id)

        return variation_id
