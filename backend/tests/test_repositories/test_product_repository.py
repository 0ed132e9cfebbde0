"""
Unit tests for ProductRepository

These tests validate repository logic without requiring a database connection.

Author: TM3
Date: 2026-10-17
"""
from decimal import Decimal

from conftest import ScriptedCursor
from marketplace.domain.product import ProductAggregate, ProductDetail
from marketplace.repositories.product_repository import ProductRepository


def _aggregate(sample_product_data, **overrides):
    data = dict(sample_product_data, supplier_id=7, market_id=3, status_id=2)
    data.update(overrides)
    return ProductAggregate(**data)


def _product_row(now, product_id=1):
    return {
        'id': product_id,
        'name': 'Cotton shirt',
        'description': None,
        'price': Decimal('19.90'),
        'stock': 10,
        'category_id': 5,
        'market_id': 3,
        'status_id': 2,
        'supplier_id': 7,
        'created_at': now
    }


class TestCreateAggregate:
    """Test the multi-table product insert"""

    def test_inserts_rows_in_order(self, db, sample_product_data):
        # Arrange
        cursor = ScriptedCursor()
        repo = ProductRepository(db)

        # Act
        product_id = repo.create_aggregate(cursor, _aggregate(sample_product_data))

        # Assert
        assert product_id == 1
        tables = [sql.split()[2] for sql, _ in cursor.executed]
        assert tables == [
            'product',
            'product_image',
            'product_variation',
            'product_variation_image',
            'attributes', 'attribute_value', 'variation_attribute_value',   # Color=Red
            'attributes', 'attribute_value', 'variation_attribute_value',   # Size=S
            'product_variation',
            'variation_attribute_value',                                    # Color=Red reused
            'attribute_value', 'variation_attribute_value',                 # Size=M
        ]

    def test_shared_attribute_value_resolved_once(self, db, sample_product_data):
        # Arrange: both variations carry Color=Red
        cursor = ScriptedCursor()

        # Act
        ProductRepository(db).create_aggregate(cursor, _aggregate(sample_product_data))

        # Assert: one upsert for Red, two link rows pointing at it
        value_upserts = cursor.statements("INSERT INTO attribute_value ")
        red = [params for _, params in value_upserts if params[1] == 'Red']
        assert len(red) == 1
        assert "ON CONFLICT (attribute_id, value) DO UPDATE" in value_upserts[0][0]

        red_value_id = cursor.executed.index(next(
            (sql, params) for sql, params in cursor.executed
            if sql.startswith("INSERT INTO attribute_value ") and params[1] == 'Red'
        )) + 1
        links = cursor.statements("INSERT INTO variation_attribute_value")
        assert len(links) == 4
        assert len([params for _, params in links if params[1] == red_value_id]) == 2

    def test_attribute_upsert_scoped_to_category(self, db, sample_product_data):
        cursor = ScriptedCursor()

        ProductRepository(db).create_aggregate(cursor, _aggregate(sample_product_data))

        attribute_upserts = cursor.statements("INSERT INTO attributes ")
        assert [params for _, params in attribute_upserts] == [(5, 'Color'), (5, 'Size')]
        assert "ON CONFLICT (category_id, name) DO UPDATE" in attribute_upserts[0][0]

    def test_duplicate_pair_on_one_variation_linked_once(self, db, sample_product_data):
        # Arrange
        sample_product_data['variations'] = [{
            "sku": "MUG-1",
            "price": "5",
            "attributes": [{"name": "Color", "value": "Red"}, {"name": "Color", "value": " Red "}]
        }]
        cursor = ScriptedCursor()

        # Act
        ProductRepository(db).create_aggregate(cursor, _aggregate(sample_product_data))

        # Assert
        assert len(cursor.statements("INSERT INTO variation_attribute_value")) == 1

    def test_no_image_rows_without_images(self, db, sample_product_data):
        sample_product_data['images'] = []
        sample_product_data['variations'] = []
        cursor = ScriptedCursor()

        ProductRepository(db).create_aggregate(cursor, _aggregate(sample_product_data))

        assert [sql.split()[2] for sql, _ in cursor.executed] == ['product']

    def test_variation_position_preserved(self, db, sample_product_data):
        cursor = ScriptedCursor()

        ProductRepository(db).create_aggregate(cursor, _aggregate(sample_product_data))

        variations = cursor.statements("INSERT INTO product_variation ")
        assert [(params[1], params[2]) for _, params in variations] == [(0, 'SHIRT-RED-S'), (1, 'SHIRT-RED-M')]


class TestReads:
    def test_find_by_status_returns_page_and_total(self, db, mock_cursor, now):
        # Arrange
        mock_cursor.fetchone.return_value = {'total': 25}
        mock_cursor.fetchall.return_value = [_product_row(now, 11), _product_row(now, 12)]

        # Act
        products, total = ProductRepository(db).find_by_status(2, limit=10, offset=10)

        # Assert
        assert total == 25
        assert [p.id for p in products] == [11, 12]
        sql, params = mock_cursor.execute.call_args[0]
        assert "ORDER BY id" in sql
        assert params == [2, 10, 10]

    def test_find_by_supplier_and_status_filters_both(self, db, mock_cursor):
        mock_cursor.fetchone.return_value = {'total': 0}
        mock_cursor.fetchall.return_value = []

        ProductRepository(db).find_by_supplier_and_status(7, 3, limit=20, offset=0)

        sql, params = mock_cursor.execute.call_args[0]
        assert "supplier_id = %s AND status_id = %s" in sql
        assert params == [7, 3, 20, 0]

    def test_find_by_id_assembles_detail(self, db, mock_cursor, now):
        # Arrange: product, images, variations, attribute links
        mock_cursor.fetchone.return_value = _product_row(now)
        mock_cursor.fetchall.side_effect = [
            [{'image_urls': ['https://cdn/a.jpg', 'https://cdn/b.jpg']}],
            [
                {'id': 21, 'product_id': 1, 'sku': 'S', 'price': Decimal('19.90'), 'stock': 4, 'images': ['https://cdn/s.jpg']},
                {'id': 22, 'product_id': 1, 'sku': 'M', 'price': Decimal('21.90'), 'stock': 6, 'images': []},
            ],
            [
                {'product_variation_id': 21, 'attribute_id': 4, 'name': 'Color', 'attribute_value_id': 8, 'value': 'Red'},
                {'product_variation_id': 22, 'attribute_id': 4, 'name': 'Color', 'attribute_value_id': 8, 'value': 'Red'},
            ],
        ]

        # Act
        product = ProductRepository(db).find_by_id(1)

        # Assert
        assert isinstance(product, ProductDetail)
        assert product.images == ['https://cdn/a.jpg', 'https://cdn/b.jpg']
        assert [v.sku for v in product.variations] == ['S', 'M']
        assert product.variations[0].images == ['https://cdn/s.jpg']
        assert product.variations[1].attributes[0].value == 'Red'

    def test_find_by_id_not_found(self, db, mock_cursor):
        mock_cursor.fetchone.return_value = None

        assert ProductRepository(db).find_by_id(999) is None
        mock_cursor.execute.assert_called_once()
