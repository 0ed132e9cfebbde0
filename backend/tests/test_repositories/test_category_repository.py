"""
Unit tests for CategoryRepository

Author: TM3
Date: 2026-10-17
"""
import pytest
from psycopg2 import errors as pg_errors
from psycopg2.extras import Json

from marketplace.core.errors import ConflictError, NotFoundError
from marketplace.domain.category import AttributeOptionType, CategoryAttributeInput
from marketplace.repositories.category_repository import CategoryRepository


class TestCategoryRepository:
    def test_find_all_ordered_by_id(self, db, mock_cursor):
        mock_cursor.fetchall.return_value = [
            {'id': 1, 'name': 'Clothes', 'path': '/clothes', 'image_url': None, 'parent_id': None},
            {'id': 2, 'name': 'Men', 'path': '/clothes/men', 'image_url': None, 'parent_id': 1},
        ]

        categories = CategoryRepository(db).find_all()

        assert [c.id for c in categories] == [1, 2]
        assert categories[0].is_root is True
        assert categories[1].is_root is False
        assert "ORDER BY id" in mock_cursor.execute.call_args[0][0]

    def test_create_duplicate_path_is_conflict(self, db, mock_cursor, mock_conn):
        # Arrange: unique constraint on path fires
        mock_cursor.execute.side_effect = pg_errors.UniqueViolation("duplicate key value violates unique constraint")

        # Act / Assert
        with pytest.raises(ConflictError):
            CategoryRepository(db).create('Men', '/clothes/men', parent_id=1)

        mock_conn.rollback.assert_called_once()

    def test_find_children_by_path_joins_parent(self, db, mock_cursor):
        mock_cursor.fetchall.return_value = []

        CategoryRepository(db).find_children_by_path('/clothes')

        sql, params = mock_cursor.execute.call_args[0]
        assert "parent.path = %s" in sql
        assert params == ('/clothes',)

    def test_update_image_url_missing_category(self, db, mock_cursor):
        mock_cursor.fetchone.return_value = None

        assert CategoryRepository(db).update_image_url(99, 'https://cdn/x.jpg') is None

    def test_find_attributes(self, db, mock_cursor):
        mock_cursor.fetchall.return_value = [
            {'id': 4, 'name': 'Color', 'value_list': ['Blue', 'Red']},
            {'id': 5, 'name': 'Size', 'value_list': []},
        ]

        attributes = CategoryRepository(db).find_attributes(5)

        assert attributes[0].values == ['Blue', 'Red']
        assert attributes[1].values == []

    def test_find_attributes_maps_type_and_options(self, db, mock_cursor):
        mock_cursor.fetchall.return_value = [
            {'id': 4, 'name': 'Size', 'description': 'EU sizes', 'type_of_option': 'range',
             'options': {'from': '36', 'to': '46'}, 'value_list': ['38']},
            {'id': 5, 'name': 'Color', 'description': None, 'type_of_option': None,
             'options': None, 'value_list': ['Red']},
        ]

        size, color = CategoryRepository(db).find_attributes(5)

        assert size.type_of_option == AttributeOptionType.RANGE
        assert size.options == {'from': '36', 'to': '46'}
        assert color.type_of_option == AttributeOptionType.DROPDOWN
        assert "a.type_of_option" in mock_cursor.execute.call_args[0][0]

    def test_upsert_attributes_in_one_transaction(self, db, mock_cursor, mock_conn):
        # Arrange
        mock_cursor.fetchone.side_effect = [{'id': 4}, {'id': 9}]
        attributes = [
            CategoryAttributeInput(name='Size', type_of_option='range', value={'from': '36', 'to': '46'}),
            CategoryAttributeInput(name='Waterproof', type_of_option='switcher', value=True),
        ]

        # Act
        ids = CategoryRepository(db).upsert_attributes(5, attributes)

        # Assert
        assert ids == [4, 9]
        mock_conn.commit.assert_called_once()
        sql, params = mock_cursor.execute.call_args_list[0][0]
        assert "ON CONFLICT (category_id, name) DO UPDATE" in sql
        assert params[:4] == (5, 'Size', None, 'range')
        assert isinstance(params[4], Json)
        assert params[4].adapted == {'from': '36', 'to': '46'}

    def test_find_by_supplier_joins_links(self, db, mock_cursor):
        mock_cursor.fetchall.return_value = [
            {'id': 1, 'name': 'Clothes', 'path': '/clothes', 'image_url': None, 'parent_id': None},
        ]

        categories = CategoryRepository(db).find_by_supplier(7)

        assert [c.path for c in categories] == ['/clothes']
        sql, params = mock_cursor.execute.call_args[0]
        assert "JOIN supplier_categories" in sql
        assert params == (7,)

    def test_set_attribute_value_images_replaces_urls(self, db, mock_cursor):
        mock_cursor.fetchone.return_value = {'id': 2, 'attribute_value_id': 9, 'image_urls': ['https://cdn/red.jpg']}

        images = CategoryRepository(db).set_attribute_value_images(9, ['https://cdn/red.jpg'])

        assert images.image_urls == ['https://cdn/red.jpg']
        sql, params = mock_cursor.execute.call_args[0]
        assert "ON CONFLICT (attribute_value_id) DO UPDATE" in sql
        assert params == (9, ['https://cdn/red.jpg'])

    def test_set_images_for_unknown_value_is_not_found(self, db, mock_cursor, mock_conn):
        mock_cursor.execute.side_effect = pg_errors.ForeignKeyViolation("violates foreign key constraint")

        with pytest.raises(NotFoundError):
            CategoryRepository(db).set_attribute_value_images(999, ['https://cdn/red.jpg'])

        mock_conn.rollback.assert_called_once()

    def test_find_attribute_value_images_missing(self, db, mock_cursor):
        mock_cursor.fetchone.return_value = None

        assert CategoryRepository(db).find_attribute_value_images(9) is None
