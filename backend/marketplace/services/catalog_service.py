"""
Catalog Service
Atomic product ingestion and catalog reads

- CatalogWriter.create_product: whole product aggregate in one transaction,
  retried on deadlock / serialization failure
- CatalogReader: offset-paginated product listings, the category forest,
  typed category attributes and attribute-value images

Offset pagination is not stable under concurrent inserts: a row inserted
before the current offset shifts later pages by one.

Author: TM3
Date: 2026-10-17
"""
import logging
from typing import Dict, List, Optional

from marketplace.core.config import settings
from marketplace.core.database import Database
from marketplace.core.errors import InvalidError, MarketplaceError, NotFoundError
from marketplace.domain.category import (
    AttributeValueImages,
    AttributeValueImagesCreate,
    Category,
    CategoryAttribute,
    CategoryAttributesCreate,
    CategoryCreate,
    CategoryNode,
)
from marketplace.domain.product import (
    MAX_PAGE_SIZE,
    Page,
    PageRequest,
    Product,
    ProductAggregate,
    ProductCreate,
    ProductDetail,
)
from marketplace.repositories.category_repository import CategoryRepository
from marketplace.repositories.product_repository import ProductRepository
from marketplace.repositories.supplier_repository import SupplierRepository

logger = logging.getLogger(__name__)


def validate_page(page: int, page_size: int) -> PageRequest:
    """Raises InvalidError unless page >= 1 and 1 <= page_size <= MAX_PAGE_SIZE"""
    if page < 1:
        raise InvalidError("page must be >= 1")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise InvalidError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
    return PageRequest(page=page, page_size=page_size)


def build_category_tree(categories: List[Category]) -> List[CategoryNode]:
    """
    Build the category forest in one pass over an id -> node map

    Roots have parent_id NULL or 0. Categories whose parent is not in the
    list are dropped (with a warning) together with their subtrees.
    Children keep the order of the input list.
    """
    nodes: Dict[int, CategoryNode] = {
        category.id: CategoryNode(
            id=category.id,
            name=category.name,
            path=category.path,
            image_url=category.image_url,
            children=[]
        )
        for category in categories
    }

    roots: List[CategoryNode] = []
    for category in categories:
        node = nodes[category.id]
        if category.is_root:
            roots.append(node)
        elif category.parent_id in nodes:
            nodes[category.parent_id].children.append(node)
        else:
            logger.warning(
                f"Category {category.id} ({category.path}) references missing parent "
                f"{category.parent_id}; left out of the tree"
            )

    return roots


class CatalogWriter:
    """Product ingestion"""

    def __init__(
        self,
        db: Database,
        products: ProductRepository,
        suppliers: SupplierRepository,
        categories: CategoryRepository,
        status_id: Optional[int] = None
    ):
        self.db = db
        self.products = products
        self.suppliers = suppliers
        self.categories = categories
        self.status_id = status_id or settings.NEW_PRODUCT_STATUS_ID

    def create_product(self, user_id: int, product: ProductCreate) -> int:
        """
        Create a product with images, variations and attribute values

        Every row is written in one transaction; on any failure nothing is
        left behind and the error is re-raised with the product name as
        context.

        Returns:
            The new product id
        """
        context = f"create product '{product.name}'"
        try:
            supplier = self.suppliers.find_by_user_id(user_id)
            if supplier is None:
                raise NotFoundError(f"no supplier for user {user_id}")

            if self.categories.find_by_id(product.category_id) is None:
                raise NotFoundError(f"category {product.category_id} does not exist")

            aggregate = ProductAggregate(
                **product.model_dump(),
                supplier_id=supplier.id,
                market_id=supplier.market_id,
                status_id=self.status_id
            )

            product_id = self.db.run_in_transaction(
                lambda cursor: self.products.create_aggregate(cursor, aggregate)
            )
        except MarketplaceError as e:
            logger.error(f"{context} failed: {e.message}")
            raise e.wrap(context)

        logger.info(
            f"Created product {product_id} for supplier {supplier.id} "
            f"with {len(product.variations)} variation(s)"
        )
        return product_id


class CatalogReader:
    """Product listings, product detail and categories"""

    def __init__(
        self,
        products: ProductRepository,
        categories: CategoryRepository,
        suppliers: SupplierRepository
    ):
        self.products = products
        self.categories = categories
        self.suppliers = suppliers

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def list_by_status(self, status_id: int, page: int = 1, page_size: int = 20) -> Page[Product]:
        request = validate_page(page, page_size)
        items, total = self.products.find_by_status(status_id, request.limit, request.offset)
        return Page[Product](items=items, page=request.page, page_size=request.page_size, total=total)

    def list_for_supplier(self, user_id: int, status_id: int, page: int = 1, page_size: int = 20) -> Page[Product]:
        request = validate_page(page, page_size)
        supplier = self.suppliers.find_by_user_id(user_id)
        if supplier is None:
            raise NotFoundError(f"no supplier for user {user_id}")

        items, total = self.products.find_by_supplier_and_status(
            supplier.id, status_id, request.limit, request.offset
        )
        return Page[Product](items=items, page=request.page, page_size=request.page_size, total=total)

    def get_product(self, product_id: int) -> ProductDetail:
        product = self.products.find_by_id(product_id)
        if product is None:
            raise NotFoundError(f"product {product_id} not found")
        return product

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def list_categories(self) -> List[Category]:
        return self.categories.find_all()

    def category_tree(self) -> List[CategoryNode]:
        return build_category_tree(self.categories.find_all())

    def root_categories(self) -> List[Category]:
        return self.categories.find_roots()

    def subcategories(self, path: str) -> List[Category]:
        if self.categories.find_by_path(path) is None:
            raise NotFoundError(f"category '{path}' not found")
        return self.categories.find_children_by_path(path)

    def get_category(self, category_id: int) -> Category:
        category = self.categories.find_by_id(category_id)
        if category is None:
            raise NotFoundError(f"category {category_id} not found")
        return category

    def category_by_path(self, path: str) -> Category:
        category = self.categories.find_by_path(path)
        if category is None:
            raise NotFoundError(f"category '{path}' not found")
        return category

    def supplier_categories(self, user_id: int) -> List[Category]:
        """Categories the caller's supplier trades in"""
        supplier = self.suppliers.find_by_user_id(user_id)
        if supplier is None:
            raise NotFoundError(f"no supplier for user {user_id}")
        return self.categories.find_by_supplier(supplier.id)

    def category_attributes(self, category_id: int) -> List[CategoryAttribute]:
        self.get_category(category_id)
        return self.categories.find_attributes(category_id)

    def define_category_attributes(self, request: CategoryAttributesCreate) -> List[CategoryAttribute]:
        """
        Create or redefine typed attributes of a category

        Options were checked against their type by the request model; all
        attributes are written in one transaction.
        """
        self.get_category(request.category_id)
        self.categories.upsert_attributes(request.category_id, request.attributes)
        logger.info(
            f"Defined {len(request.attributes)} attribute(s) for category {request.category_id}"
        )
        return self.categories.find_attributes(request.category_id)

    # ------------------------------------------------------------------
    # Attribute value images
    # ------------------------------------------------------------------

    def set_attribute_value_images(self, request: AttributeValueImagesCreate) -> AttributeValueImages:
        try:
            return self.categories.set_attribute_value_images(request.attribute_value_id, request.image_urls)
        except NotFoundError as e:
            raise NotFoundError(f"attribute value {request.attribute_value_id} not found") from e

    def attribute_value_images(self, attribute_value_id: int) -> AttributeValueImages:
        images = self.categories.find_attribute_value_images(attribute_value_id)
        if images is None:
            raise NotFoundError(f"no images for attribute value {attribute_value_id}")
        return images

    def add_category(self, category: CategoryCreate) -> Category:
        """
        Create a category

        A duplicate path surfaces as ConflictError from the unique constraint.
        """
        parent_id = category.parent_id or None
        if parent_id is not None and self.categories.find_by_id(parent_id) is None:
            raise NotFoundError(f"parent category {parent_id} not found")

        created = self.categories.create(category.name, category.path, category.image_url, parent_id)
        logger.info(f"Created category {created.id} at {created.path}")
        return created

    def set_category_image(self, category_id: int, image_url: str) -> Category:
        updated = self.categories.update_image_url(category_id, image_url)
        if updated is None:
            raise NotFoundError(f"category {category_id} not found")
        return updated
