"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.

Author: TM3
Date: 2026-10-17
"""
from marketplace.domain.user import User, Supplier, Market
from marketplace.domain.verification import VerificationCode, OTPState
from marketplace.domain.category import (
    Category,
    CategoryNode,
    CategoryCreate,
    CategoryAttribute,
    CategoryAttributeInput,
    CategoryAttributesCreate,
    AttributeOptionType,
    AttributeValueImages,
    AttributeValueImagesCreate,
)
from marketplace.domain.product import (
    Product,
    ProductDetail,
    ProductCreate,
    ProductAggregate,
    ProductVariation,
    VariationCreate,
    AttributeInput,
    Page,
    PageRequest,
)

__all__ = [
    'User', 'Supplier', 'Market',
    'VerificationCode', 'OTPState',
    'Category', 'CategoryNode', 'CategoryCreate', 'CategoryAttribute',
    'CategoryAttributeInput', 'CategoryAttributesCreate', 'AttributeOptionType',
    'AttributeValueImages', 'AttributeValueImagesCreate',
    'Product', 'ProductDetail', 'ProductCreate', 'ProductAggregate',
    'ProductVariation', 'VariationCreate', 'AttributeInput',
    'Page', 'PageRequest',
]
