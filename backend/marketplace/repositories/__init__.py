"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Every repository receives the Database gateway at construction.

Author: TM3
Date: 2026-10-17
"""
from marketplace.repositories.user_repository import UserRepository
from marketplace.repositories.supplier_repository import SupplierRepository
from marketplace.repositories.verification_repository import VerificationCodeRepository
from marketplace.repositories.category_repository import CategoryRepository
from marketplace.repositories.product_repository import ProductRepository

__all__ = [
    'UserRepository',
    'SupplierRepository',
    'VerificationCodeRepository',
    'CategoryRepository',
    'ProductRepository'
]
