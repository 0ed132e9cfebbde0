"""
Service Layer - Business Logic

Services orchestrate repositories and connectors; they never issue SQL.

Author: TM3
Date: 2026-10-17
"""
from marketplace.services.otp_service import OTPService
from marketplace.services.identity_service import IdentityService
from marketplace.services.catalog_service import CatalogWriter, CatalogReader

__all__ = [
    'OTPService',
    'IdentityService',
    'CatalogWriter',
    'CatalogReader'
]
