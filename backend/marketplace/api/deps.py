"""
FastAPI dependencies wiring services to the shared resources on app.state

main.py's lifespan puts the Database, the WhatsApp sender, the storage
connector and the OTP rate limiter on app.state. Tests replace the
service factories with app.dependency_overrides.
"""
from fastapi import Depends, Request

from marketplace.connectors.storage_connector import SupabaseStorageConnector
from marketplace.core.database import Database
from marketplace.core.rate_limit import RateLimiter
from marketplace.repositories import (
    CategoryRepository,
    ProductRepository,
    SupplierRepository,
    UserRepository,
    VerificationCodeRepository,
)
from marketplace.services import CatalogReader, CatalogWriter, IdentityService, OTPService


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_sender(request: Request):
    return request.app.state.sender


def get_storage(request: Request) -> SupabaseStorageConnector:
    return request.app.state.storage


def get_otp_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.otp_rate_limiter


def get_otp_service(
    db: Database = Depends(get_db),
    sender=Depends(get_sender),
    rate_limiter: RateLimiter = Depends(get_otp_rate_limiter)
) -> OTPService:
    return OTPService(VerificationCodeRepository(db), sender, rate_limiter)


def get_identity_service(
    db: Database = Depends(get_db),
    otp: OTPService = Depends(get_otp_service)
) -> IdentityService:
    return IdentityService(UserRepository(db), SupplierRepository(db), otp)


def get_catalog_writer(db: Database = Depends(get_db)) -> CatalogWriter:
    return CatalogWriter(db, ProductRepository(db), SupplierRepository(db), CategoryRepository(db))


def get_catalog_reader(db: Database = Depends(get_db)) -> CatalogReader:
    return CatalogReader(ProductRepository(db), CategoryRepository(db), SupplierRepository(db))
