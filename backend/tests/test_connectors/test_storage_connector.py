"""
Unit tests for SupabaseStorageConnector

Author: TM3
Date: 2026-10-17
"""
import pytest
from unittest.mock import MagicMock

from supabase import StorageException

from marketplace.connectors.storage_connector import SupabaseStorageConnector
from marketplace.core.errors import InvalidError, UpstreamError


@pytest.fixture
def bucket():
    bucket = MagicMock()
    bucket.get_public_url.return_value = "https://project.supabase.co/storage/v1/object/public/marketplace/products/x.jpg"
    return bucket


@pytest.fixture
def storage(bucket):
    client = MagicMock()
    client.storage.from_.return_value = bucket
    return SupabaseStorageConnector(client=client, bucket="marketplace")


class TestBuildPath:
    def test_uuid_name_keeps_lowercase_extension(self):
        path = SupabaseStorageConnector.build_path("products", "Photo.JPG")

        folder, filename = path.split("/")
        assert folder == "products"
        assert filename.endswith(".jpg")
        assert len(filename) == 32 + len(".jpg")

    def test_unknown_folder_rejected(self):
        with pytest.raises(InvalidError):
            SupabaseStorageConnector.build_path("../etc", "passwd")


class TestUpload:
    def test_returns_public_url(self, storage, bucket):
        url = storage.upload(b"\xff\xd8", "products/x.jpg", "image/jpeg")

        assert url.endswith("products/x.jpg")
        bucket.upload.assert_called_once_with(
            path="products/x.jpg", file=b"\xff\xd8", file_options={"content-type": "image/jpeg"}
        )

    def test_storage_failure_is_upstream_error(self, storage, bucket):
        bucket.upload.side_effect = StorageException({"message": "Bucket not found", "statusCode": 404})

        with pytest.raises(UpstreamError):
            storage.upload(b"data", "products/x.jpg", "image/jpeg")


class TestRemove:
    def test_removes_paths(self, storage, bucket):
        storage.remove(["products/a.jpg", "products/b.jpg"])

        bucket.remove.assert_called_once_with(["products/a.jpg", "products/b.jpg"])

    def test_empty_list_is_noop(self, storage, bucket):
        storage.remove([])

        bucket.remove.assert_not_called()

    def test_storage_failure_is_upstream_error(self, storage, bucket):
        bucket.remove.side_effect = StorageException({"message": "Forbidden", "statusCode": 403})

        with pytest.raises(UpstreamError):
            storage.remove(["products/a.jpg"])
