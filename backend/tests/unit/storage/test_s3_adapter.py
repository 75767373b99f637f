"""Unit tests for the S3 attachment store using moto

Tests cover storing rejection attachments under
{document_id}/{step_id}/{file_name}, presigned download URLs, failure
reporting and environment configuration.
"""

import pytest
from uuid import UUID

from moto import mock_aws
import boto3

from doccontrol.storage import get_storage
from doccontrol.storage.config import load_storage_config_from_env
from doccontrol.storage.ports import StorageError, StoredAttachment, build_storage_path, sanitize_filename
from doccontrol.storage.s3_adapter import S3AttachmentStorage


# Test constants
TEST_BUCKET = "test-rejection-attachments"
TEST_REGION = "us-east-1"
TEST_ACCESS_KEY = "test-access-key"
TEST_SECRET_KEY = "test-secret-key"
DOCUMENT_ID = UUID("a1b2c3d4-e5f6-7890-abcd-ef1234567890")
STEP_ID = UUID("0f1e2d3c-4b5a-6978-8796-a5b4c3d2e1f0")


@pytest.fixture
def storage_adapter():
    """S3AttachmentStorage against a mocked bucket"""
    with mock_aws():
        s3_client = boto3.client(
            "s3",
            region_name=TEST_REGION,
            aws_access_key_id=TEST_ACCESS_KEY,
            aws_secret_access_key=TEST_SECRET_KEY,
        )
        s3_client.create_bucket(Bucket=TEST_BUCKET)

        adapter = S3AttachmentStorage(
            endpoint_url=None,  # AWS S3 (moto mocks this)
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name=TEST_BUCKET,
            region=TEST_REGION,
        )

        yield adapter


class TestStore:
    """Test attachment upload"""

    @pytest.mark.asyncio
    async def test_store_writes_blob_under_document_and_step(self, storage_adapter):
        content = b"%PDF-1.4 markup"

        stored = await storage_adapter.store(
            document_id=DOCUMENT_ID,
            step_id=STEP_ID,
            file_name="markup.pdf",
            content=content,
            content_type="application/pdf",
        )

        assert isinstance(stored, StoredAttachment)
        assert stored.storage_path == f"{DOCUMENT_ID}/{STEP_ID}/markup.pdf"
        assert stored.size_bytes == len(content)
        assert stored.content_type == "application/pdf"

        obj = storage_adapter.s3_client.get_object(Bucket=TEST_BUCKET, Key=stored.storage_path)
        assert obj["Body"].read() == content
        assert obj["ContentType"] == "application/pdf"
        assert obj["Metadata"]["step_id"] == str(STEP_ID)

    @pytest.mark.asyncio
    async def test_store_sanitizes_file_name(self, storage_adapter):
        stored = await storage_adapter.store(
            document_id=DOCUMENT_ID,
            step_id=STEP_ID,
            file_name="../../etc/rev B (final).dwg",
            content=b"dwg",
            content_type="application/acad",
        )

        assert stored.storage_path == f"{DOCUMENT_ID}/{STEP_ID}/rev_B_final_.dwg"

    @pytest.mark.asyncio
    async def test_store_rejects_empty_content(self, storage_adapter):
        with pytest.raises(StorageError, match="empty"):
            await storage_adapter.store(DOCUMENT_ID, STEP_ID, "empty.txt", b"", "text/plain")

    @pytest.mark.asyncio
    async def test_store_missing_bucket_raises_storage_error(self, storage_adapter):
        storage_adapter.bucket_name = "bucket-that-does-not-exist"

        with pytest.raises(StorageError, match="Failed to upload file"):
            await storage_adapter.store(DOCUMENT_ID, STEP_ID, "a.pdf", b"data", "application/pdf")


class TestDownloadUrl:

    @pytest.mark.asyncio
    async def test_presigned_url_points_at_blob(self, storage_adapter):
        stored = await storage_adapter.store(DOCUMENT_ID, STEP_ID, "a.pdf", b"data", "application/pdf")

        url = await storage_adapter.generate_download_url(stored.storage_path, ttl_seconds=600)

        assert TEST_BUCKET in url
        assert "a.pdf" in url
        assert "Expires=" in url


class TestPaths:

    def test_build_storage_path(self):
        assert build_storage_path(DOCUMENT_ID, STEP_ID, "x.pdf") == f"{DOCUMENT_ID}/{STEP_ID}/x.pdf"

    @pytest.mark.parametrize("raw,expected", [
        ("markup.pdf", "markup.pdf"),
        ("..\\..\\markup.pdf", "markup.pdf"),
        ("a/b/c.txt", "c.txt"),
        ("", "attachment"),
    ])
    def test_sanitize_filename(self, raw, expected):
        assert sanitize_filename(raw) == expected

    def test_long_names_keep_extension(self):
        name = sanitize_filename("x" * 300 + ".pdf")
        assert len(name) == 255
        assert name.endswith(".pdf")


class TestConfig:

    def test_missing_credentials_raise(self, monkeypatch):
        monkeypatch.delenv("MINIO_ROOT_USER", raising=False)
        monkeypatch.delenv("MINIO_ROOT_PASSWORD", raising=False)

        with pytest.raises(ValueError, match="MINIO_ROOT_USER"):
            load_storage_config_from_env()

    def test_minio_endpoint_and_timeouts(self, monkeypatch):
        monkeypatch.setenv("MINIO_ENDPOINT", "minio:9000")
        monkeypatch.setenv("MINIO_USE_SSL", "true")
        monkeypatch.setenv("MINIO_ROOT_USER", "minio")
        monkeypatch.setenv("MINIO_ROOT_PASSWORD", "minio-secret")
        monkeypatch.setenv("ATTACHMENT_BUCKET", "attachments")
        monkeypatch.setenv("STORAGE_READ_TIMEOUT", "7")
        monkeypatch.setenv("STORAGE_MAX_ATTEMPTS", "2")

        config = load_storage_config_from_env()

        assert config.endpoint_url == "https://minio:9000"
        assert config.bucket_name == "attachments"
        assert config.read_timeout == 7.0
        assert config.max_attempts == 2

    def test_get_storage_returns_none_when_unconfigured(self, monkeypatch):
        monkeypatch.delenv("MINIO_ROOT_USER", raising=False)
        monkeypatch.delenv("MINIO_ROOT_PASSWORD", raising=False)

        assert get_storage() is None

    def test_get_storage_builds_adapter(self, monkeypatch):
        monkeypatch.delenv("MINIO_ENDPOINT", raising=False)
        monkeypatch.setenv("MINIO_ROOT_USER", "minio")
        monkeypatch.setenv("MINIO_ROOT_PASSWORD", "minio-secret")
        monkeypatch.setenv("ATTACHMENT_BUCKET", "attachments")

        storage = get_storage()

        assert isinstance(storage, S3AttachmentStorage)
        assert storage.bucket_name == "attachments"
