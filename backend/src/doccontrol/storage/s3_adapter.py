"""S3 Attachment Storage - AttachmentStoragePort implemented with boto3.

Works against AWS S3, MinIO and other S3-compatible services. Every request
is bounded by the connect/read timeouts and retry budget from StorageConfig.
"""

import logging
from io import BytesIO
from typing import Optional
from uuid import UUID

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import StorageConfig
from .ports import AttachmentStoragePort, StorageError, StoredAttachment, build_storage_path

logger = logging.getLogger(__name__)


class S3AttachmentStorage(AttachmentStoragePort):
    """S3-compatible attachment store.

    Example:
        config = load_storage_config_from_env()
        storage = S3AttachmentStorage.from_config(config)

        stored = await storage.store(
            document_id=document.id,
            step_id=step.id,
            file_name="markup.pdf",
            content=data,
            content_type="application/pdf",
        )
        url = await storage.generate_download_url(stored.storage_path, 3600)
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
        connect_timeout: float = 5.0,
        read_timeout: float = 30.0,
        max_attempts: int = 3,
    ):
        """Initialize the adapter.

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
                config=Config(
                    connect_timeout=connect_timeout,
                    read_timeout=read_timeout,
                    retries={"max_attempts": max_attempts, "mode": "standard"},
                ),
            )
        except BotoCoreError as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region

        logger.info(
            f"Initialized attachment storage: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    @classmethod
    def from_config(cls, config: StorageConfig) -> "S3AttachmentStorage":
        return cls(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            max_attempts=config.max_attempts,
        )

    async def store(
        self,
        document_id: UUID,
        step_id: UUID,
        file_name: str,
        content: bytes,
        content_type: str,
    ) -> StoredAttachment:
        """Upload one attachment under {document_id}/{step_id}/{file_name}.

        An existing blob at the same path is overwritten, matching the
        behaviour of a re-upload of the same file against the same step.

        Raises:
            StorageError: If content is empty or the upload fails
        """
        if not content:
            raise StorageError(f"Cannot store empty file: {file_name}")

        storage_path = build_storage_path(document_id, step_id, file_name)

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=storage_path,
                Body=BytesIO(content),
                ContentType=content_type,
                Metadata={
                    "document_id": str(document_id),
                    "step_id": str(step_id),
                },
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                f"S3 upload failed: storage_path={storage_path}, "
                f"error={error_code}, message={e}"
            )
            raise StorageError(f"Failed to upload file: {error_code}")
        except BotoCoreError as e:
            logger.error(f"S3 upload failed: storage_path={storage_path}, message={e}")
            raise StorageError(f"Failed to upload file: {e}")

        logger.info(
            f"Uploaded attachment: storage_path={storage_path}, "
            f"size={len(content)}, content_type={content_type}"
        )

        return StoredAttachment(
            storage_path=storage_path,
            size_bytes=len(content),
            content_type=content_type,
        )

    async def generate_download_url(self, storage_path: str, ttl_seconds: int = 3600) -> str:
        """Generate a presigned GET URL.

        Raises:
            StorageError: If URL generation fails
        """
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": storage_path,
                },
                ExpiresIn=ttl_seconds,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                f"Presigned URL generation failed: storage_path={storage_path}, "
                f"error={error_code}"
            )
            raise StorageError(f"Failed to generate download URL: {error_code}")
        except BotoCoreError as e:
            logger.error(f"Presigned URL generation failed: storage_path={storage_path}, message={e}")
            raise StorageError(f"Failed to generate download URL: {e}")
