"""Storage configuration for the S3-compatible attachment store.

Loads configuration from environment variables. Supports both MinIO
(development) and AWS S3 (production) with the same interface.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class StorageConfig:
    """Configuration for S3-compatible object storage.

    Attributes:
        endpoint_url: S3 endpoint URL (e.g., 'http://localhost:9000' for MinIO,
                      None for AWS S3 which uses default regional endpoints)
        access_key: S3 access key ID
        secret_key: S3 secret access key
        bucket_name: Bucket holding rejection attachments
        region: AWS region (default: 'us-east-1')
        connect_timeout: Seconds to wait for a connection
        read_timeout: Seconds to wait for a response
        max_attempts: Total attempts per request, including the first
    """
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    bucket_name: str = "rejection-attachments"
    region: str = "us-east-1"
    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    max_attempts: int = 3


def load_storage_config_from_env() -> StorageConfig:
    """Load storage configuration from environment variables.

    Environment Variables:
        MINIO_ENDPOINT: MinIO endpoint (e.g., 'localhost:9000')
                        If not set, assumes AWS S3 with default regional endpoints
        MINIO_ROOT_USER: Access key for MinIO/S3
        MINIO_ROOT_PASSWORD: Secret key for MinIO/S3
        MINIO_USE_SSL: Whether to use SSL for MINIO_ENDPOINT (default: 'false')
        ATTACHMENT_BUCKET: Bucket name (default: 'rejection-attachments')
        AWS_REGION: AWS region (default: 'us-east-1')
        STORAGE_CONNECT_TIMEOUT / STORAGE_READ_TIMEOUT: Seconds
        STORAGE_MAX_ATTEMPTS: Retry budget per request

    Raises:
        ValueError: If required environment variables are missing
    """
    endpoint = os.getenv("MINIO_ENDPOINT")
    endpoint_url = None
    if endpoint:
        use_ssl = os.getenv("MINIO_USE_SSL", "false").lower() in ("true", "1", "yes")
        protocol = "https" if use_ssl else "http"
        endpoint_url = f"{protocol}://{endpoint}"

    access_key = os.getenv("MINIO_ROOT_USER")
    secret_key = os.getenv("MINIO_ROOT_PASSWORD")

    if not access_key or not secret_key:
        raise ValueError(
            "Missing required storage credentials. "
            "Set MINIO_ROOT_USER and MINIO_ROOT_PASSWORD environment variables."
        )

    return StorageConfig(
        endpoint_url=endpoint_url,
        access_key=access_key,
        secret_key=secret_key,
        bucket_name=os.getenv("ATTACHMENT_BUCKET", "rejection-attachments"),
        region=os.getenv("AWS_REGION", "us-east-1"),
        connect_timeout=float(os.getenv("STORAGE_CONNECT_TIMEOUT", "5")),
        read_timeout=float(os.getenv("STORAGE_READ_TIMEOUT", "30")),
        max_attempts=int(os.getenv("STORAGE_MAX_ATTEMPTS", "3")),
    )
