"""Rejection attachment blob storage"""

import logging
from typing import Optional

from .ports import AttachmentStoragePort, StoredAttachment, StorageError, build_storage_path, sanitize_filename
from .config import StorageConfig, load_storage_config_from_env
from .s3_adapter import S3AttachmentStorage

logger = logging.getLogger(__name__)


def get_storage() -> Optional[AttachmentStoragePort]:
    """Dependency for the attachment store

    Loads storage config from environment and returns an S3 adapter instance.
    Returns None when storage is not configured; uploads are then skipped.
    """
    try:
        config = load_storage_config_from_env()
        return S3AttachmentStorage.from_config(config)
    except (ValueError, StorageError) as e:
        logger.warning(f"Attachment storage unavailable: {e}")
        return None


__all__ = [
    "AttachmentStoragePort",
    "StoredAttachment",
    "StorageError",
    "build_storage_path",
    "sanitize_filename",
    "StorageConfig",
    "load_storage_config_from_env",
    "S3AttachmentStorage",
    "get_storage",
]
