"""Attachment Storage Port - interface for the rejection attachment blob store.

Blobs are opaque and addressed by a storage path of the form
{document_id}/{step_id}/{file_name}. The approval workflow only needs to
put a blob and hand out a time-limited download link for it.
"""

import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import UUID


class StorageError(Exception):
    """Raised when the blob store rejects or fails an operation."""
    pass


@dataclass
class StoredAttachment:
    """Metadata for a blob written to the attachment store.

    Attributes:
        storage_path: Key of the blob inside the attachment bucket
        size_bytes: Blob size in bytes
        content_type: MIME type recorded with the blob
    """
    storage_path: str
    size_bytes: int
    content_type: str


def sanitize_filename(filename: str) -> str:
    """Make an uploaded file name safe to use as the last path segment.

    Example:
        >>> sanitize_filename('../../markup.pdf')
        'markup.pdf'
        >>> sanitize_filename('rev B (final).dwg')
        'rev_B_final_.dwg'
    """
    filename = os.path.basename(filename.replace("\\", "/"))
    filename = re.sub(r'[^\w\s.-]', '_', filename)
    filename = re.sub(r'[\s_]+', '_', filename)

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[:255 - len(ext)] + ext

    return filename or "attachment"


def build_storage_path(document_id: UUID, step_id: UUID, file_name: str) -> str:
    """Storage path for an attachment: {document_id}/{step_id}/{file_name}"""
    return f"{document_id}/{step_id}/{sanitize_filename(file_name)}"


class AttachmentStoragePort(ABC):
    """Port interface for the attachment blob store.

    Implementations must bound every network call with a timeout and raise
    StorageError on failure. Callers decide whether a failure is fatal.
    """

    @abstractmethod
    async def store(
        self,
        document_id: UUID,
        step_id: UUID,
        file_name: str,
        content: bytes,
        content_type: str,
    ) -> StoredAttachment:
        """Write one attachment blob.

        Raises:
            StorageError: If the content is empty or the upload fails
        """
        pass

    @abstractmethod
    async def generate_download_url(self, storage_path: str, ttl_seconds: int = 3600) -> str:
        """Return a signed URL that allows downloading the blob for ttl_seconds.

        Raises:
            StorageError: If URL generation fails
        """
        pass
