# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles uploading original documents to Supabase Storage.
# =============================================================================

import logging

from lib.supabase_client import SupabaseClient, SupabaseClientError
from app.config import settings
from app.exceptions import StorageUploadError

logger = logging.getLogger(__name__)


class StorageService:
    """
    Service for Supabase Storage operations.

    Files live under families/{family_id}/{document_id}/{filename} in the
    configured bucket.
    """

    @staticmethod
    def build_path(family_id: str, document_id: str, filename: str) -> str:
        """Storage path for an uploaded document."""
        safe_name = filename.replace("/", "_").replace("\\", "_") or "document.pdf"
        return f"families/{family_id}/{document_id}/{safe_name}"

    @staticmethod
    def upload_document(
        family_id: str,
        document_id: str,
        filename: str,
        content: bytes,
        content_type: str = "application/pdf",
        bucket: str | None = None,
    ) -> str:
        """
        Upload the original file bytes.

        Args:
            family_id: Owning family
            document_id: Document the file belongs to
            filename: Original filename
            content: File bytes
            content_type: MIME type stored with the object
            bucket: Storage bucket (default STORAGE_BUCKET)

        Returns:
            Storage path where file was uploaded

        Raises:
            StorageUploadError: If upload fails
        """
        path = StorageService.build_path(family_id, document_id, filename)

        try:
            client = SupabaseClient.get_client()
            client.storage.from_(bucket or settings.STORAGE_BUCKET).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"}
            )
        except SupabaseClientError as e:
            logger.error(f"Storage upload failed: {e}")
            raise StorageUploadError(e.message)
        except Exception as e:
            logger.error(f"Storage upload failed: {e}")
            raise StorageUploadError(str(e))

        logger.info(f"Uploaded document to storage: {path}")
        return path
