"""
Google Cloud Storage implementation of ObjectStore
"""

import asyncio
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from ...core.exceptions import ConfigurationError, NotFoundError, error_from_google
from ...core.interfaces import ObjectStore
from ...core.logging import get_logger

logger = get_logger(__name__)

# Thread pool for blocking GCS API calls
executor = ThreadPoolExecutor(max_workers=3)


class GCSObjectStore(ObjectStore):
    """
    Google Cloud Storage implementation of the object store
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_path: Optional[str] = None,
        client=None,
    ):
        """
        Initialize GCS object store

        Args:
            project_id: GCP project ID
            credentials_path: Path to service account JSON file
            client: Pre-built storage client (skips client creation)
        """
        self.project_id = project_id or os.environ.get("PROJECT_ID")
        self.credentials_path = credentials_path or os.environ.get(
            "GOOGLE_APPLICATION_CREDENTIALS"
        )

        if client is not None:
            self.client = client
        else:
            self._initialize_client()

        logger.info(f"Initialized GCSObjectStore: {self.project_id}")

    def _initialize_client(self):
        """Initialize Google Cloud Storage client"""
        from google.cloud import storage

        try:
            if self.credentials_path and os.path.exists(self.credentials_path):
                self.client = storage.Client.from_service_account_json(self.credentials_path)
            else:
                # Use default credentials (ADC)
                self.client = storage.Client(project=self.project_id)
        except Exception as e:
            raise ConfigurationError(f"Failed to initialize GCS client: {str(e)}") from e

    def object_uri(self, bucket: str, key: str) -> str:
        return f"gs://{bucket}/{key}"

    async def put_object(self, request_id: str, bucket: str, key: str, data: bytes) -> None:
        """
        Upload bytes to GCS

        Args:
            request_id: Request the upload belongs to
            bucket: GCS bucket name
            key: GCS object path
            data: Payload bytes
        """

        def _upload():
            try:
                blob = self.client.bucket(bucket).blob(key)
                blob.upload_from_string(data, content_type="application/octet-stream")
            except Exception as e:
                raise error_from_google(request_id, "GCS upload", e) from e

            logger.info(f"Uploaded to GCS: gs://{bucket}/{key} ({len(data)} bytes)")

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(executor, _upload)

    async def delete_object(self, request_id: str, bucket: str, key: str) -> None:
        """
        Delete an object from GCS; a missing object counts as deleted

        Args:
            request_id: Request the object belongs to
            bucket: GCS bucket name
            key: GCS object path
        """

        def _delete():
            try:
                self.client.bucket(bucket).blob(key).delete()
            except Exception as e:
                error = error_from_google(request_id, "GCS delete", e)
                if isinstance(error, NotFoundError):
                    logger.warning(f"File not found for deletion: gs://{bucket}/{key}")
                    return
                raise error from e

            logger.info(f"Deleted from GCS: gs://{bucket}/{key}")

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(executor, _delete)
