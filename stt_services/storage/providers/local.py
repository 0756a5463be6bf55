"""
Local filesystem implementation of ObjectStore
"""

import asyncio
from pathlib import Path
from typing import Optional

from ...core.exceptions import BadRequestError, InternalServerError
from ...core.interfaces import ObjectStore
from ...core.logging import get_logger

logger = get_logger(__name__)


class LocalObjectStore(ObjectStore):
    """
    Local filesystem implementation of the object store
    Suitable for testing and development environments

    Buckets map to directories under ``base_path``.
    """

    def __init__(self, base_path: Optional[str] = None):
        """
        Initialize local object store

        Args:
            base_path: Base directory for buckets
        """
        self.base_path = Path(base_path) if base_path else Path.cwd() / "local_storage"
        self.base_path.mkdir(parents=True, exist_ok=True)

        logger.info(f"Initialized LocalObjectStore: {self.base_path}")

    def _resolve_path(self, request_id: str, bucket: str, key: str) -> Path:
        """
        Resolve bucket and key to a path within the base directory

        Raises:
            BadRequestError: If the path escapes the base directory
        """
        clean_key = key.lstrip("/")
        resolved = self.base_path / bucket / clean_key

        # Ensure path is within base directory (security check)
        try:
            resolved.resolve().relative_to(self.base_path.resolve())
        except ValueError:
            raise BadRequestError(request_id, f"Path outside base directory not allowed: {key}")

        return resolved

    def object_uri(self, bucket: str, key: str) -> str:
        return (self.base_path / bucket / key.lstrip("/")).resolve().as_uri()

    async def put_object(self, request_id: str, bucket: str, key: str, data: bytes) -> None:
        target = self._resolve_path(request_id, bucket, key)

        def _write():
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise InternalServerError(request_id, f"Local upload failed: {e}") from e

        logger.info(f"Stored locally: {target} ({len(data)} bytes)")

    async def delete_object(self, request_id: str, bucket: str, key: str) -> None:
        target = self._resolve_path(request_id, bucket, key)

        if not target.exists():
            logger.warning(f"File not found for deletion: {target}")
            return

        try:
            await asyncio.to_thread(target.unlink)
        except OSError as e:
            raise InternalServerError(request_id, f"Local deletion failed: {e}") from e

        # Drop the per-request directory once it is empty
        parent = target.parent
        if parent != self.base_path / bucket and not any(parent.iterdir()):
            parent.rmdir()

        logger.info(f"Deleted from local storage: {target}")
