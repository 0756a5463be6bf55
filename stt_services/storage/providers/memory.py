"""
In-memory implementation of ObjectStore
"""

from typing import Dict, Optional, Tuple

from ...core.exceptions import OperationError
from ...core.interfaces import ObjectStore
from ...core.logging import get_logger

logger = get_logger(__name__)


class InMemoryObjectStore(ObjectStore):
    """
    Dictionary-backed object store for development and tests

    ``fail_put`` / ``fail_delete`` make the next matching call raise.
    """

    def __init__(self, scheme: str = "memory"):
        self.scheme = scheme
        self.objects: Dict[Tuple[str, str], bytes] = {}
        self.put_calls: list[Tuple[str, str]] = []
        self.delete_calls: list[Tuple[str, str]] = []
        self.fail_put: Optional[OperationError] = None
        self.fail_delete: Optional[OperationError] = None

    def object_uri(self, bucket: str, key: str) -> str:
        return f"{self.scheme}://{bucket}/{key}"

    async def put_object(self, request_id: str, bucket: str, key: str, data: bytes) -> None:
        self.put_calls.append((bucket, key))
        if self.fail_put is not None:
            raise self.fail_put

        self.objects[(bucket, key)] = bytes(data)
        logger.debug(f"Stored {len(data)} bytes at {self.object_uri(bucket, key)}")

    async def delete_object(self, request_id: str, bucket: str, key: str) -> None:
        self.delete_calls.append((bucket, key))
        if self.fail_delete is not None:
            raise self.fail_delete

        self.objects.pop((bucket, key), None)

    def get(self, bucket: str, key: str) -> Optional[bytes]:
        return self.objects.get((bucket, key))
