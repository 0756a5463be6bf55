"""
Amazon S3 implementation of ObjectStore
"""

import asyncio
from typing import Any, Optional

from ...core.exceptions import error_from_aws
from ...core.interfaces import ObjectStore
from ...core.logging import get_logger

logger = get_logger(__name__)


class S3ObjectStore(ObjectStore):
    """
    Amazon S3 implementation of the object store
    """

    def __init__(self, region_name: str = "us-east-1", client: Optional[Any] = None):
        """
        Initialize S3 object store

        Args:
            region_name: AWS region
            client: Pre-built boto3 S3 client (skips client creation)
        """
        self.region_name = (region_name or "us-east-1").strip() or "us-east-1"

        if client is None:
            import boto3

            client = boto3.client("s3", region_name=self.region_name)
        self.client = client

        logger.info(f"Initialized S3ObjectStore: {self.region_name}")

    def object_uri(self, bucket: str, key: str) -> str:
        return f"s3://{bucket}/{key}"

    async def put_object(self, request_id: str, bucket: str, key: str, data: bytes) -> None:
        """
        Upload bytes to S3

        Args:
            request_id: Request the upload belongs to
            bucket: Bucket name
            key: Object key
            data: Payload bytes
        """
        try:
            await asyncio.to_thread(self.client.put_object, Bucket=bucket, Key=key, Body=data)
        except Exception as e:
            raise error_from_aws(request_id, "S3 PutObject", e) from e

        logger.info(f"Uploaded to S3: s3://{bucket}/{key} ({len(data)} bytes)")

    async def delete_object(self, request_id: str, bucket: str, key: str) -> None:
        """
        Delete an object from S3; S3 treats a missing key as deleted

        Args:
            request_id: Request the object belongs to
            bucket: Bucket name
            key: Object key
        """
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=bucket, Key=key)
        except Exception as e:
            raise error_from_aws(request_id, "S3 DeleteObject", e) from e

        logger.info(f"Deleted from S3: s3://{bucket}/{key}")
