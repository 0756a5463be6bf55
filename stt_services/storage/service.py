"""
Object staging for audio payloads
"""

import logging
from typing import Optional

from ..core.durability import EffectScope, run_effect
from ..core.interfaces import ObjectStore
from ..core.models import StagedObject

logger = logging.getLogger(__name__)


class ObjectStage:
    """
    Uploads and deletes the audio payload of a request.

    Keys are derived from the request id, so a resumed or retried request
    always addresses the same object.
    """

    def __init__(self, store: ObjectStore, bucket: str):
        """
        Initialize object stage

        Args:
            store: Provider object store
            bucket: Bucket the audio is staged in
        """
        self.store = store
        self.bucket = bucket
        logger.info(f"Initialized ObjectStage with {store.__class__.__name__} ({bucket})")

    @staticmethod
    def object_key(request_id: str, audio_format: str) -> str:
        return f"{request_id}/audio.{audio_format}"

    def staged_object(self, request_id: str, audio_format: str) -> StagedObject:
        """Describe the object a request stages, without uploading it"""
        key = self.object_key(request_id, audio_format)
        return StagedObject(bucket=self.bucket, key=key, uri=self.store.object_uri(self.bucket, key))

    async def stage(
        self,
        request_id: str,
        audio: bytes,
        audio_format: str,
        scope: Optional[EffectScope] = None,
    ) -> StagedObject:
        """
        Upload the audio payload

        Args:
            request_id: Request id (names the object)
            audio: Audio bytes
            audio_format: Audio file extension
            scope: Effect scope of the running saga

        Returns:
            StagedObject describing the upload

        Raises:
            OperationError: If the upload fails
        """
        staged = self.staged_object(request_id, audio_format)

        logger.info(f"Staging {len(audio)} bytes for {request_id} at {staged.uri}")
        await run_effect(
            scope,
            "put_object",
            lambda: self.store.put_object(request_id, staged.bucket, staged.key, audio),
        )
        return staged

    async def release(
        self,
        request_id: str,
        staged: StagedObject,
        scope: Optional[EffectScope] = None,
    ) -> bool:
        """
        Delete a staged payload; failures are logged, never raised

        Args:
            request_id: Request id
            staged: Object to delete
            scope: Effect scope of the running saga

        Returns:
            True if deleted successfully
        """
        try:
            await run_effect(
                scope,
                "delete_object",
                lambda: self.store.delete_object(request_id, staged.bucket, staged.key),
            )
            logger.info(f"Released staged object {staged.uri}")
            return True
        except Exception as e:
            logger.error(f"Failed to delete object {staged.uri}: {e}")
            return False
