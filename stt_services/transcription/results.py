"""
Retrieval of finished transcripts
"""

import logging
from typing import Any, Optional

from ..core.durability import EffectScope, run_effect
from ..core.exceptions import UnknownError
from ..core.interfaces import TranscriptStore
from ..core.models import JobInfo

logger = logging.getLogger(__name__)


class ResultFetcher:
    """Returns the provider transcript of a completed job, unmodified"""

    def __init__(self, store: Optional[TranscriptStore] = None):
        self.store = store

    async def fetch(
        self, request_id: str, job: JobInfo, scope: Optional[EffectScope] = None
    ) -> dict[str, Any]:
        """
        Retrieve the transcript of a completed job

        Synchronous recognizers return the transcript inline; batch
        recognizers point at it with a URI.

        Raises:
            UnknownError: If the completed job carries no result at all
        """
        if job.transcript is not None:
            return job.transcript

        if not job.transcript_uri:
            raise UnknownError(
                request_id, "Transcription completed but no transcript file URI found"
            )

        if self.store is None:
            raise UnknownError(
                request_id, f"No transcript store to retrieve {job.transcript_uri}"
            )

        logger.info(f"Retrieving transcription job {request_id} result")
        return await run_effect(
            scope, "download_transcript", lambda: self.store.download(request_id, job.transcript_uri)
        )
