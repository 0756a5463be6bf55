"""
High-level transcription service for single and batch requests
"""

import asyncio
from typing import Optional, Sequence, Union

from ..core.exceptions import BadRequestError, OperationError
from ..core.logging import get_logger
from ..core.models import TranscriptionRequest, TranscriptionResponse
from .saga import SagaCoordinator

logger = get_logger(__name__)

BatchOutcome = Union[TranscriptionResponse, OperationError]


class TranscriptionService:
    """
    High-level service that runs requests through a saga coordinator
    """

    def __init__(self, coordinator: SagaCoordinator, max_concurrent: int = 5):
        """
        Initialize transcription service

        Args:
            coordinator: Saga coordinator for the configured provider
            max_concurrent: Default limit for concurrent batch requests
        """
        self.coordinator = coordinator
        self.max_concurrent = max_concurrent

        logger.info(
            f"Initialized TranscriptionService (max_concurrent={max_concurrent})"
        )

    async def transcribe(self, request: TranscriptionRequest) -> TranscriptionResponse:
        """Transcribe a single request"""
        return await self.coordinator.transcribe(request)

    async def transcribe_many(
        self, requests: Sequence[TranscriptionRequest], max_concurrent: Optional[int] = None
    ) -> list[BatchOutcome]:
        """
        Transcribe multiple requests with concurrency control

        Args:
            requests: Independent requests
            max_concurrent: Maximum concurrent sagas

        Returns:
            One outcome per request, in order: the response or the
            OperationError raised for it
        """
        semaphore = asyncio.Semaphore(max_concurrent or self.max_concurrent)
        seen: set[str] = set()

        async def transcribe_single(request: TranscriptionRequest) -> TranscriptionResponse:
            async with semaphore:
                return await self.coordinator.transcribe(request)

        async def rejected(error: OperationError) -> OperationError:
            return error

        tasks = []
        for request in requests:
            if request.request_id in seen:
                # Duplicates would share the same object, vocabulary and job
                tasks.append(
                    rejected(
                        BadRequestError(
                            request.request_id, "Duplicate request ID in batch"
                        )
                    )
                )
                continue
            seen.add(request.request_id)
            tasks.append(transcribe_single(request))

        results = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes: list[BatchOutcome] = []
        for request, result in zip(requests, results):
            if isinstance(result, OperationError):
                logger.error(f"Transcription failed for {request.request_id}: {result}")
            elif isinstance(result, BaseException):
                raise result
            outcomes.append(result)

        succeeded = sum(1 for o in outcomes if isinstance(o, TranscriptionResponse))
        logger.info(f"Transcribed {succeeded}/{len(requests)} batch requests successfully")
        return outcomes
