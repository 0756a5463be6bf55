"""
Resolution of prior attempts for a request id
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.durability import EffectScope
from ..core.logging import get_logger
from ..core.models import JobInfo, JobStatus, StagedObject, TranscriptionRequest
from ..storage.service import ObjectStage
from ..transcription.jobs import JobRunner
from ..transcription.vocabulary import VocabularyProvisioner

logger = get_logger(__name__)


class ResolutionAction(Enum):
    """What a call does given the provider's record of its request id"""

    FRESH = "fresh"
    RESUME = "resume"
    COMPLETE = "complete"


@dataclass
class Resolution:
    action: ResolutionAction
    job: Optional[JobInfo] = None


class IdempotencyResolver:
    """
    Decides whether a request starts fresh, resumes a running job, or
    only needs the result of a completed one.

    Only a NotFound lookup means "no prior job"; any other lookup error
    propagates so a job is never resubmitted blindly.
    """

    def __init__(
        self,
        jobs: JobRunner,
        stage: Optional[ObjectStage] = None,
        vocabulary: Optional[VocabularyProvisioner] = None,
    ):
        self.jobs = jobs
        self.stage = stage
        self.vocabulary = vocabulary

    async def resolve(
        self,
        request: TranscriptionRequest,
        staged: Optional[StagedObject] = None,
        scope: Optional[EffectScope] = None,
    ) -> Resolution:
        """
        Look up the job named after the request

        Args:
            request: Validated request
            staged: Object a previous attempt would have staged, if any
            scope: Effect scope of the running saga

        Returns:
            Resolution with the prior job for RESUME and COMPLETE
        """
        job = await self.jobs.lookup(request.request_id, scope)

        if job is None:
            return Resolution(ResolutionAction.FRESH)

        if job.status == JobStatus.COMPLETED:
            logger.info(f"Job {request.request_id} already completed, fetching result")
            return Resolution(ResolutionAction.COMPLETE, job)

        if job.status in (JobStatus.QUEUED, JobStatus.IN_PROGRESS):
            logger.info(f"Resuming job {request.request_id} ({job.status.value})")
            return Resolution(ResolutionAction.RESUME, job)

        logger.warning(
            f"Previous job {request.request_id} failed ({job.failure_reason}), starting over"
        )
        await self.teardown(request, staged, scope)
        return Resolution(ResolutionAction.FRESH)

    async def teardown(
        self,
        request: TranscriptionRequest,
        staged: Optional[StagedObject] = None,
        scope: Optional[EffectScope] = None,
    ) -> None:
        """Remove what a failed attempt left behind; every step is best-effort"""
        if self.vocabulary is not None:
            await self.vocabulary.release(request.request_id, scope)

        if self.stage is not None and staged is not None:
            await self.stage.release(request.request_id, staged, scope)

        await self.jobs.delete(request.request_id, scope)
