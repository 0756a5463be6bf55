"""
Recognition job submission and completion polling
"""

import logging
from typing import Optional

from ..core.clock import SystemClock
from ..core.durability import EffectScope, run_effect
from ..core.exceptions import BadRequestError, NotFoundError
from ..core.interfaces import Clock, JobService
from ..core.models import (
    AudioConfig,
    JobInfo,
    JobStatus,
    MediaRef,
    TranscriptionConfig,
)

logger = logging.getLogger(__name__)


class JobRunner:
    """
    Submits recognition jobs and waits for them to reach a terminal state.

    Job names are the request id, never random, which is what lets a
    re-invoked request find the job it started before a crash.
    """

    POLL_INTERVAL_SECONDS = 10.0
    DEFAULT_TIMEOUT_SECONDS = 6 * 3600.0

    def __init__(
        self,
        service: JobService,
        clock: Optional[Clock] = None,
        poll_interval_seconds: float = POLL_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize job runner

        Args:
            service: Provider job service
            clock: Clock used by the completion loop
            poll_interval_seconds: Fixed delay between status checks
            timeout_seconds: Default maximum time to wait for completion
        """
        self.service = service
        self.clock = clock or SystemClock()
        self.poll_interval_seconds = poll_interval_seconds
        self.timeout_seconds = timeout_seconds

    async def submit(
        self,
        request_id: str,
        media: MediaRef,
        audio_config: AudioConfig,
        transcription_config: Optional[TranscriptionConfig] = None,
        vocabulary_name: Optional[str] = None,
        scope: Optional[EffectScope] = None,
    ) -> JobInfo:
        """
        Start the recognition job

        Args:
            request_id: Request id (names the job)
            media: Staged object URI or inline audio
            audio_config: Audio format settings
            transcription_config: Recognition settings
            vocabulary_name: Custom vocabulary to apply
            scope: Effect scope of the running saga

        Returns:
            JobInfo as reported right after submission

        Raises:
            BadRequestError: If the provider reports FAILED at submission
        """
        logger.info(f"Submitting transcription job {request_id}")
        job = await run_effect(
            scope,
            "start_job",
            lambda: self.service.start_job(
                request_id, media, audio_config, transcription_config, vocabulary_name
            ),
        )

        if job.status == JobStatus.FAILED:
            logger.error(f"Transcription job {request_id} failed at submission")
            raise BadRequestError(
                request_id,
                f"Transcription job creation failed: {job.failure_reason or 'Unknown error'}",
            )

        return job

    async def wait_for_completion(
        self,
        job_id: str,
        timeout_seconds: Optional[float] = None,
        scope: Optional[EffectScope] = None,
    ) -> JobInfo:
        """
        Poll the job at a fixed interval until it completes

        Elapsed time is re-read from the clock on every iteration, so the
        timeout holds regardless of how long each poll takes.

        Args:
            job_id: Job name
            timeout_seconds: Maximum time to wait (defaults to the configured one)
            scope: Effect scope of the running saga

        Returns:
            Final JobInfo with COMPLETED status

        Raises:
            BadRequestError: On FAILED or when the timeout is exceeded
        """
        timeout = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        started_at = await run_effect(scope, "clock.now", self._now)

        while True:
            elapsed = await run_effect(scope, "clock.now", self._now) - started_at
            if elapsed > timeout:
                logger.warning(f"Job {job_id} timed out after {elapsed:.0f} seconds")
                raise BadRequestError(job_id, "Transcription job timed out")

            await run_effect(
                scope, "clock.sleep", lambda: self.clock.sleep(self.poll_interval_seconds)
            )

            job = await run_effect(scope, "get_job", lambda: self.service.get_job(job_id))

            if job.status == JobStatus.COMPLETED:
                logger.info(f"Job {job_id} completed")
                return job

            if job.status == JobStatus.FAILED:
                logger.error(f"Job {job_id} failed: {job.failure_reason}")
                raise BadRequestError(
                    job_id,
                    f"Transcription job failed: {job.failure_reason or 'Unknown error'}",
                )

            logger.debug(f"Job {job_id} is {job.status.value}, waiting")

    async def lookup(self, request_id: str, scope: Optional[EffectScope] = None) -> Optional[JobInfo]:
        """
        Find an existing job for the request

        Returns:
            JobInfo, or None if the provider has no such job
        """
        try:
            return await run_effect(scope, "get_job", lambda: self.service.get_job(request_id))
        except NotFoundError:
            return None

    async def delete(self, job_id: str, scope: Optional[EffectScope] = None) -> bool:
        """
        Delete a job record; failures are logged, never raised

        Returns:
            True if deleted successfully
        """
        try:
            await run_effect(scope, "delete_job", lambda: self.service.delete_job(job_id))
            logger.info(f"Deleted job {job_id}")
            return True
        except Exception as e:
            logger.warning(f"Failed to delete job {job_id}: {e}")
            return False

    async def _now(self) -> float:
        return self.clock.now()
