"""
Transcription saga: stage, provision, submit, wait, fetch, clean up
"""

from dataclasses import dataclass
from typing import Any, Optional

from ..core.clock import SystemClock
from ..core.durability import EffectScope, PassthroughEffects
from ..core.exceptions import ConflictError
from ..core.interfaces import (
    Clock,
    EffectRunner,
    JobService,
    ObjectStore,
    TranscriptStore,
    VocabularyService,
)
from ..core.logging import get_logger
from ..core.models import (
    JobInfo,
    JobStatus,
    MediaRef,
    SagaState,
    StagedObject,
    TranscriptionRequest,
    TranscriptionResponse,
)
from ..core.validation import validate_request
from ..storage.service import ObjectStage
from ..transcription.jobs import JobRunner
from ..transcription.results import ResultFetcher
from ..transcription.vocabulary import VocabularyProvisioner
from .idempotency import IdempotencyResolver, ResolutionAction

logger = get_logger(__name__)


@dataclass
class ProviderCapabilities:
    """
    What a recognition provider offers.

    Jobs are required. Without an object store, or for audio no larger
    than ``inline_max_bytes``, the audio is sent inline. Providers that
    only return transcripts inline need no transcript store. With
    ``inline_vocabulary`` the job service applies the request terms itself
    and no vocabulary is provisioned.
    """

    jobs: JobService
    transcripts: Optional[TranscriptStore] = None
    objects: Optional[ObjectStore] = None
    vocabularies: Optional[VocabularyService] = None
    bucket: str = ""
    inline_max_bytes: int = 0
    inline_vocabulary: bool = False


class SagaRun:
    """State of one transcribe call"""

    def __init__(self, request: TranscriptionRequest, scope: EffectScope):
        self.request = request
        self.scope = scope
        self.state = SagaState.VALIDATING
        self.staged: Optional[StagedObject] = None
        self.vocabulary_claimed = False
        self.cleaned_up = False
        self.logger = get_logger(__name__, {"request_id": request.request_id})

    def transition(self, state: SagaState) -> None:
        self.logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state


class SagaCoordinator:
    """
    Runs a transcription request to completion and leaves no remote
    resources behind.

    The coordinator itself holds no per-call state; concurrent calls with
    distinct request ids are independent.
    """

    def __init__(
        self,
        capabilities: ProviderCapabilities,
        clock: Optional[Clock] = None,
        effects: Optional[EffectRunner] = None,
        poll_interval_seconds: float = 10.0,
        vocabulary_timeout_seconds: float = 300.0,
        job_timeout_seconds: float = 6 * 3600.0,
    ):
        """
        Initialize saga coordinator

        Args:
            capabilities: Provider services
            clock: Clock for the polling loops
            effects: Effect runner of the durable-execution host
            poll_interval_seconds: Fixed delay between status checks
            vocabulary_timeout_seconds: Maximum wait for a vocabulary
            job_timeout_seconds: Maximum wait for a job
        """
        self.capabilities = capabilities
        self.clock = clock or SystemClock()
        self.effects = effects or PassthroughEffects()

        self.stage = (
            ObjectStage(capabilities.objects, capabilities.bucket)
            if capabilities.objects is not None
            else None
        )
        self.vocabulary = (
            VocabularyProvisioner(
                capabilities.vocabularies,
                clock=self.clock,
                poll_interval_seconds=poll_interval_seconds,
                timeout_seconds=vocabulary_timeout_seconds,
            )
            if capabilities.vocabularies is not None
            else None
        )
        self.jobs = JobRunner(
            capabilities.jobs,
            clock=self.clock,
            poll_interval_seconds=poll_interval_seconds,
            timeout_seconds=job_timeout_seconds,
        )
        self.results = ResultFetcher(capabilities.transcripts)
        self.resolver = IdempotencyResolver(self.jobs, self.stage, self.vocabulary)

        logger.info(
            f"Initialized SagaCoordinator with {capabilities.jobs.__class__.__name__}"
        )

    async def transcribe(self, request: TranscriptionRequest) -> TranscriptionResponse:
        """
        Transcribe one request

        Args:
            request: Transcription request

        Returns:
            TranscriptionResponse with the provider transcript

        Raises:
            OperationError: The first error of the run; cleanup never replaces it
        """
        run = SagaRun(request, EffectScope(self.effects, request.request_id))

        try:
            validate_request(
                request,
                supports_vocabulary=(
                    self.vocabulary is not None or self.capabilities.inline_vocabulary
                ),
            )
        except Exception:
            run.transition(SagaState.FAILED)
            raise

        succeeded = False
        try:
            response = await self._execute(run)
            succeeded = True
        finally:
            await self._cleanup(run)
            run.transition(SagaState.DONE if succeeded else SagaState.FAILED)

        run.logger.info(f"Transcription {request.request_id} done")
        return response

    async def _execute(self, run: SagaRun) -> TranscriptionResponse:
        request = run.request
        scope = run.scope

        run.transition(SagaState.RESOLVING)
        candidate = self._object_for(request)
        resolution = await self.resolver.resolve(request, candidate, scope)

        if resolution.action == ResolutionAction.FRESH:
            media = await self._stage(run, candidate)
            vocabulary_name = await self._provision(run)

            run.transition(SagaState.SUBMITTING)
            job = await self.jobs.submit(
                request.request_id,
                media,
                request.audio_config,
                request.transcription_config,
                vocabulary_name,
                scope,
            )
            if job.status != JobStatus.COMPLETED:
                run.transition(SagaState.WAITING)
                job = await self.jobs.wait_for_completion(request.request_id, scope=scope)
        else:
            # Whatever the earlier attempt created is released with this run
            run.staged = candidate
            run.vocabulary_claimed = bool(request.vocabulary) and self.vocabulary is not None
            job = resolution.job

            if resolution.action == ResolutionAction.RESUME:
                run.transition(SagaState.WAITING)
                job = await self.jobs.wait_for_completion(request.request_id, scope=scope)

        run.transition(SagaState.FETCHING)
        transcript = await self.results.fetch(request.request_id, job, scope)
        return self._response(request, job, transcript)

    def _object_for(self, request: TranscriptionRequest) -> Optional[StagedObject]:
        """Object the request is staged under, or None when audio goes inline"""
        if self.stage is None:
            return None

        inline_max = self.capabilities.inline_max_bytes
        if inline_max > 0 and request.audio_size_bytes <= inline_max:
            return None

        return self.stage.staged_object(request.request_id, request.audio_config.format)

    async def _stage(self, run: SagaRun, candidate: Optional[StagedObject]) -> MediaRef:
        run.transition(SagaState.STAGING)
        request = run.request

        if candidate is None:
            return MediaRef(content=request.audio)

        # Released even if the upload fails part way
        run.staged = candidate
        staged = await self.stage.stage(
            request.request_id, request.audio, request.audio_config.format, run.scope
        )
        return MediaRef(uri=staged.uri)

    async def _provision(self, run: SagaRun) -> Optional[str]:
        request = run.request
        if not request.vocabulary or self.vocabulary is None:
            return None

        run.transition(SagaState.PROVISIONING)
        # Released even if the create call fails
        run.vocabulary_claimed = True
        terms = list(request.vocabulary)
        try:
            info = await self.vocabulary.create(
                request.request_id, request.language, terms, run.scope
            )
        except ConflictError:
            run.logger.warning(
                f"Vocabulary {request.request_id} left by an earlier attempt, recreating"
            )
            await self.vocabulary.release(request.request_id, run.scope)
            info = await self.vocabulary.create(
                request.request_id, request.language, terms, run.scope
            )

        await self.vocabulary.ensure_ready(request.request_id, info, run.scope)
        return request.request_id

    async def _cleanup(self, run: SagaRun) -> None:
        if run.cleaned_up:
            return
        run.cleaned_up = True

        if not run.vocabulary_claimed and run.staged is None:
            return

        run.transition(SagaState.CLEANING_UP)
        if run.vocabulary_claimed:
            await self.vocabulary.release(run.request.request_id, run.scope)
        if run.staged is not None:
            await self.stage.release(run.request.request_id, run.staged, run.scope)

    @staticmethod
    def _response(
        request: TranscriptionRequest, job: JobInfo, transcript: dict[str, Any]
    ) -> TranscriptionResponse:
        return TranscriptionResponse(
            request_id=request.request_id,
            audio_size_bytes=request.audio_size_bytes,
            language=request.language or job.language or "",
            model=request.model or job.model,
            transcript=transcript,
        )
