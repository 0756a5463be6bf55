"""
In-memory recognizer for development and tests
"""

from typing import Any, Dict, List, Optional, Sequence

from ...core.exceptions import ConflictError, NotFoundError, OperationError
from ...core.interfaces import JobService, TranscriptStore, VocabularyService
from ...core.logging import get_logger
from ...core.models import (
    AudioConfig,
    JobInfo,
    JobStatus,
    MediaRef,
    TranscriptionConfig,
    VocabularyInfo,
    VocabularyStatus,
)

logger = get_logger(__name__)


class InMemoryRecognizer(VocabularyService, JobService, TranscriptStore):
    """
    Vocabulary, job and transcript service backed by dictionaries.

    Status scripts drive every resource: the create/start call reports the
    first entry, each later poll the next one, and the last entry repeats.
    ``failures`` maps an operation name to the error its next calls raise.
    With ``inline=True`` completed jobs carry the transcript themselves,
    like a synchronous recognizer.
    """

    def __init__(
        self,
        vocabulary_statuses: Optional[Sequence[VocabularyStatus]] = None,
        job_statuses: Optional[Sequence[JobStatus]] = None,
        transcript: Optional[Dict[str, Any]] = None,
        inline: bool = False,
        detected_language: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ):
        self.vocabulary_statuses = list(vocabulary_statuses or [VocabularyStatus.READY])
        self.job_statuses = list(job_statuses or [JobStatus.QUEUED, JobStatus.COMPLETED])
        self.transcript = transcript if transcript is not None else {"text": ""}
        self.inline = inline
        self.detected_language = detected_language
        self.failure_reason = failure_reason

        self.vocabularies: Dict[str, VocabularyInfo] = {}
        self.jobs: Dict[str, JobInfo] = {}
        self.transcripts: Dict[str, Dict[str, Any]] = {}
        self.failures: Dict[str, OperationError] = {}
        self.calls: List[tuple[str, str]] = []

        self._scripts: Dict[str, tuple[list, int]] = {}

    def count(self, operation: str) -> int:
        """Number of calls made to an operation"""
        return sum(1 for name, _ in self.calls if name == operation)

    def seed_job(self, name: str, statuses: Sequence[JobStatus], **fields) -> JobInfo:
        """Register a job as if an earlier run had started it"""
        job = JobInfo(name=name, status=statuses[0], **fields)
        self._scripts[f"job:{name}"] = (list(statuses), 1)
        self.jobs[name] = self._complete(job) if job.status == JobStatus.COMPLETED else job
        return self.jobs[name]

    def seed_vocabulary(self, name: str, status: VocabularyStatus = VocabularyStatus.READY) -> None:
        self.vocabularies[name] = VocabularyInfo(name=name, status=status)
        self._scripts[f"vocabulary:{name}"] = ([status], 1)

    def _record(self, operation: str, name: str) -> None:
        self.calls.append((operation, name))
        error = self.failures.get(operation)
        if error is not None:
            raise error

    def _advance(self, key: str):
        script, index = self._scripts[key]
        self._scripts[key] = (script, index + 1)
        return script[min(index, len(script) - 1)]

    # Vocabularies

    async def create_vocabulary(
        self, name: str, language: str, terms: List[str]
    ) -> VocabularyInfo:
        self._record("create_vocabulary", name)
        if name in self.vocabularies:
            raise ConflictError(name, f"Vocabulary {name} already exists")

        self._scripts[f"vocabulary:{name}"] = (list(self.vocabulary_statuses), 0)
        info = VocabularyInfo(name=name, status=self._advance(f"vocabulary:{name}"))
        if info.status == VocabularyStatus.FAILED:
            info.failure_reason = self.failure_reason
        self.vocabularies[name] = info
        return VocabularyInfo(**vars(info))

    async def get_vocabulary(self, name: str) -> VocabularyInfo:
        self._record("get_vocabulary", name)
        info = self.vocabularies.get(name)
        if info is None:
            raise NotFoundError(name, f"Vocabulary {name} couldn't be found")

        info.status = self._advance(f"vocabulary:{name}")
        if info.status == VocabularyStatus.FAILED:
            info.failure_reason = self.failure_reason
        return VocabularyInfo(**vars(info))

    async def delete_vocabulary(self, name: str) -> None:
        self._record("delete_vocabulary", name)
        if self.vocabularies.pop(name, None) is None:
            raise NotFoundError(name, f"Vocabulary {name} couldn't be found")

    # Jobs

    async def start_job(
        self,
        name: str,
        media: MediaRef,
        audio_config: AudioConfig,
        transcription_config: Optional[TranscriptionConfig],
        vocabulary_name: Optional[str] = None,
    ) -> JobInfo:
        self._record("start_job", name)
        if name in self.jobs:
            raise ConflictError(name, f"Transcription job {name} already exists")

        config = transcription_config or TranscriptionConfig()
        self._scripts[f"job:{name}"] = (list(self.job_statuses), 0)
        job = JobInfo(
            name=name,
            status=self._advance(f"job:{name}"),
            language=config.language or self.detected_language,
            model=config.model,
            metadata={
                "media_uri": media.uri,
                "inline_bytes": len(media.content) if media.content is not None else 0,
                "format": audio_config.format,
                "vocabulary_name": vocabulary_name,
            },
        )
        self.jobs[name] = self._settle(job)
        logger.debug(f"Started in-memory job {name} ({job.status.value})")
        return self._copy(self.jobs[name])

    async def get_job(self, name: str) -> JobInfo:
        self._record("get_job", name)
        job = self.jobs.get(name)
        if job is None:
            raise NotFoundError(name, f"The requested job {name} couldn't be found")

        job.status = self._advance(f"job:{name}")
        self._settle(job)
        return self._copy(job)

    async def delete_job(self, name: str) -> None:
        self._record("delete_job", name)
        if self.jobs.pop(name, None) is None:
            raise NotFoundError(name, f"The requested job {name} couldn't be found")

    def _settle(self, job: JobInfo) -> JobInfo:
        if job.status == JobStatus.COMPLETED:
            return self._complete(job)
        if job.status == JobStatus.FAILED:
            job.failure_reason = job.failure_reason or self.failure_reason
        return job

    def _complete(self, job: JobInfo) -> JobInfo:
        if self.inline:
            job.transcript = dict(self.transcript)
        elif job.transcript_uri is None:
            job.transcript_uri = f"memory://transcripts/{job.name}.json"
            self.transcripts[job.transcript_uri] = dict(self.transcript)
        return job

    @staticmethod
    def _copy(job: JobInfo) -> JobInfo:
        return JobInfo(**{**vars(job), "metadata": dict(job.metadata)})

    # Transcripts

    async def download(self, request_id: str, uri: str) -> Dict[str, Any]:
        self._record("download", uri)
        transcript = self.transcripts.get(uri)
        if transcript is None:
            raise NotFoundError(request_id, f"No transcript at {uri}")
        return dict(transcript)
