"""
Data models for the transcription service system
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class JobStatus(Enum):
    """Normalized transcription job states"""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Check if job is in terminal state"""
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class VocabularyStatus(Enum):
    """Normalized custom vocabulary states"""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class SagaState(Enum):
    """States of a single transcription saga run"""

    VALIDATING = "validating"
    RESOLVING = "resolving"
    STAGING = "staging"
    PROVISIONING = "provisioning"
    SUBMITTING = "submitting"
    WAITING = "waiting"
    FETCHING = "fetching"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class AudioConfig:
    """Format of the submitted audio"""

    format: str
    channels: Optional[int] = None
    sample_rate_hz: Optional[int] = None


@dataclass(frozen=True)
class TranscriptionConfig:
    """Optional recognition settings"""

    language: Optional[str] = None
    model: Optional[str] = None
    enable_diarization: bool = False
    max_speakers: Optional[int] = None
    vocabulary: tuple[str, ...] = ()
    enable_multi_channel: bool = False

    @property
    def has_vocabulary(self) -> bool:
        return len(self.vocabulary) > 0


@dataclass(frozen=True)
class TranscriptionRequest:
    """
    A single transcription request.

    ``request_id`` is caller-assigned and globally unique. It is the
    idempotency token and the name of every remote artifact the request
    creates (object key prefix, vocabulary name, job name).
    """

    request_id: str
    audio: bytes
    audio_config: AudioConfig
    transcription_config: Optional[TranscriptionConfig] = None

    @property
    def audio_size_bytes(self) -> int:
        return len(self.audio)

    @property
    def language(self) -> Optional[str]:
        return self.transcription_config.language if self.transcription_config else None

    @property
    def model(self) -> Optional[str]:
        return self.transcription_config.model if self.transcription_config else None

    @property
    def vocabulary(self) -> tuple[str, ...]:
        return self.transcription_config.vocabulary if self.transcription_config else ()


@dataclass(frozen=True)
class StagedObject:
    """Audio payload uploaded to a provider object store"""

    bucket: str
    key: str
    uri: str


@dataclass(frozen=True)
class MediaRef:
    """Media handed to a job service: a staged object URI or inline bytes"""

    uri: Optional[str] = None
    content: Optional[bytes] = None

    @property
    def is_inline(self) -> bool:
        return self.uri is None


@dataclass
class VocabularyInfo:
    """Provider view of a custom vocabulary"""

    name: str
    status: VocabularyStatus
    failure_reason: Optional[str] = None


@dataclass
class JobInfo:
    """Provider view of a transcription job"""

    name: str
    status: JobStatus
    transcript_uri: Optional[str] = None
    transcript: Optional[dict[str, Any]] = None
    failure_reason: Optional[str] = None
    language: Optional[str] = None
    model: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class TranscriptionResponse:
    """Result of a transcription operation"""

    request_id: str
    audio_size_bytes: int
    language: str
    model: Optional[str]
    transcript: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "request_id": self.request_id,
            "audio_size_bytes": self.audio_size_bytes,
            "language": self.language,
            "model": self.model,
            "transcript": self.transcript,
        }
