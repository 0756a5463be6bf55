"""
Abstract interfaces for all service providers
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from .models import (
    AudioConfig,
    JobInfo,
    MediaRef,
    TranscriptionConfig,
    VocabularyInfo,
)

T = TypeVar("T")


class ObjectStore(ABC):
    """Abstract interface for provider object stores"""

    @abstractmethod
    async def put_object(self, request_id: str, bucket: str, key: str, data: bytes) -> None:
        """
        Upload a payload

        Args:
            request_id: Request the upload belongs to (used in errors)
            bucket: Bucket name
            key: Object key
            data: Payload bytes

        Raises:
            OperationError: If the store rejects the upload
        """
        pass

    @abstractmethod
    async def delete_object(self, request_id: str, bucket: str, key: str) -> None:
        """
        Delete a payload

        Args:
            request_id: Request the object belongs to (used in errors)
            bucket: Bucket name
            key: Object key

        Raises:
            OperationError: If the store rejects the deletion
        """
        pass

    @abstractmethod
    def object_uri(self, bucket: str, key: str) -> str:
        """
        Get the URI a recognition service uses to read the object

        Args:
            bucket: Bucket name
            key: Object key

        Returns:
            Provider URI (e.g., s3://bucket/key)
        """
        pass


class VocabularyService(ABC):
    """Abstract interface for custom vocabulary management"""

    @abstractmethod
    async def create_vocabulary(
        self, name: str, language: str, terms: List[str]
    ) -> VocabularyInfo:
        """
        Create a custom vocabulary

        Args:
            name: Vocabulary name
            language: Language code the vocabulary applies to
            terms: Phrases to boost

        Returns:
            VocabularyInfo with the state right after creation
        """
        pass

    @abstractmethod
    async def get_vocabulary(self, name: str) -> VocabularyInfo:
        """
        Get the current state of a vocabulary

        Args:
            name: Vocabulary name

        Returns:
            VocabularyInfo with current state
        """
        pass

    @abstractmethod
    async def delete_vocabulary(self, name: str) -> None:
        """
        Delete a vocabulary

        Args:
            name: Vocabulary name
        """
        pass


class JobService(ABC):
    """Abstract interface for recognition job execution"""

    @abstractmethod
    async def start_job(
        self,
        name: str,
        media: MediaRef,
        audio_config: AudioConfig,
        transcription_config: Optional[TranscriptionConfig],
        vocabulary_name: Optional[str] = None,
    ) -> JobInfo:
        """
        Start a recognition job

        Args:
            name: Job name (the request id)
            media: Staged object URI or inline audio
            audio_config: Audio format settings
            transcription_config: Recognition settings
            vocabulary_name: Custom vocabulary to apply

        Returns:
            JobInfo with the state right after submission
        """
        pass

    @abstractmethod
    async def get_job(self, name: str) -> JobInfo:
        """
        Get status of a job

        Args:
            name: Job name

        Returns:
            JobInfo with current state

        Raises:
            NotFoundError: If no job with this name exists
        """
        pass

    @abstractmethod
    async def delete_job(self, name: str) -> None:
        """
        Delete a job record

        Args:
            name: Job name
        """
        pass


class TranscriptStore(ABC):
    """Abstract interface for retrieving finished transcripts"""

    @abstractmethod
    async def download(self, request_id: str, uri: str) -> Dict[str, Any]:
        """
        Download a provider transcript

        Args:
            request_id: Request the transcript belongs to (used in errors)
            uri: Transcript location reported by the job service

        Returns:
            Provider transcript payload, unmodified
        """
        pass


class Clock(ABC):
    """Abstract interface for time measurement and suspension"""

    @abstractmethod
    def now(self) -> float:
        """Monotonic time in seconds"""
        pass

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Suspend for the given duration"""
        pass


class EffectRunner(ABC):
    """
    Abstract interface for the durable-execution host.

    Every remote call the saga makes goes through ``effect`` so the host can
    record its outcome on a fresh execution and return the recorded outcome
    on replay instead of calling again.
    """

    @abstractmethod
    async def effect(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Run or replay a side effect

        Args:
            key: Stable identifier of this effect within the run
            fn: Coroutine factory performing the effect

        Returns:
            The effect's result
        """
        pass
