"""
Core interfaces and models for the transcription service system
"""

from .clock import SystemClock
from .durability import EffectScope, PassthroughEffects, RecordedEffects, RecordedOutcome
from .exceptions import (
    AccessDeniedError,
    BadRequestError,
    ConfigurationError,
    ConflictError,
    ErrorKind,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
    OperationError,
    RateLimitError,
    ServiceError,
    UnauthorizedError,
    UnknownError,
    UnprocessableEntityError,
    error_from_aws,
    error_from_google,
    error_from_status,
)
from .interfaces import (
    Clock,
    EffectRunner,
    JobService,
    ObjectStore,
    TranscriptStore,
    VocabularyService,
)
from .logging import configure_logging, get_logger
from .models import (
    AudioConfig,
    JobInfo,
    JobStatus,
    MediaRef,
    SagaState,
    StagedObject,
    TranscriptionConfig,
    TranscriptionRequest,
    TranscriptionResponse,
    VocabularyInfo,
    VocabularyStatus,
)
from .validation import validate_request, validate_request_id

__all__ = [
    # Interfaces
    "ObjectStore",
    "VocabularyService",
    "JobService",
    "TranscriptStore",
    "Clock",
    "EffectRunner",
    # Models
    "AudioConfig",
    "TranscriptionConfig",
    "TranscriptionRequest",
    "TranscriptionResponse",
    "JobInfo",
    "JobStatus",
    "VocabularyInfo",
    "VocabularyStatus",
    "MediaRef",
    "StagedObject",
    "SagaState",
    # Exceptions
    "ServiceError",
    "ConfigurationError",
    "ErrorKind",
    "OperationError",
    "BadRequestError",
    "UnauthorizedError",
    "AccessDeniedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "UnprocessableEntityError",
    "RateLimitError",
    "InternalServerError",
    "UnknownError",
    "error_from_status",
    "error_from_aws",
    "error_from_google",
    # Runtime
    "SystemClock",
    "PassthroughEffects",
    "RecordedEffects",
    "RecordedOutcome",
    "EffectScope",
    # Validation
    "validate_request",
    "validate_request_id",
    # Logging
    "configure_logging",
    "get_logger",
]
