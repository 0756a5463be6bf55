"""
Request validation performed before any remote call
"""

from typing import Optional

from .exceptions import BadRequestError
from .models import TranscriptionRequest

MAX_REQUEST_ID_LENGTH = 200
RESERVED_PREFIXES = ("aws-",)

_ALLOWED_PUNCTUATION = "-_."
_CONSECUTIVE_PUNCTUATION = ("--", "__", "..", "-_", "_-", "-.", "._", "_.", ".-")


def _is_allowed_char(char: str) -> bool:
    return (char.isascii() and char.isalnum()) or char in _ALLOWED_PUNCTUATION


def request_id_problem(request_id: str) -> Optional[str]:
    """
    Check a request id against the naming grammar shared by object keys,
    vocabulary names and job names

    Args:
        request_id: Caller-assigned request id

    Returns:
        Description of the first violated rule, or None if valid
    """
    if not request_id:
        return "Request ID cannot be empty"

    if len(request_id) > MAX_REQUEST_ID_LENGTH:
        return f"Request ID too long (max {MAX_REQUEST_ID_LENGTH} characters)"

    if not all(_is_allowed_char(c) for c in request_id):
        return (
            "Request ID contains invalid characters. Only alphanumeric characters, "
            "hyphens (-), underscores (_), and dots (.) are allowed"
        )

    lowered = request_id.lower()
    for prefix in RESERVED_PREFIXES:
        if lowered.startswith(prefix):
            return f"Request ID cannot start with '{prefix}' (reserved prefix)"

    if request_id[0] in _ALLOWED_PUNCTUATION:
        return "Request ID must start with an alphanumeric character"

    if request_id[-1] in _ALLOWED_PUNCTUATION:
        return "Request ID cannot end with hyphens, underscores, or dots"

    if any(pattern in request_id for pattern in _CONSECUTIVE_PUNCTUATION):
        return "Request ID cannot contain consecutive special characters"

    return None


def validate_request_id(request_id: str) -> None:
    """Raise BadRequestError if the request id violates the naming grammar"""
    problem = request_id_problem(request_id)
    if problem:
        raise BadRequestError(request_id, f"Invalid request ID: {problem}")


def validate_request(request: TranscriptionRequest, supports_vocabulary: bool = True) -> None:
    """
    Validate a request before any side effect happens

    Args:
        request: Transcription request
        supports_vocabulary: Whether the provider can provision vocabularies

    Raises:
        BadRequestError: If the request id or recognition settings are invalid
    """
    validate_request_id(request.request_id)

    config = request.transcription_config
    if config is None:
        return

    if config.has_vocabulary and not config.language:
        raise BadRequestError(
            request.request_id,
            "Vocabulary can only be used when a specific language is provided. "
            "Cannot be used with automatic language detection.",
        )

    if config.model and not config.language:
        raise BadRequestError(
            request.request_id,
            "Model settings can only be used when a specific language is provided. "
            "Cannot be used with automatic language detection.",
        )

    if config.has_vocabulary and not supports_vocabulary:
        raise BadRequestError(
            request.request_id, "Custom vocabulary is not supported by this provider"
        )
