"""
Custom exceptions for the service system
"""

from enum import Enum
from typing import Optional


class ServiceError(Exception):
    """Base exception for all service errors"""

    pass


class ConfigurationError(ServiceError):
    """Exception for configuration errors"""

    pass


class ErrorKind(Enum):
    """Provider-independent classification of a failed operation"""

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    ACCESS_DENIED = "access_denied"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNPROCESSABLE_ENTITY = "unprocessable_entity"
    RATE_LIMIT = "rate_limit"
    INTERNAL_SERVER_ERROR = "internal_server_error"
    UNKNOWN = "unknown"


class OperationError(ServiceError):
    """
    Failure of a transcription operation.

    Every operation error carries the request id it was raised for, so a
    retried caller can correlate remote artifacts with the failed attempt.
    """

    kind = ErrorKind.UNKNOWN

    def __init__(self, request_id: str, provider_error: str):
        self.request_id = request_id
        self.provider_error = provider_error
        super().__init__(f"[{self.kind.value}] {request_id}: {provider_error}")

    def __eq__(self, other):
        if not isinstance(other, OperationError):
            return NotImplemented
        return (
            self.kind == other.kind
            and self.request_id == other.request_id
            and self.provider_error == other.provider_error
        )

    def __hash__(self):
        return hash((self.kind, self.request_id, self.provider_error))

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return {
            "kind": self.kind.value,
            "request_id": self.request_id,
            "provider_error": self.provider_error,
        }


class BadRequestError(OperationError):
    kind = ErrorKind.BAD_REQUEST


class UnauthorizedError(OperationError):
    kind = ErrorKind.UNAUTHORIZED


class AccessDeniedError(OperationError):
    kind = ErrorKind.ACCESS_DENIED


class ForbiddenError(OperationError):
    kind = ErrorKind.FORBIDDEN


class NotFoundError(OperationError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(OperationError):
    kind = ErrorKind.CONFLICT


class UnprocessableEntityError(OperationError):
    kind = ErrorKind.UNPROCESSABLE_ENTITY


class RateLimitError(OperationError):
    kind = ErrorKind.RATE_LIMIT


class InternalServerError(OperationError):
    kind = ErrorKind.INTERNAL_SERVER_ERROR


class UnknownError(OperationError):
    kind = ErrorKind.UNKNOWN


ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (
        BadRequestError,
        UnauthorizedError,
        AccessDeniedError,
        ForbiddenError,
        NotFoundError,
        ConflictError,
        UnprocessableEntityError,
        RateLimitError,
        InternalServerError,
        UnknownError,
    )
}

_STATUS_KINDS = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
    422: ErrorKind.UNPROCESSABLE_ENTITY,
    429: ErrorKind.RATE_LIMIT,
}


def error_for_kind(kind: ErrorKind, request_id: str, provider_error: str) -> OperationError:
    """Build the operation error class registered for a kind"""
    return ERRORS_BY_KIND[kind](request_id, provider_error)


def error_from_status(
    status_code: Optional[int], request_id: str, provider_error: str
) -> OperationError:
    """
    Map an HTTP status code returned by a provider onto the error taxonomy

    Args:
        status_code: HTTP status of the failed response (None if unknown)
        request_id: Request the call was made for
        provider_error: Provider's error detail

    Returns:
        OperationError subclass matching the status
    """
    if status_code is None:
        return UnknownError(request_id, provider_error)

    kind = _STATUS_KINDS.get(status_code)
    if kind is None:
        if 500 <= status_code < 600:
            kind = ErrorKind.INTERNAL_SERVER_ERROR
        else:
            kind = ErrorKind.UNKNOWN
            provider_error = f"({status_code}) {provider_error}"

    return error_for_kind(kind, request_id, provider_error)


_AWS_CODE_KINDS = {
    "AccessDenied": ErrorKind.ACCESS_DENIED,
    "AccessDeniedException": ErrorKind.ACCESS_DENIED,
    "UnrecognizedClientException": ErrorKind.UNAUTHORIZED,
    "InvalidSignatureException": ErrorKind.UNAUTHORIZED,
    "ExpiredTokenException": ErrorKind.UNAUTHORIZED,
    "InvalidAccessKeyId": ErrorKind.UNAUTHORIZED,
    "NotFoundException": ErrorKind.NOT_FOUND,
    "NoSuchKey": ErrorKind.NOT_FOUND,
    "NoSuchBucket": ErrorKind.NOT_FOUND,
    "ConflictException": ErrorKind.CONFLICT,
    "LimitExceededException": ErrorKind.RATE_LIMIT,
    "ThrottlingException": ErrorKind.RATE_LIMIT,
    "TooManyRequestsException": ErrorKind.RATE_LIMIT,
    "SlowDown": ErrorKind.RATE_LIMIT,
    "InternalFailureException": ErrorKind.INTERNAL_SERVER_ERROR,
    "ServiceUnavailable": ErrorKind.INTERNAL_SERVER_ERROR,
}


def error_from_aws(request_id: str, operation: str, error: Exception) -> OperationError:
    """
    Map a botocore error onto the error taxonomy

    ClientError carries the AWS error code and HTTP status in ``response``;
    anything else (connection failures, parameter validation) is Unknown.

    Args:
        request_id: Request the call was made for
        operation: Provider operation name, used in the detail
        error: Exception raised by the SDK

    Returns:
        OperationError subclass
    """
    response = getattr(error, "response", None)
    if not isinstance(response, dict):
        return UnknownError(request_id, f"{operation} failed: {error}")

    details = response.get("Error") or {}
    code = details.get("Code", "")
    message = details.get("Message") or str(error)
    status_code = (response.get("ResponseMetadata") or {}).get("HTTPStatusCode")
    provider_error = f"{operation} failed ({code}): {message}"

    # Transcribe reports missing jobs and vocabularies as BadRequestException
    if code == "BadRequestException" and "couldn't be found" in message.lower():
        return NotFoundError(request_id, provider_error)

    kind = _AWS_CODE_KINDS.get(code)
    if kind is not None:
        return error_for_kind(kind, request_id, provider_error)

    return error_from_status(status_code, request_id, provider_error)


def error_from_google(request_id: str, operation: str, error: Exception) -> OperationError:
    """
    Map a google-api-core error onto the error taxonomy

    GoogleAPICallError carries the HTTP status in ``code``; transport and
    other client failures have none and map to Unknown.
    """
    status_code = getattr(error, "code", None)
    if not isinstance(status_code, int):
        status_code = None
    message = getattr(error, "message", None) or str(error)
    return error_from_status(status_code, request_id, f"{operation} failed: {message}")
