"""S3 client error definitions for s3lite."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from s3lite.models import Response


class ErrorKind(str, Enum):
    """Documented S3 error codes, plus ``UNKNOWN`` for anything else."""

    ACCESS_DENIED = "AccessDenied"
    ACCOUNT_PROBLEM = "AccountProblem"
    AMBIGUOUS_GRANT_BY_EMAIL_ADDRESS = "AmbiguousGrantByEmailAddress"
    BAD_DIGEST = "BadDigest"
    BUCKET_ALREADY_EXISTS = "BucketAlreadyExists"
    BUCKET_ALREADY_OWNED_BY_YOU = "BucketAlreadyOwnedByYou"
    BUCKET_NOT_EMPTY = "BucketNotEmpty"
    CREDENTIALS_NOT_SUPPORTED = "CredentialsNotSupported"
    CROSS_LOCATION_LOGGING_PROHIBITED = "CrossLocationLoggingProhibited"
    ENTITY_TOO_SMALL = "EntityTooSmall"
    ENTITY_TOO_LARGE = "EntityTooLarge"
    EXPIRED_TOKEN = "ExpiredToken"
    INCOMPLETE_BODY = "IncompleteBody"
    INTERNAL_ERROR = "InternalError"
    INVALID_ACCESS_KEY_ID = "InvalidAccessKeyId"
    INVALID_ADDRESSING_HEADER = "InvalidAddressingHeader"
    INVALID_ARGUMENT = "InvalidArgument"
    INVALID_BUCKET_NAME = "InvalidBucketName"
    INVALID_DIGEST = "InvalidDigest"
    INVALID_LOCATION_CONSTRAINT = "InvalidLocationConstraint"
    INVALID_PAYER = "InvalidPayer"
    INVALID_POLICY_DOCUMENT = "InvalidPolicyDocument"
    INVALID_RANGE = "InvalidRange"
    INVALID_SECURITY = "InvalidSecurity"
    INVALID_STORAGE_CLASS = "InvalidStorageClass"
    INVALID_TARGET_BUCKET_FOR_LOGGING = "InvalidTargetBucketForLogging"
    INVALID_TOKEN = "InvalidToken"
    INVALID_URI = "InvalidURI"
    KEY_TOO_LONG = "KeyTooLong"
    MALFORMED_ACL_ERROR = "MalformedACLError"
    MALFORMED_POST_REQUEST = "MalformedPOSTRequest"
    MALFORMED_XML = "MalformedXML"
    MAX_MESSAGE_LENGTH_EXCEEDED = "MaxMessageLengthExceeded"
    METADATA_TOO_LARGE = "MetadataTooLarge"
    METHOD_NOT_ALLOWED = "MethodNotAllowed"
    MISSING_CONTENT_LENGTH = "MissingContentLength"
    MISSING_REQUEST_BODY_ERROR = "MissingRequestBodyError"
    MISSING_SECURITY_HEADER = "MissingSecurityHeader"
    NO_SUCH_BUCKET = "NoSuchBucket"
    NO_SUCH_KEY = "NoSuchKey"
    NOT_IMPLEMENTED = "NotImplemented"
    NOT_SIGNED_UP = "NotSignedUp"
    OPERATION_ABORTED = "OperationAborted"
    PERMANENT_REDIRECT = "PermanentRedirect"
    PRECONDITION_FAILED = "PreconditionFailed"
    REDIRECT = "Redirect"
    REQUEST_TIMEOUT = "RequestTimeout"
    REQUEST_TIME_TOO_SKEWED = "RequestTimeTooSkewed"
    SIGNATURE_DOES_NOT_MATCH = "SignatureDoesNotMatch"
    SLOW_DOWN = "SlowDown"
    TEMPORARY_REDIRECT = "TemporaryRedirect"
    TOO_MANY_BUCKETS = "TooManyBuckets"
    UNEXPECTED_CONTENT = "UnexpectedContent"
    UNRESOLVABLE_GRANT_BY_EMAIL_ADDRESS = "UnresolvableGrantByEmailAddress"
    USER_KEY_MUST_BE_SPECIFIED = "UserKeyMustBeSpecified"
    UNKNOWN = "Unknown"


# Exact-match lookup from the service's error code string to its kind.
_ERROR_KINDS: dict[str, ErrorKind] = {
    kind.value: kind for kind in ErrorKind if kind is not ErrorKind.UNKNOWN
}


def error_kind(code: str | None) -> ErrorKind:
    """Map an S3 error code to its ``ErrorKind``.

    Args:
        code: The ``<Code>`` value from an error body.

    Returns:
        The matching kind, or ``ErrorKind.UNKNOWN`` for unrecognised codes.
    """
    if not code:
        return ErrorKind.UNKNOWN
    return _ERROR_KINDS.get(code, ErrorKind.UNKNOWN)


class S3Error(Exception):
    """Base class for every error raised by s3lite."""


class ValidationError(S3Error, ValueError):
    """Input rejected before any request was sent."""


class S3ConnectionError(S3Error):
    """Transport failure or a status code outside the handled ranges.

    Attributes:
        response: The raw response, when one was received.
    """

    def __init__(self, message: str, response: Response | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.response = response


class ResponseError(S3Error):
    """A non-2xx response from the service.

    Raised as-is when the response carries no parseable error body.

    Attributes:
        message: Human-readable error description (may be None).
        response: The raw response.
        code: The S3 error code string, when known.
    """

    def __init__(
        self,
        message: str | None,
        response: Response | None,
        code: str | None = None,
    ) -> None:
        super().__init__(message or f"HTTP {response.status if response else 'error'}")
        self.message = message
        self.response = response
        self.code = code

    @property
    def status(self) -> int | None:
        """HTTP status of the failed response."""
        return self.response.status if self.response is not None else None


class ServiceError(ResponseError):
    """A non-2xx response with an XML error body.

    Subclasses fix ``kind``; a plain ``ServiceError`` is raised for codes
    that have no dedicated class and keeps the raw ``code``.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str | None,
        response: Response | None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, response, code or self.kind.value)
        if type(self) is ServiceError:
            self.kind = error_kind(code)


# -- Typed service errors -----------------------------------------------------


class AccessDenied(ServiceError):
    """Access denied."""

    kind = ErrorKind.ACCESS_DENIED


class NoSuchBucket(ServiceError):
    """The specified bucket does not exist."""

    kind = ErrorKind.NO_SUCH_BUCKET


class NoSuchKey(ServiceError):
    """The specified key does not exist."""

    kind = ErrorKind.NO_SUCH_KEY


class BucketAlreadyExists(ServiceError):
    """The requested bucket name is already in use."""

    kind = ErrorKind.BUCKET_ALREADY_EXISTS


class BucketAlreadyOwnedByYou(ServiceError):
    """The bucket already exists and is owned by the caller."""

    kind = ErrorKind.BUCKET_ALREADY_OWNED_BY_YOU


class BucketNotEmpty(ServiceError):
    """The bucket is not empty and cannot be deleted."""

    kind = ErrorKind.BUCKET_NOT_EMPTY


class InvalidAccessKeyId(ServiceError):
    """The access key id does not exist in the service's records."""

    kind = ErrorKind.INVALID_ACCESS_KEY_ID


class SignatureDoesNotMatch(ServiceError):
    """The request signature does not match the one computed by the service."""

    kind = ErrorKind.SIGNATURE_DOES_NOT_MATCH


class InvalidBucketName(ServiceError):
    """The specified bucket name is not valid."""

    kind = ErrorKind.INVALID_BUCKET_NAME


class InvalidArgument(ServiceError):
    """An invalid argument was provided."""

    kind = ErrorKind.INVALID_ARGUMENT


class InvalidRange(ServiceError):
    """The requested range is not satisfiable."""

    kind = ErrorKind.INVALID_RANGE


class PreconditionFailed(ServiceError):
    """At least one of the preconditions did not hold."""

    kind = ErrorKind.PRECONDITION_FAILED


class MethodNotAllowed(ServiceError):
    """The method is not allowed against this resource."""

    kind = ErrorKind.METHOD_NOT_ALLOWED


class MalformedXML(ServiceError):
    """The XML sent was not well-formed."""

    kind = ErrorKind.MALFORMED_XML


class RequestTimeTooSkewed(ServiceError):
    """The request time differs too much from the service's clock."""

    kind = ErrorKind.REQUEST_TIME_TOO_SKEWED


class InternalError(ServiceError):
    """The service hit an internal error."""

    kind = ErrorKind.INTERNAL_ERROR


class SlowDown(ServiceError):
    """The service asks to reduce the request rate."""

    kind = ErrorKind.SLOW_DOWN


class TooManyBuckets(ServiceError):
    """The account reached its bucket limit."""

    kind = ErrorKind.TOO_MANY_BUCKETS


class PermanentRedirect(ServiceError):
    """The bucket must be addressed through a different endpoint."""

    kind = ErrorKind.PERMANENT_REDIRECT


_ERROR_CLASSES: dict[ErrorKind, type[ServiceError]] = {
    cls.kind: cls
    for cls in (
        AccessDenied,
        NoSuchBucket,
        NoSuchKey,
        BucketAlreadyExists,
        BucketAlreadyOwnedByYou,
        BucketNotEmpty,
        InvalidAccessKeyId,
        SignatureDoesNotMatch,
        InvalidBucketName,
        InvalidArgument,
        InvalidRange,
        PreconditionFailed,
        MethodNotAllowed,
        MalformedXML,
        RequestTimeTooSkewed,
        InternalError,
        SlowDown,
        TooManyBuckets,
        PermanentRedirect,
    )
}


def error_for_code(
    code: str | None, message: str | None, response: Response | None
) -> ServiceError:
    """Build the typed error for an S3 error code.

    Args:
        code: The ``<Code>`` value from the error body.
        message: The ``<Message>`` value from the error body.
        response: The raw response the error was parsed from.

    Returns:
        An instance of the dedicated subclass for the code, or a plain
        ``ServiceError`` carrying the raw code when there is none.
    """
    cls = _ERROR_CLASSES.get(error_kind(code), ServiceError)
    return cls(message, response, code)
