"""s3lite - a small synchronous client for S3-compatible object storage."""

from s3lite.bucket import Bucket
from s3lite.connection import Connection
from s3lite.errors import (
    ErrorKind,
    NoSuchBucket,
    NoSuchKey,
    ResponseError,
    S3ConnectionError,
    S3Error,
    ServiceError,
    ValidationError,
)
from s3lite.models import Credentials, ObjectMetadata
from s3lite.object import S3Object
from s3lite.service import Service

__version__ = "0.1.0"

__all__ = [
    "Bucket",
    "Connection",
    "Credentials",
    "ErrorKind",
    "NoSuchBucket",
    "NoSuchKey",
    "ObjectMetadata",
    "ResponseError",
    "S3ConnectionError",
    "S3Error",
    "S3Object",
    "Service",
    "ServiceError",
    "ValidationError",
]
