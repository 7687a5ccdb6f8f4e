"""Data model types for s3lite.

These dataclasses carry the values passed between the request builder,
the signer, the transport and the response parser, plus the result
containers returned by list operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class Credentials:
    """Access key pair used to sign every request of a connection.

    Attributes:
        access_key_id: The public access key identifier.
        secret_access_key: The secret used as the HMAC key.
    """

    access_key_id: str
    secret_access_key: str

    def __repr__(self) -> str:
        return f"Credentials(access_key_id={self.access_key_id!r})"


@dataclass
class RequestDescriptor:
    """A request ready to be signed and sent.

    Attributes:
        method: HTTP method (GET, PUT, DELETE or HEAD).
        host: Target host name.
        path: Escaped request path, including the query string if any.
        body: Request body, if any.
        headers: Header map with lowercase names.
    """

    method: str
    host: str
    path: str
    body: bytes | None = None
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Response:
    """A raw response from the transport.

    Attributes:
        status: HTTP status code.
        headers: Response headers with lowercase names.
        body: Response body bytes.
    """

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


@dataclass
class ObjectMetadata:
    """Metadata for an S3 object, as reported in response headers.

    Attributes:
        key: The object key.
        size: Size in bytes (the full object size, even for ranged reads).
        last_modified: Last modification time, timezone-aware.
        etag: Entity tag without surrounding quotes.
        content_type: MIME type.
        content_encoding: Content-Encoding header value, if any.
        content_disposition: Content-Disposition header value, if any.
        acl: Canned ACL name (e.g. ``public-read``), if known.
    """

    key: str
    size: int | None = None
    last_modified: datetime | None = None
    etag: str | None = None
    content_type: str | None = None
    content_encoding: str | None = None
    content_disposition: str | None = None
    acl: str | None = None


# -- Content cache state -------------------------------------------------------


@dataclass(frozen=True)
class NotLoaded:
    """Object content has not been fetched or assigned."""


@dataclass(frozen=True)
class Loaded:
    """Object content held locally.

    Attributes:
        data: The content bytes.
    """

    data: bytes


ContentState = Union[NotLoaded, Loaded]


# -- List results ----------------------------------------------------------------


@dataclass
class BucketEntry:
    """One bucket from a ListAllMyBuckets response."""

    name: str
    creation_date: datetime | None = None


@dataclass
class ObjectEntry:
    """One object from a ListBucket response.

    Attributes:
        key: The object key.
        last_modified: Last modification time.
        etag: Entity tag without surrounding quotes.
        size: Size in bytes.
    """

    key: str
    last_modified: datetime | None = None
    etag: str | None = None
    size: int = 0


@dataclass
class ListBucketResult:
    """One page of a ListBucket (v1) response.

    Attributes:
        entries: Objects on this page.
        common_prefixes: Collapsed prefixes when a delimiter was given.
        is_truncated: Whether more results are available.
        next_marker: Marker to request the next page with.
    """

    entries: list[ObjectEntry] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)
    is_truncated: bool = False
    next_marker: str | None = None
