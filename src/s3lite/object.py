"""Object handles: metadata, content, upload, copy and deletion."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import IO, TYPE_CHECKING, Any, Union

from s3lite.auth import DEFAULT_CONTENT_TYPE, presign
from s3lite.errors import NoSuchKey, ResponseError, error_for_code
from s3lite.models import ContentState, Loaded, NotLoaded, ObjectMetadata, Response
from s3lite.request_builder import escape_path
from s3lite.response import parse_object_headers
from s3lite.validation import validate_key
from s3lite.xml_utils import parse_copy_object_result, parse_error

if TYPE_CHECKING:
    from s3lite.bucket import Bucket

logger = logging.getLogger(__name__)

DEFAULT_ACL = "public-read"

ContentSource = Union[bytes, str, IO[bytes], IO[str]]


def normalize_acl(acl: Any) -> str | None:
    """Turn ``public_read`` style names into canned ACL names (``public-read``)."""
    if acl is None:
        return None
    return str(acl).replace("_", "-")


class S3Object:
    """An object stored under a key in a ``Bucket``.

    Metadata is local until a request confirms it: attributes set before
    ``save()`` are sent with the upload, and every successful GET or PUT
    refreshes them from the response headers.

    Attributes:
        bucket: The bucket holding the object.
        metadata: The object's metadata.
    """

    def __init__(
        self,
        bucket: Bucket,
        key: str,
        last_modified: datetime | None = None,
        etag: str | None = None,
        size: int | None = None,
    ) -> None:
        self.bucket = bucket
        self.metadata = ObjectMetadata(
            key=validate_key(key),
            last_modified=last_modified,
            etag=etag,
            size=size,
        )
        self._content: ContentState = NotLoaded()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, S3Object):
            return NotImplemented
        return self.key == other.key and self.bucket == other.bucket

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"<S3Object:/{self.bucket.name}/{self.key}>"

    # -- Metadata accessors --------------------------------------------------------

    @property
    def key(self) -> str:
        return self.metadata.key

    @property
    def full_key(self) -> str:
        """Bucket name and key joined by a slash, e.g. ``images/Lena.png``."""
        return f"{self.bucket.name}/{self.key}"

    @property
    def size(self) -> int | None:
        return self.metadata.size

    @property
    def etag(self) -> str | None:
        return self.metadata.etag

    @property
    def last_modified(self) -> datetime | None:
        return self.metadata.last_modified

    @property
    def content_type(self) -> str | None:
        return self.metadata.content_type

    @content_type.setter
    def content_type(self, value: str | None) -> None:
        self.metadata.content_type = value

    @property
    def content_encoding(self) -> str | None:
        return self.metadata.content_encoding

    @content_encoding.setter
    def content_encoding(self, value: str | None) -> None:
        self.metadata.content_encoding = value

    @property
    def content_disposition(self) -> str | None:
        return self.metadata.content_disposition

    @content_disposition.setter
    def content_disposition(self, value: str | None) -> None:
        self.metadata.content_disposition = value

    @property
    def acl(self) -> str | None:
        """Canned ACL sent on save. Not fetched from the service."""
        return self.metadata.acl

    @acl.setter
    def acl(self, value: Any) -> None:
        self.metadata.acl = normalize_acl(value)

    # -- URLs -------------------------------------------------------------------

    @property
    def url(self) -> str:
        """Public URL of the object, e.g. ``http://images.s3.amazonaws.com/Lena.png``."""
        bucket = self.bucket
        return f"{bucket.service.protocol}{bucket.host}/{bucket.path_prefix}{escape_path(self.key)}"

    @property
    def cname_url(self) -> str | None:
        """URL through a CNAME named after the bucket, or None for path-style buckets."""
        if not self.bucket.vhost:
            return None
        return f"{self.bucket.service.protocol}{self.bucket.name}/{escape_path(self.key)}"

    def temporary_url(self, expires_at: int | datetime | None = None) -> str:
        """Return a pre-signed GET URL valid until ``expires_at``.

        Args:
            expires_at: Expiration as Unix seconds or a datetime. Defaults
                to one hour from now. Naive datetimes are taken as UTC.
        """
        if isinstance(expires_at, datetime):
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            expires_at = int(expires_at.timestamp())
        query = presign(
            self.bucket.name,
            escape_path(self.key),
            self.bucket.service.credentials,
            expires_at,
        )
        return f"{self.url}?{query}"

    # -- Content ------------------------------------------------------------------

    def content(self, reload: bool = False) -> bytes:
        """Return the object's content, downloading it when not held locally.

        Args:
            reload: Download again even when content is already held.
        """
        if reload or isinstance(self._content, NotLoaded):
            self._get_object()
        if isinstance(self._content, Loaded):
            return self._content.data
        return b""

    def set_content(self, data: ContentSource) -> None:
        """Assign content to upload on the next ``save()``.

        Args:
            data: Bytes, text (encoded as UTF-8), or a readable file object.
        """
        if hasattr(data, "read"):
            data = data.read()
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._content = Loaded(bytes(data))

    @property
    def content_loaded(self) -> bool:
        return isinstance(self._content, Loaded)

    # -- Operations -----------------------------------------------------------------

    def retrieve(self) -> S3Object:
        """Fetch the object's metadata without downloading its content."""
        self._get_object(headers={"range": (0, 0)})
        return self

    def exists(self) -> bool:
        """Return True if the object exists, False on ``NoSuchKey``."""
        try:
            self.retrieve()
        except NoSuchKey:
            return False
        return True

    def save(self) -> bool:
        """Upload the content and metadata. Returns True on success."""
        body = self.content()
        response = self.object_request("PUT", body=body, headers=self._dump_headers())
        fields, _ = parse_object_headers(response)
        self.metadata.etag = fields["etag"]
        if fields["last_modified"] is not None:
            self.metadata.last_modified = fields["last_modified"]
        self.metadata.size = len(body)
        logger.debug("Saved %r (%d bytes)", self, len(body))
        return True

    def copy(
        self,
        key: str,
        bucket: Bucket | None = None,
        acl: Any = None,
        content_type: str | None = None,
        content_encoding: str | None = None,
        content_disposition: str | None = None,
        if_match: str | None = None,
        if_none_match: str | None = None,
        if_modified_since: datetime | str | None = None,
        if_unmodified_since: datetime | str | None = None,
    ) -> S3Object:
        """Copy the object to another key, optionally in another bucket.

        Args:
            key: Destination key.
            bucket: Destination bucket. Defaults to this object's bucket.
            acl: ACL of the copy (default: this object's ACL, else public-read).
            content_type: Content type of the copy (default: this object's,
                else application/octet-stream).
            content_encoding: Content-Encoding of the copy.
            content_disposition: Content-Disposition of the copy.
            if_match: Copy only if the source ETag matches.
            if_none_match: Copy only if the source ETag differs.
            if_modified_since: Copy only if the source changed since then.
            if_unmodified_since: Copy only if the source is unchanged since then.

        Returns:
            The new object, with the ETag and Last-Modified of the copy.

        Raises:
            ValidationError: If ``key`` is not a valid key.
        """
        validate_key(key)
        bucket = bucket or self.bucket
        acl = normalize_acl(acl) or self.acl or DEFAULT_ACL
        content_type = content_type or self.content_type or DEFAULT_CONTENT_TYPE

        headers: dict[str, Any] = {
            "x_amz_acl": acl,
            "content_type": content_type,
            "content_encoding": content_encoding,
            "content_disposition": content_disposition,
            "x_amz_copy_source": escape_path(self.full_key),
            "x_amz_metadata_directive": "REPLACE",
            "x_amz_copy_source_if_match": if_match,
            "x_amz_copy_source_if_none_match": if_none_match,
            "x_amz_copy_source_if_modified_since": if_modified_since,
            "x_amz_copy_source_if_unmodified_since": if_unmodified_since,
        }
        response = bucket.bucket_request("PUT", path=key, headers=headers)
        _raise_embedded_error(response)
        result = parse_copy_object_result(response.body)

        copied = S3Object(
            bucket,
            key,
            last_modified=result["last_modified"],
            etag=result["etag"],
            size=self.size,
        )
        copied.acl = acl
        copied.content_type = content_type
        copied.content_encoding = content_encoding
        copied.content_disposition = content_disposition
        logger.debug("Copied %r to %r", self, copied)
        return copied

    def destroy(self) -> bool:
        """Delete the object. Returns True on success."""
        self.object_request("DELETE")
        return True

    # -- Internals ----------------------------------------------------------------

    def object_request(self, method: str, **options: Any) -> Response:
        return self.bucket.bucket_request(method, path=self.key, **options)

    def _get_object(self, headers: dict[str, Any] | None = None) -> None:
        response = self.object_request("GET", headers=headers)
        self._apply_headers(response)

    def _apply_headers(self, response: Response) -> None:
        fields, content = parse_object_headers(response)
        self.metadata.etag = fields["etag"]
        self.metadata.content_type = fields["content_type"]
        self.metadata.content_disposition = fields["content_disposition"]
        self.metadata.content_encoding = fields["content_encoding"]
        self.metadata.last_modified = fields["last_modified"]
        self.metadata.size = fields["size"]
        if content is not None:
            self._content = Loaded(content)

    def _dump_headers(self) -> dict[str, Any]:
        headers: dict[str, Any] = {
            "x_amz_acl": self.acl or DEFAULT_ACL,
            "content_type": self.content_type or DEFAULT_CONTENT_TYPE,
        }
        if self.content_encoding:
            headers["content_encoding"] = self.content_encoding
        if self.content_disposition:
            headers["content_disposition"] = self.content_disposition
        return headers


def _raise_embedded_error(response: Response) -> None:
    """Raise the error a 200 copy response may carry in its body."""
    if b"<Error" not in response.body:
        return
    code, message = parse_error(response.body)
    if code:
        raise error_for_code(code, message, response)
    raise ResponseError(None, response)
