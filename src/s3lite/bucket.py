"""Bucket handles: addressing, creation, listing and deletion."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from s3lite.errors import NoSuchBucket
from s3lite.models import ListBucketResult, Response
from s3lite.object import S3Object
from s3lite.validation import is_vhost_compatible, validate_bucket_name
from s3lite.xml_utils import (
    parse_list_bucket_result,
    parse_location_constraint,
    render_create_bucket_configuration,
)

if TYPE_CHECKING:
    from s3lite.service import Service

logger = logging.getLogger(__name__)

# Location constraints that need no CreateBucketConfiguration body.
_DEFAULT_LOCATIONS = frozenset({"", "US", "US-EAST-1"})

_UNSET = object()


class Bucket:
    """A named bucket of a ``Service``.

    Attributes:
        service: The owning service.
        name: The bucket name.
        creation_date: Creation time, when known from a listing.
    """

    def __init__(self, service: Service, name: str, creation_date: datetime | None = None) -> None:
        self.service = service
        self.name = validate_bucket_name(name)
        self.creation_date = creation_date
        self._location: Any = _UNSET

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bucket):
            return NotImplemented
        return self.name == other.name and self.service == other.service

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"<Bucket:{self.name}>"

    # -- Addressing ------------------------------------------------------------

    @property
    def vhost(self) -> bool:
        """Whether the bucket is addressed as ``<name>.<host>``."""
        return self.service.vhost and is_vhost_compatible(self.name, self.service.host)

    @property
    def host(self) -> str:
        if self.vhost:
            return f"{self.name}.{self.service.host}"
        return self.service.host

    @property
    def path_prefix(self) -> str:
        """Prefix of object paths: empty for vhost buckets, ``<name>/`` otherwise."""
        return "" if self.vhost else f"{self.name}/"

    @property
    def url(self) -> str:
        return f"{self.service.protocol}{self.host}/{self.path_prefix}"

    def bucket_request(self, method: str, path: str = "", **options: Any) -> Response:
        """Send a request for a path relative to this bucket."""
        return self.service.service_request(
            method, path=f"{self.path_prefix}{path}", host=self.host, **options
        )

    # -- Bucket operations ---------------------------------------------------------

    def retrieve(self) -> Bucket:
        """Check the bucket is reachable.

        Raises:
            NoSuchBucket: If the bucket does not exist.
        """
        self.bucket_request("GET", params={"max_keys": 0})
        return self

    def exists(self) -> bool:
        """Return True if the bucket exists, False on ``NoSuchBucket``."""
        try:
            self.retrieve()
        except NoSuchBucket:
            return False
        return True

    def location(self, reload: bool = False) -> str | None:
        """Return the bucket's location constraint (None for US Standard).

        The value is fetched once and kept; pass ``reload=True`` to fetch
        it again.
        """
        if reload or self._location is _UNSET:
            response = self.bucket_request("GET", params={"location": None})
            self._location = parse_location_constraint(response.body)
        return self._location

    def save(self, location: str | None = None) -> bool:
        """Create the bucket.

        Args:
            location: Optional location constraint. ``eu`` is sent as ``EU``;
                US locations send no configuration body.

        Returns:
            True on success.
        """
        body = None
        if location is not None:
            location = str(location)
            if location.lower() == "eu":
                location = "EU"
            if location.upper() not in _DEFAULT_LOCATIONS:
                body = render_create_bucket_configuration(location)
        self.bucket_request("PUT", body=body)
        self._location = _UNSET
        logger.info("Created bucket %s", self.name)
        return True

    def destroy(self, force: bool = False) -> bool:
        """Delete the bucket.

        Args:
            force: Delete every object in the bucket first.

        Raises:
            BucketNotEmpty: If the bucket still holds objects.
        """
        if force:
            for obj in self.objects():
                obj.destroy()
        self.bucket_request("DELETE")
        logger.info("Deleted bucket %s", self.name)
        return True

    # -- Objects ----------------------------------------------------------------

    def list_objects(
        self,
        prefix: str | None = None,
        delimiter: str | None = None,
        max_keys: int | None = None,
        marker: str | None = None,
    ) -> ListBucketResult:
        """Fetch a single page of the bucket listing."""
        params = {
            name: value
            for name, value in (
                ("prefix", prefix),
                ("delimiter", delimiter),
                ("max_keys", max_keys),
                ("marker", marker),
            )
            if value is not None
        }
        response = self.bucket_request("GET", params=params or None)
        return parse_list_bucket_result(response.body)

    def objects(
        self,
        prefix: str | None = None,
        delimiter: str | None = None,
        max_keys: int | None = None,
        marker: str | None = None,
    ) -> list[S3Object]:
        """List the bucket's objects, following truncated pages.

        ``max_keys`` is the page size requested from the service; all pages
        are fetched.
        """
        objects: list[S3Object] = []
        while True:
            page = self.list_objects(
                prefix=prefix, delimiter=delimiter, max_keys=max_keys, marker=marker
            )
            for entry in page.entries:
                objects.append(
                    S3Object(
                        self,
                        entry.key,
                        last_modified=entry.last_modified,
                        etag=entry.etag,
                        size=entry.size,
                    )
                )
            if not page.is_truncated or not page.next_marker or page.next_marker == marker:
                break
            marker = page.next_marker
        return objects

    def object(self, key: str) -> S3Object:
        """Return an unsaved object handle for ``key`` in this bucket."""
        return S3Object(self, key)
