"""S3 XML response parsing and request rendering helpers for s3lite."""

import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from xml.sax.saxutils import escape as _sax_escape

from s3lite.models import BucketEntry, ListBucketResult, ObjectEntry

logger = logging.getLogger(__name__)

S3_NAMESPACE = "{http://s3.amazonaws.com/doc/2006-03-01/}"


def _escape_xml(value: str) -> str:
    """Escape special XML characters in a string value."""
    return _sax_escape(str(value))


def _find_elem(parent: ET.Element, name: str) -> ET.Element | None:
    """Find a child element, trying the S3 namespace first, then the bare name.

    Uses explicit ``is not None`` checks to avoid ElementTree's deprecated
    truth-value testing of elements.
    """
    elem = parent.find(f"{S3_NAMESPACE}{name}")
    if elem is not None:
        return elem
    return parent.find(name)


def _find_all(parent: ET.Element, name: str) -> list[ET.Element]:
    found = parent.findall(f"{S3_NAMESPACE}{name}")
    if found:
        return found
    return parent.findall(name)


def _find_text(parent: ET.Element, name: str) -> str | None:
    elem = _find_elem(parent, name)
    if elem is None:
        return None
    return elem.text


def strip_etag_quotes(etag: str | None) -> str | None:
    """Strip surrounding double quotes from an ETag.

    Args:
        etag: An ETag value, possibly quoted.

    Returns:
        The unquoted ETag, or None when no ETag was given.
    """
    if etag is None:
        return None
    etag = etag.strip()
    if len(etag) >= 2 and etag.startswith('"') and etag.endswith('"'):
        etag = etag[1:-1]
    return etag


def parse_iso_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp from an S3 XML body.

    Args:
        value: A timestamp such as ``2024-01-01T00:00:00.000Z``.

    Returns:
        A timezone-aware datetime in UTC, or None if parsing fails.
    """
    if not value:
        return None
    value = value.strip()
    for fmt in ("%Y-%m-%dT%H:%M:%S.%fZ", "%Y-%m-%dT%H:%M:%SZ"):
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.debug("Unparseable timestamp in XML body: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_root(body: bytes | str) -> ET.Element:
    if isinstance(body, str):
        body = body.strip().encode("utf-8")
    else:
        body = body.strip()
    return ET.fromstring(body)


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def parse_error(body: bytes | str) -> tuple[str | None, str | None]:
    """Extract the code and message from an S3 error body.

    Args:
        body: An ``<Error><Code/><Message/></Error>`` document.

    Returns:
        A ``(code, message)`` tuple. Both are None when the body is not
        well-formed XML.
    """
    try:
        root = _parse_root(body)
    except ET.ParseError:
        logger.debug("Error body is not well-formed XML")
        return None, None
    return _find_text(root, "Code"), _find_text(root, "Message")


def parse_copy_object_result(body: bytes | str) -> dict[str, object]:
    """Parse a CopyObjectResult body.

    Args:
        body: The XML body of a successful copy.

    Returns:
        A dict with ``last_modified`` (datetime or None) and ``etag``
        (unquoted, or None).

    Raises:
        xml.etree.ElementTree.ParseError: If the body is not well-formed.
    """
    root = _parse_root(body)
    return {
        "last_modified": parse_iso_timestamp(_find_text(root, "LastModified")),
        "etag": strip_etag_quotes(_find_text(root, "ETag")),
    }


def parse_list_all_my_buckets_result(body: bytes | str) -> list[BucketEntry]:
    """Parse a ListAllMyBucketsResult body into bucket entries."""
    root = _parse_root(body)
    buckets_elem = _find_elem(root, "Buckets")
    if buckets_elem is None:
        return []
    entries = []
    for bucket_elem in _find_all(buckets_elem, "Bucket"):
        name = _find_text(bucket_elem, "Name")
        if not name:
            continue
        entries.append(
            BucketEntry(
                name=name,
                creation_date=parse_iso_timestamp(_find_text(bucket_elem, "CreationDate")),
            )
        )
    return entries


def parse_list_bucket_result(body: bytes | str) -> ListBucketResult:
    """Parse a ListBucketResult (ListObjects v1) body.

    When the service reports truncation without a ``NextMarker`` (no
    delimiter was given), the last key on the page is the next marker.

    Args:
        body: The XML body of a bucket listing.

    Returns:
        The parsed page.
    """
    root = _parse_root(body)
    entries = []
    for contents in _find_all(root, "Contents"):
        size_text = _find_text(contents, "Size")
        entries.append(
            ObjectEntry(
                key=_find_text(contents, "Key") or "",
                last_modified=parse_iso_timestamp(_find_text(contents, "LastModified")),
                etag=strip_etag_quotes(_find_text(contents, "ETag")),
                size=int(size_text) if size_text else 0,
            )
        )

    common_prefixes = []
    for prefix_elem in _find_all(root, "CommonPrefixes"):
        prefix = _find_text(prefix_elem, "Prefix")
        if prefix is not None:
            common_prefixes.append(prefix)

    is_truncated = (_find_text(root, "IsTruncated") or "false").strip().lower() == "true"
    next_marker = _find_text(root, "NextMarker")
    if is_truncated and not next_marker:
        candidates = [entry.key for entry in entries] + common_prefixes
        next_marker = max(candidates) if candidates else None

    return ListBucketResult(
        entries=entries,
        common_prefixes=common_prefixes,
        is_truncated=is_truncated,
        next_marker=next_marker,
    )


def parse_location_constraint(body: bytes | str) -> str | None:
    """Parse a LocationConstraint body.

    Returns:
        The region string, or None for the empty constraint (US Standard).
    """
    root = _parse_root(body)
    text = (root.text or "").strip()
    return text or None


# ---------------------------------------------------------------------------
# Request rendering
# ---------------------------------------------------------------------------


def render_create_bucket_configuration(location: str) -> str:
    """Render a CreateBucketConfiguration request body.

    Args:
        location: The location constraint (e.g. ``EU``, ``us-west-1``).

    Returns:
        An XML string for CreateBucketConfiguration.
    """
    parts = [
        '<CreateBucketConfiguration xmlns="http://s3.amazonaws.com/doc/2006-03-01/">',
        f"<LocationConstraint>{_escape_xml(location)}</LocationConstraint>",
        "</CreateBucketConfiguration>",
    ]
    return "\n".join(parts)
