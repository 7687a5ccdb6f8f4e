"""Response interpretation for s3lite.

Turns a raw ``Response`` into either a returned value or a raised error,
and extracts object metadata from response headers.
"""

import email.utils
import logging
from datetime import datetime, timezone
from typing import Any

from s3lite.errors import ResponseError, S3ConnectionError, error_for_code
from s3lite.models import Response
from s3lite.xml_utils import parse_error, strip_etag_quotes

logger = logging.getLogger(__name__)


def handle_response(response: Response) -> Response:
    """Return a successful response or raise the matching error.

    Args:
        response: The raw response from the transport.

    Returns:
        The same response when its status is 2xx.

    Raises:
        ResponseError: For a 3xx-5xx status with an empty or unparseable body.
        ServiceError: A typed subclass for a 3xx-5xx status with an XML
            error body.
        S3ConnectionError: For any other status code.
    """
    status = response.status
    if 200 <= status < 300:
        return response
    if 300 <= status < 600:
        if not response.body:
            raise ResponseError(None, response)
        code, message = parse_error(response.body)
        if code is None:
            raise ResponseError(message, response)
        logger.debug("S3 error response: status=%d code=%s message=%s", status, code, message)
        raise error_for_code(code, message, response)
    raise S3ConnectionError(f"Unknown response code: {status}", response)


def parse_http_date(value: str | None) -> datetime | None:
    """Parse an HTTP date header into a timezone-aware datetime.

    Args:
        value: An HTTP date string (RFC 1123, RFC 850, or asctime).

    Returns:
        A datetime in UTC, or None if the value is missing or unparseable.
    """
    if not value:
        return None
    try:
        parsed = email.utils.parsedate_to_datetime(value)
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_content_range_total(value: str) -> int | None:
    """Extract the total length from a Content-Range header.

    ``bytes 0-0/1024`` yields 1024; an unknown total (``*``) yields None.
    """
    _, _, total = value.rpartition("/")
    total = total.strip()
    if not total.isdigit():
        return None
    return int(total)


def parse_object_headers(response: Response) -> tuple[dict[str, Any], bytes | None]:
    """Extract object metadata from a successful response.

    When a Content-Range header is present (a ranged read), the size is
    the total after the slash and the body is not the object content.
    Otherwise the size is Content-Length and the body is the full content.

    Args:
        response: A 2xx response to a GET or PUT of an object.

    Returns:
        A ``(fields, content)`` tuple. ``fields`` holds ``etag``,
        ``content_type``, ``content_disposition``, ``content_encoding``,
        ``last_modified`` and ``size``; ``content`` is None for ranged reads.
    """
    fields: dict[str, Any] = {
        "etag": strip_etag_quotes(response.header("etag")),
        "content_type": response.header("content-type"),
        "content_disposition": response.header("content-disposition"),
        "content_encoding": response.header("content-encoding"),
        "last_modified": parse_http_date(response.header("last-modified")),
    }

    content_range = response.header("content-range")
    if content_range:
        fields["size"] = parse_content_range_total(content_range)
        return fields, None

    content_length = response.header("content-length")
    fields["size"] = int(content_length) if content_length else len(response.body)
    return fields, response.body
