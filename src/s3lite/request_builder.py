"""Header and query-parameter construction for s3lite requests.

Callers pass options keyed by Python identifiers (``content_type``,
``x_amz_acl``, ``max_keys``); only the keys S3 understands reach the wire,
renamed to their hyphenated header or parameter names.
"""

import email.utils
import urllib.parse
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

HEADER_KEYS = frozenset(
    {
        "content_type",
        "x_amz_acl",
        "range",
        "if_modified_since",
        "if_unmodified_since",
        "if_match",
        "if_none_match",
        "content_disposition",
        "content_encoding",
        "x_amz_copy_source",
        "x_amz_metadata_directive",
        "x_amz_copy_source_if_match",
        "x_amz_copy_source_if_none_match",
        "x_amz_copy_source_if_unmodified_since",
        "x_amz_copy_source_if_modified_since",
    }
)

PARAM_KEYS = frozenset({"max_keys", "prefix", "marker", "delimiter", "location"})


PATH_SAFE_CHARS = "/!*'()"

DOT_SEGMENTS = {".": "%2E", "..": "%2E%2E"}


def escape_path(path: str) -> str:
    """Percent-encode a request path or key, keeping slashes.

    Spaces and non-ASCII characters are encoded (UTF-8), so
    ``Lena Söderberg.png`` becomes ``Lena%20S%C3%B6derberg.png``.
    Segments that are exactly ``.`` or ``..`` are encoded too, so the path
    on the wire names the same key after URL normalization.
    """
    segments = urllib.parse.quote(path, safe=PATH_SAFE_CHARS).split("/")
    return "/".join(DOT_SEGMENTS.get(segment, segment) for segment in segments)


def _wire_name(key: str) -> str:
    return key.replace("_", "-")


def format_byte_range(value: tuple[int, int] | list[int]) -> str:
    """Render an inclusive ``(start, end)`` pair as a Range header value.

    Args:
        value: Two integers, first and last byte offsets.

    Returns:
        The header value, e.g. ``bytes=0-499``.
    """
    start, end = value
    return f"bytes={int(start)}-{int(end)}"


def _format_header_value(value: Any) -> str:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return format_byte_range(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return email.utils.format_datetime(value.astimezone(timezone.utc), usegmt=True)
    return str(value)


def parse_headers(headers: Mapping[str, Any] | None) -> dict[str, str]:
    """Filter and rename request header options.

    Args:
        headers: Mapping of option names (underscored) to values. Byte-range
            values are ``(start, end)`` pairs; datetimes render as HTTP dates.

    Returns:
        A dict of hyphenated header names to string values, holding only
        recognised headers. ``None`` values are skipped.
    """
    parsed: dict[str, str] = {}
    if not headers:
        return parsed
    for key, value in headers.items():
        if key not in HEADER_KEYS or value is None:
            continue
        parsed[_wire_name(key)] = _format_header_value(value)
    return parsed


def parse_params(params: Mapping[str, Any] | str | None) -> str:
    """Build a query string from parameter options.

    Args:
        params: Mapping of option names to values, or an already-built
            query string which is returned unchanged.

    Returns:
        The joined query string without the leading ``?``, e.g.
        ``max-keys=0&prefix=photos%2F``. ``None`` values render as a bare
        key (``location``).
    """
    if params is None:
        return ""
    if isinstance(params, str):
        return params

    result = []
    for key, value in params.items():
        if key not in PARAM_KEYS:
            continue
        name = _wire_name(key)
        if value is None:
            result.append(name)
        else:
            result.append(f"{name}={urllib.parse.quote(str(value), safe='')}")
    return "&".join(result)
