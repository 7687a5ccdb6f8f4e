"""Input validation helpers for s3lite.

These functions reject malformed bucket names and keys before any request
is built. Each raises ``ValidationError`` on invalid input.
"""

import re

from s3lite.errors import ValidationError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Bucket names accepted for path-style addressing:
#   - 3-255 characters of letters, digits, periods, underscores and hyphens
#   - must start with a letter or digit
#   - must not be formatted as an IP address
_BUCKET_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{2,254}$")
_IP_RE = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")

# A single DNS label: letters, digits and inner hyphens, up to 63 chars.
_LABEL_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")
_MAX_HOSTNAME = 255


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def key_valid(key: str | None) -> bool:
    """Whether ``key`` is usable as an object key (non-empty, no ``//``)."""
    return bool(key) and "//" not in key


def validate_key(key: str | None) -> str:
    """Validate an object key.

    Args:
        key: The candidate key.

    Returns:
        The key, unchanged.

    Raises:
        ValidationError: If the key is missing, empty, or contains ``//``.
    """
    if not key_valid(key):
        raise ValidationError(f"Invalid key name: {key}")
    return key


def validate_bucket_name(name: str | None) -> str:
    """Validate a bucket name.

    Args:
        name: The candidate bucket name.

    Returns:
        The name, unchanged.

    Raises:
        ValidationError: If the name violates the naming rules.
    """
    if not name or not _BUCKET_RE.match(name) or _IP_RE.match(name):
        raise ValidationError(f"Invalid bucket name: {name}")
    return name


def is_vhost_compatible(name: str, service_host: str) -> bool:
    """Whether ``<name>.<service_host>`` is a valid DNS hostname.

    Buckets with such names are addressed virtual-hosted style
    (``bucket.host/key``); all others use path style (``host/bucket/key``).

    Args:
        name: The bucket name.
        service_host: The service endpoint host.

    Returns:
        True when the bucket can be addressed as a subdomain.
    """
    hostname = f"{name}.{service_host}"
    if len(hostname) > _MAX_HOSTNAME or _IP_RE.match(name):
        return False
    return all(_LABEL_RE.match(label) for label in name.split("."))
