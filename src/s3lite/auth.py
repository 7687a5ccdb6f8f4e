"""AWS Signature Version 2 request signing for s3lite.

Implements the HMAC-SHA1 signing scheme for both header-based auth
(``Authorization: AWS <key>:<signature>``) and query-string auth
(temporary URLs carrying ``AWSAccessKeyId``, ``Expires`` and ``Signature``).

Every function here is pure: the same request with the same Date header
always produces the same canonical string and signature.

References:
    - https://docs.aws.amazon.com/AmazonS3/latest/userguide/RESTAuthentication.html
"""

import base64
import dataclasses
import email.utils
import hashlib
import hmac
import logging
import time
import urllib.parse
from datetime import datetime, timezone

from s3lite.models import Credentials, RequestDescriptor

logger = logging.getLogger(__name__)

# Constants
DEFAULT_HOST = "s3.amazonaws.com"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
AUTH_SCHEME = "AWS"
AMZ_HEADER_PREFIX = "x-amz-"
DEFAULT_EXPIRES_IN = 3600  # 1 hour in seconds

# Query parameters that are part of the signed resource
SUBRESOURCES = frozenset(
    {
        "acl",
        "lifecycle",
        "location",
        "logging",
        "notification",
        "partNumber",
        "policy",
        "requestPayment",
        "torrent",
        "uploadId",
        "uploads",
        "versionId",
        "versioning",
        "versions",
        "website",
        "response-cache-control",
        "response-content-disposition",
        "response-content-encoding",
        "response-content-language",
        "response-content-type",
        "response-expires",
    }
)


def http_date(now: datetime | None = None) -> str:
    """Format a timestamp as an RFC 1123 HTTP date in GMT.

    Args:
        now: The time to format. Defaults to the current UTC time.

    Returns:
        A date string such as ``Sat, 01 Jan 2024 00:00:00 GMT``.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return email.utils.format_datetime(now.astimezone(timezone.utc), usegmt=True)


def content_md5(body: bytes) -> str:
    """Base64-encoded MD5 digest of a request body."""
    return base64.b64encode(hashlib.md5(body).digest()).decode("ascii")


def prepare_request(request: RequestDescriptor, now: datetime | None = None) -> RequestDescriptor:
    """Fill in the headers every signed request carries.

    Sets ``date`` when missing. For requests with a body, sets
    ``content-md5`` and defaults ``content-type`` to
    ``application/octet-stream``.

    Args:
        request: The request to prepare. It is not modified.
        now: Time to use for a missing Date header.

    Returns:
        A copy of the request with the completed header map.
    """
    headers = {name.lower(): value for name, value in request.headers.items()}
    headers.setdefault("date", http_date(now))
    if request.body is not None:
        headers.setdefault("content-type", DEFAULT_CONTENT_TYPE)
        headers["content-md5"] = content_md5(request.body)
    return dataclasses.replace(request, headers=headers)


# -- Canonical string construction ------------------------------------------------


def canonical_amz_headers(headers: dict[str, str]) -> str:
    """Build the canonicalized ``x-amz-*`` header block.

    Names are lower-cased and sorted, values trimmed, repeated names joined
    with commas. Each header renders as ``name:value\\n``.

    Args:
        headers: Request headers (names may be mixed case).

    Returns:
        The canonical header lines, or an empty string when there are none.
    """
    amz: dict[str, list[str]] = {}
    for name, value in headers.items():
        lower_name = name.lower()
        if lower_name.startswith(AMZ_HEADER_PREFIX):
            amz.setdefault(lower_name, []).append(" ".join(str(value).split()))
    return "".join(f"{name}:{','.join(amz[name])}\n" for name in sorted(amz))


def _vhost_bucket(host: str, service_host: str) -> str:
    """Return the bucket name encoded in a virtual-hosted-style host."""
    host = host.lower()
    suffix = "." + service_host.lower()
    if host.endswith(suffix):
        return host[: -len(suffix)]
    return ""


def canonical_resource(path: str, host: str = "", service_host: str = DEFAULT_HOST) -> str:
    """Build the canonicalized resource for a request.

    Args:
        path: The escaped request path, possibly with a query string.
        host: The host the request is sent to. A virtual-hosted-style host
            (``<bucket>.<service_host>``) adds the ``/<bucket>`` prefix.
        service_host: The service endpoint host.

    Returns:
        The resource string: bucket prefix, path, then signed sub-resources.
    """
    path, _, query = path.partition("?")
    resource = ""
    bucket = _vhost_bucket(host, service_host) if host else ""
    if bucket:
        resource += f"/{bucket}"
    resource += path or "/"

    subresources = []
    for pair in query.split("&") if query else []:
        name, sep, value = pair.partition("=")
        if name in SUBRESOURCES:
            subresources.append((name, urllib.parse.unquote(value) if sep else None))
    if subresources:
        subresources.sort(key=lambda item: item[0])
        rendered = [name if value is None else f"{name}={value}" for name, value in subresources]
        resource += "?" + "&".join(rendered)
    return resource


def string_to_sign(method: str, headers: dict[str, str], resource: str) -> str:
    """Assemble the string to sign.

    Args:
        method: HTTP method.
        headers: Prepared request headers with lowercase names.
        resource: The canonicalized resource.

    Returns:
        ``METHOD\\nContent-MD5\\nContent-Type\\nDate\\n`` followed by the
        canonical ``x-amz-*`` headers and the resource. The Date line is
        empty when an ``x-amz-date`` header is present.
    """
    date = "" if "x-amz-date" in headers else headers.get("date", "")
    return (
        f"{method.upper()}\n"
        f"{headers.get('content-md5', '')}\n"
        f"{headers.get('content-type', '')}\n"
        f"{date}\n"
        f"{canonical_amz_headers(headers)}"
        f"{resource}"
    )


# -- Signature computation -------------------------------------------------------


def compute_signature(secret_access_key: str, data: str) -> str:
    """Compute the base64 HMAC-SHA1 signature of a string to sign.

    Args:
        secret_access_key: The HMAC key.
        data: The string to sign.

    Returns:
        The base64 digest without a trailing newline.
    """
    digest = hmac.new(
        secret_access_key.encode("utf-8"), data.encode("utf-8"), hashlib.sha1
    ).digest()
    return base64.b64encode(digest).decode("ascii").strip()


def sign(
    request: RequestDescriptor,
    credentials: Credentials,
    service_host: str = DEFAULT_HOST,
) -> str:
    """Compute the Authorization header value for a prepared request.

    Args:
        request: A request whose headers were completed by
            ``prepare_request``.
        credentials: The key pair to sign with.
        service_host: The service endpoint host, used to recognise
            virtual-hosted-style bucket hosts.

    Returns:
        The token ``AWS <access_key_id>:<signature>``.
    """
    headers = {name.lower(): value for name, value in request.headers.items()}
    resource = canonical_resource(request.path, request.host, service_host)
    to_sign = string_to_sign(request.method, headers, resource)
    logger.debug("String to sign: %r", to_sign)
    signature = compute_signature(credentials.secret_access_key, to_sign)
    return f"{AUTH_SCHEME} {credentials.access_key_id}:{signature}"


def sign_request(
    request: RequestDescriptor,
    credentials: Credentials,
    service_host: str = DEFAULT_HOST,
    now: datetime | None = None,
) -> RequestDescriptor:
    """Prepare a request and attach its Authorization header.

    Args:
        request: The request to sign. It is not modified.
        credentials: The key pair to sign with.
        service_host: The service endpoint host.
        now: Time to use for a missing Date header.

    Returns:
        A signed copy of the request.
    """
    prepared = prepare_request(request, now)
    prepared.headers["authorization"] = sign(prepared, credentials, service_host)
    return prepared


# -- Query-string auth (temporary URLs) --------------------------------------------


def presign(
    bucket: str,
    key: str,
    credentials: Credentials,
    expires_at: int | None = None,
) -> str:
    """Build the query string that authenticates a temporary GET URL.

    The string to sign has the same shape as for header auth, with empty
    Content-MD5 and Content-Type lines and the expiration time (Unix
    seconds) in place of the Date.

    Args:
        bucket: The bucket name.
        key: The escaped object key.
        credentials: The key pair to sign with.
        expires_at: Expiration as Unix seconds. Defaults to one hour from now.

    Returns:
        ``AWSAccessKeyId=...&Expires=...&Signature=...`` with the signature
        URL-encoded.
    """
    if expires_at is None:
        expires_at = int(time.time()) + DEFAULT_EXPIRES_IN
    expires_at = int(expires_at)
    resource = f"/{bucket}/{key}"
    to_sign = string_to_sign("GET", {"date": str(expires_at)}, resource)
    signature = compute_signature(credentials.secret_access_key, to_sign)
    return (
        f"AWSAccessKeyId={urllib.parse.quote(credentials.access_key_id, safe='')}"
        f"&Expires={expires_at}"
        f"&Signature={urllib.parse.quote(signature, safe='')}"
    )
