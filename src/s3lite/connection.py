"""HTTP connection to an S3-compatible endpoint.

The connection builds, signs and sends single requests over an
``httpx.Client`` and hands every response to ``handle_response``.  It holds
no state across calls beyond the immutable credentials and the transport.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

import httpx

from s3lite import metrics
from s3lite.auth import DEFAULT_HOST, sign_request
from s3lite.errors import S3ConnectionError, ValidationError
from s3lite.models import Credentials, RequestDescriptor, Response
from s3lite.request_builder import escape_path, parse_headers, parse_params
from s3lite.response import handle_response

logger = logging.getLogger(__name__)

METHODS = frozenset({"GET", "PUT", "DELETE", "HEAD"})


class Connection:
    """A signing HTTP connection.

    Attributes:
        credentials: The key pair every request is signed with.
        use_ssl: Whether requests go over HTTPS (port 443) or HTTP (port 80).
        timeout: Read timeout in seconds, or None for no timeout.
        debug: Whether to log a trace line for every request.
        host: The service endpoint host.
    """

    def __init__(
        self,
        access_key_id: str,
        secret_access_key: str,
        use_ssl: bool = False,
        timeout: float | None = None,
        debug: bool = False,
        host: str = DEFAULT_HOST,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the connection.

        Args:
            access_key_id: Access key identifier.
            secret_access_key: Secret access key.
            use_ssl: Use HTTPS when True.
            timeout: Optional read timeout in seconds.
            debug: Log every request and response when True.
            host: Service endpoint host.
            http_client: Transport to use instead of a private
                ``httpx.Client``. The connection does not close it.
        """
        self.credentials = Credentials(access_key_id, secret_access_key)
        self.use_ssl = use_ssl
        self.timeout = timeout
        self.debug = debug
        self.host = host
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def scheme(self) -> str:
        return "https" if self.use_ssl else "http"

    @property
    def port(self) -> int:
        return 443 if self.use_ssl else 80

    def _client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(
                timeout=httpx.Timeout(None, read=self.timeout),
                follow_redirects=False,
            )
        return self._http_client

    def close(self) -> None:
        """Close the transport if this connection created it."""
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -- Requests ----------------------------------------------------------------

    def request(
        self,
        method: str,
        *,
        path: str | None,
        host: str | None = None,
        body: bytes | str | None = None,
        params: Mapping[str, Any] | str | None = None,
        headers: Mapping[str, Any] | None = None,
    ) -> Response:
        """Send a signed request and return the successful response.

        Args:
            method: HTTP method: GET, PUT, DELETE (or HEAD).
            path: Unescaped request path, required.
            host: Host to connect to. Defaults to the service host.
            body: Request body. Strings are sent as UTF-8.
            params: Query parameter options, or a prebuilt query string.
            headers: Header options (see ``parse_headers``).

        Returns:
            The 2xx response.

        Raises:
            ValidationError: If no path is given or the method is unsupported.
            S3ConnectionError: On transport failure or an unexpected status.
            ResponseError: On a 3xx-5xx response (typed when parseable).
        """
        if not path:
            raise ValidationError("no path given")
        method = method.upper()
        if method not in METHODS:
            raise ValidationError(f"Unsupported HTTP method: {method}")

        request_path = escape_path(path)
        query = parse_params(params)
        if query:
            request_path = f"{request_path}?{query}"

        if isinstance(body, str):
            body = body.encode("utf-8")

        descriptor = RequestDescriptor(
            method=method,
            host=host or self.host,
            path=request_path,
            body=body,
            headers=parse_headers(headers),
        )
        signed = sign_request(descriptor, self.credentials, self.host)
        return handle_response(self._send(signed))

    def _send(self, request: RequestDescriptor) -> Response:
        """Transmit a signed request and wrap the transport's response."""
        url = f"{self.scheme}://{request.host}{request.path}"
        sent = len(request.body) if request.body else 0
        start = time.monotonic()
        client = self._client()
        http_request = client.build_request(
            request.method,
            url,
            headers=request.headers,
            content=request.body,
        )
        try:
            http_response = client.send(http_request, stream=True)
            try:
                # Stored bytes, not decoded by Content-Encoding.
                body = b"".join(http_response.iter_raw())
            finally:
                http_response.close()
        except httpx.HTTPError as exc:
            duration = time.monotonic() - start
            metrics.record_request(request.method, "error", duration, sent, 0)
            logger.warning("%s %s failed: %s", request.method, url, exc)
            raise S3ConnectionError(f"{request.method} {url} failed: {exc}") from exc

        duration = time.monotonic() - start
        response = Response(
            status=http_response.status_code,
            headers={name.lower(): value for name, value in http_response.headers.items()},
            body=body,
        )
        metrics.record_request(request.method, response.status, duration, sent, len(response.body))

        log_level = logging.INFO if self.debug else logging.DEBUG
        logger.log(
            log_level,
            "%s %s -> %d (%.1f ms)",
            request.method,
            url,
            response.status,
            duration * 1000,
            extra={
                "method": request.method,
                "host": request.host,
                "path": request.path,
                "status": response.status,
                "duration_ms": round(duration * 1000, 1),
            },
        )
        return response
