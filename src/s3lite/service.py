"""Account-level entry point: connection settings and bucket listing."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from s3lite.auth import DEFAULT_HOST
from s3lite.bucket import Bucket
from s3lite.config import ClientConfig
from s3lite.connection import Connection
from s3lite.models import Credentials, Response
from s3lite.xml_utils import parse_list_all_my_buckets_result

logger = logging.getLogger(__name__)


class Service:
    """An S3 account reachable through one endpoint.

    Attributes:
        use_ssl: Whether requests use HTTPS.
        timeout: Read timeout in seconds, or None.
        debug: Whether requests are traced in the log.
        host: The service endpoint host.
        vhost: Whether DNS-compatible buckets are addressed virtual-hosted
            style. When False every bucket uses path-style addressing.
    """

    def __init__(
        self,
        access_key_id: str,
        secret_access_key: str,
        use_ssl: bool = False,
        timeout: float | None = None,
        debug: bool = False,
        host: str = DEFAULT_HOST,
        vhost: bool = True,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.use_ssl = use_ssl
        self.timeout = timeout
        self.debug = debug
        self.host = host
        self.vhost = vhost
        self._connection = Connection(
            access_key_id,
            secret_access_key,
            use_ssl=use_ssl,
            timeout=timeout,
            debug=debug,
            host=host,
            http_client=http_client,
        )

    @classmethod
    def from_config(cls, config: ClientConfig, http_client: httpx.Client | None = None) -> Service:
        """Create a service from a loaded ``ClientConfig``."""
        return cls(
            config.auth.access_key_id,
            config.auth.secret_access_key,
            use_ssl=config.connection.use_ssl,
            timeout=config.connection.timeout,
            debug=config.connection.debug,
            host=config.connection.host,
            vhost=config.connection.vhost,
            http_client=http_client,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Service):
            return NotImplemented
        return self.credentials == other.credentials and self.host == other.host

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"<Service {self.credentials.access_key_id}@{self.host}>"

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def credentials(self) -> Credentials:
        return self._connection.credentials

    @property
    def protocol(self) -> str:
        """URL scheme prefix: ``https://`` or ``http://``."""
        return "https://" if self.use_ssl else "http://"

    @property
    def port(self) -> int:
        return 443 if self.use_ssl else 80

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> Service:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -- Buckets -------------------------------------------------------------

    def buckets(self) -> list[Bucket]:
        """List every bucket owned by the account."""
        response = self.service_request("GET")
        entries = parse_list_all_my_buckets_result(response.body)
        logger.debug("Listed %d buckets", len(entries))
        return [Bucket(self, entry.name, creation_date=entry.creation_date) for entry in entries]

    def build_bucket(self, name: str) -> Bucket:
        """Return an unsaved ``Bucket`` handle without contacting the service."""
        return Bucket(self, name)

    def bucket(self, name: str) -> Bucket:
        """Return an existing bucket.

        Raises:
            NoSuchBucket: If the bucket does not exist.
        """
        return self.build_bucket(name).retrieve()

    def service_request(self, method: str, path: str = "", **options: Any) -> Response:
        """Send a request for a path relative to the service root."""
        return self._connection.request(method, path=f"/{path}", **options)
