"""Shared pytest fixtures for s3lite tests.

Two fakes stand in for the remote service:

- ``transport`` records every outgoing ``httpx.Request`` and answers from a
  queue of canned responses (``httpx.MockTransport``). Unit tests use it to
  check exactly what goes on the wire.
- ``fake_s3`` is a small in-memory S3 implemented as a FastAPI app. It
  verifies the signature of every request with the library's own
  canonicalizer and is driven through Starlette's ``TestClient``, which is
  an ``httpx.Client`` and can be handed straight to a ``Service``.
"""

import base64
import email.utils
import hashlib
import hmac
from datetime import datetime, timezone
from typing import Any
from urllib.parse import parse_qsl, unquote
from xml.sax.saxutils import escape

import httpx
import pytest
from fastapi import FastAPI, Request, Response
from fastapi.testclient import TestClient

from s3lite import metrics
from s3lite.auth import DEFAULT_HOST, canonical_resource, compute_signature, string_to_sign
from s3lite.request_builder import escape_path
from s3lite.service import Service

ACCESS_KEY_ID = "1234"
SECRET_ACCESS_KEY = "1337"


# ---- Recording transport ---------------------------------------------------


class RecordingTransport:
    """Records requests and replays queued responses (default: empty 200)."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[Any] = []

    def queue(self, status: int = 200, headers: dict[str, str] | None = None, body: bytes = b""):
        self.responses.append((status, headers or {}, body))

    def queue_error(self, exc: Exception) -> None:
        self.responses.append(exc)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if self.responses else (200, {}, b"")
        if isinstance(item, Exception):
            raise item
        status, headers, body = item
        headers = httpx.Headers(headers)
        if body and "content-length" not in headers:
            headers["Content-Length"] = str(len(body))
        # Unread stream, as a network transport returns it.
        return httpx.Response(status, headers=headers, stream=httpx.ByteStream(body))


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def http_client(transport):
    client = httpx.Client(transport=httpx.MockTransport(transport))
    yield client
    client.close()


@pytest.fixture
def service(http_client) -> Service:
    """A service with the test credentials talking to the recording transport."""
    return Service(ACCESS_KEY_ID, SECRET_ACCESS_KEY, http_client=http_client)


@pytest.fixture(autouse=True)
def _metrics_initialized():
    """Register the Prometheus collectors once for the whole test run."""
    metrics.init_metrics()


# ---- In-memory S3 fake -------------------------------------------------------


def _http_date(dt: datetime) -> str:
    return email.utils.format_datetime(dt, usegmt=True)


def _iso(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def _error(code: str, message: str, status: int) -> Response:
    body = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f"<Error><Code>{code}</Code><Message>{escape(message)}</Message></Error>"
    )
    return Response(content=body, status_code=status, media_type="application/xml")


def _xml(body: str, status: int = 200) -> Response:
    return Response(
        content='<?xml version="1.0" encoding="UTF-8"?>\n' + body,
        status_code=status,
        media_type="application/xml",
    )


def create_fake_s3(
    credentials: dict[str, str], service_host: str = DEFAULT_HOST
) -> FastAPI:
    """Build the in-memory S3 application.

    State lives on ``app.state.buckets``:
    ``{bucket: {"location": str | None, "objects": {key: dict}}}``.
    """
    app = FastAPI()
    app.state.buckets = {}
    app.state.requests = []
    ns = 'xmlns="http://s3.amazonaws.com/doc/2006-03-01/"'

    def verify_signature(request: Request) -> Response | None:
        auth = request.headers.get("authorization", "")
        if not auth.startswith("AWS "):
            return _error("AccessDenied", "Access Denied", 403)
        access_key, _, provided = auth[4:].partition(":")
        secret = credentials.get(access_key)
        if secret is None:
            return _error(
                "InvalidAccessKeyId",
                "The AWS Access Key Id you provided does not exist in our records.",
                403,
            )
        path = escape_path(request.url.path)
        if request.url.query:
            path = f"{path}?{request.url.query}"
        headers = {name.lower(): value for name, value in request.headers.items()}
        resource = canonical_resource(path, request.headers.get("host", ""), service_host)
        expected = compute_signature(secret, string_to_sign(request.method, headers, resource))
        if not hmac.compare_digest(expected, provided):
            return _error(
                "SignatureDoesNotMatch",
                "The request signature we calculated does not match the signature you provided.",
                403,
            )
        return None

    def split_target(request: Request) -> tuple[str, str]:
        host = request.headers.get("host", "").lower()
        path = request.url.path
        suffix = "." + service_host
        if host.endswith(suffix):
            return host[: -len(suffix)], path[1:]
        bucket, _, key = path[1:].partition("/")
        return bucket, key

    @app.api_route("/{rest:path}", methods=["GET", "PUT", "DELETE"])
    async def dispatch(request: Request, rest: str) -> Response:
        app.state.requests.append(request)
        denied = verify_signature(request)
        if denied is not None:
            return denied

        bucket_name, key = split_target(request)
        method = request.method
        body = await request.body()

        if not bucket_name:
            entries = "".join(
                f"<Bucket><Name>{escape(name)}</Name>"
                f"<CreationDate>{_iso(b['created'])}</CreationDate></Bucket>"
                for name, b in sorted(app.state.buckets.items())
            )
            return _xml(
                f"<ListAllMyBucketsResult {ns}><Owner><ID>owner</ID></Owner>"
                f"<Buckets>{entries}</Buckets></ListAllMyBucketsResult>"
            )

        bucket = app.state.buckets.get(bucket_name)

        if not key:
            if method == "PUT":
                if bucket is not None:
                    return _error(
                        "BucketAlreadyOwnedByYou",
                        "Your previous request to create the named bucket succeeded.",
                        409,
                    )
                location = None
                if body:
                    start = body.find(b"<LocationConstraint>")
                    end = body.find(b"</LocationConstraint>")
                    location = body[start + len("<LocationConstraint>") : end].decode()
                app.state.buckets[bucket_name] = {
                    "location": location,
                    "objects": {},
                    "created": datetime.now(timezone.utc),
                }
                return Response(status_code=200)
            if bucket is None:
                return _error("NoSuchBucket", "The specified bucket does not exist.", 404)
            if method == "DELETE":
                if bucket["objects"]:
                    return _error(
                        "BucketNotEmpty", "The bucket you tried to delete is not empty.", 409
                    )
                del app.state.buckets[bucket_name]
                return Response(status_code=204)
            params = dict(parse_qsl(request.url.query, keep_blank_values=True))
            if "location" in params:
                location = bucket["location"]
                if location:
                    return _xml(f"<LocationConstraint {ns}>{location}</LocationConstraint>")
                return _xml(f"<LocationConstraint {ns}/>")
            return list_bucket(bucket_name, bucket, params)

        if bucket is None:
            return _error("NoSuchBucket", "The specified bucket does not exist.", 404)

        if method == "PUT":
            copy_source = request.headers.get("x-amz-copy-source")
            if copy_source is not None:
                return copy_object(request, bucket, key, unquote(copy_source))
            md5 = request.headers.get("content-md5")
            digest = hashlib.md5(body)
            if md5 is not None and md5 != _b64(digest.digest()):
                return _error("BadDigest", "The Content-MD5 you specified did not match.", 400)
            bucket["objects"][key] = {
                "data": body,
                "etag": digest.hexdigest(),
                "modified": datetime.now(timezone.utc).replace(microsecond=0),
                "content_type": request.headers.get("content-type", "binary/octet-stream"),
                "content_disposition": request.headers.get("content-disposition"),
                "content_encoding": request.headers.get("content-encoding"),
                "acl": request.headers.get("x-amz-acl", "private"),
            }
            return Response(status_code=200, headers={"ETag": f'"{digest.hexdigest()}"'})

        obj = bucket["objects"].get(key)
        if obj is None:
            return _error("NoSuchKey", "The specified key does not exist.", 404)
        if method == "DELETE":
            del bucket["objects"][key]
            return Response(status_code=204)
        return get_object(request, obj)

    def get_object(request: Request, obj: dict[str, Any]) -> Response:
        headers = {
            "ETag": f'"{obj["etag"]}"',
            "Last-Modified": _http_date(obj["modified"]),
        }
        if obj["content_disposition"]:
            headers["Content-Disposition"] = obj["content_disposition"]
        if obj["content_encoding"]:
            headers["Content-Encoding"] = obj["content_encoding"]
        data = obj["data"]
        range_header = request.headers.get("range")
        if range_header and range_header.startswith("bytes=") and data:
            start_str, _, end_str = range_header[len("bytes="):].partition("-")
            start = int(start_str)
            end = min(int(end_str), len(data) - 1)
            headers["Content-Range"] = f"bytes {start}-{end}/{len(data)}"
            return Response(
                content=data[start : end + 1],
                status_code=206,
                headers=headers,
                media_type=obj["content_type"],
            )
        return Response(content=data, status_code=200, headers=headers, media_type=obj["content_type"])

    def copy_object(
        request: Request, bucket: dict[str, Any], key: str, source: str
    ) -> Response:
        src_bucket_name, _, src_key = source.lstrip("/").partition("/")
        src_bucket = app.state.buckets.get(src_bucket_name)
        if src_bucket is None:
            return _error("NoSuchBucket", "The specified bucket does not exist.", 404)
        src = src_bucket["objects"].get(src_key)
        if src is None:
            return _error("NoSuchKey", "The specified key does not exist.", 404)
        if_match = request.headers.get("x-amz-copy-source-if-match")
        if if_match is not None and if_match.strip('"') != src["etag"]:
            return _error("PreconditionFailed", "At least one of the pre-conditions failed.", 412)
        copied = dict(src)
        copied["modified"] = datetime.now(timezone.utc).replace(microsecond=0)
        copied["content_type"] = request.headers.get("content-type", src["content_type"])
        copied["acl"] = request.headers.get("x-amz-acl", "private")
        bucket["objects"][key] = copied
        return _xml(
            f"<CopyObjectResult {ns}><LastModified>{_iso(copied['modified'])}</LastModified>"
            f"<ETag>&quot;{copied['etag']}&quot;</ETag></CopyObjectResult>"
        )

    def list_bucket(name: str, bucket: dict[str, Any], params: dict[str, str]) -> Response:
        prefix = params.get("prefix", "")
        marker = params.get("marker", "")
        max_keys = int(params.get("max-keys", "1000"))
        keys = sorted(k for k in bucket["objects"] if k.startswith(prefix) and k > marker)
        page = keys[:max_keys]
        truncated = len(keys) > max_keys
        contents = "".join(
            f"<Contents><Key>{escape(k)}</Key>"
            f"<LastModified>{_iso(bucket['objects'][k]['modified'])}</LastModified>"
            f"<ETag>&quot;{bucket['objects'][k]['etag']}&quot;</ETag>"
            f"<Size>{len(bucket['objects'][k]['data'])}</Size></Contents>"
            for k in page
        )
        return _xml(
            f"<ListBucketResult {ns}><Name>{escape(name)}</Name>"
            f"<Prefix>{escape(prefix)}</Prefix><Marker>{escape(marker)}</Marker>"
            f"<MaxKeys>{max_keys}</MaxKeys>"
            f"<IsTruncated>{str(truncated).lower()}</IsTruncated>{contents}</ListBucketResult>"
        )

    return app


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@pytest.fixture
def fake_s3() -> FastAPI:
    """A fresh in-memory S3 that accepts the test credentials."""
    return create_fake_s3({ACCESS_KEY_ID: SECRET_ACCESS_KEY})


@pytest.fixture
def fake_service(fake_s3):
    """A service connected to the in-memory S3 through Starlette's TestClient."""
    client = TestClient(fake_s3)
    yield Service(ACCESS_KEY_ID, SECRET_ACCESS_KEY, http_client=client)
    client.close()
