"""CLI entry point for s3lite."""

import argparse
import logging
import os
import sys
import time
from pathlib import Path

from s3lite import metrics
from s3lite.config import ClientConfig, load_config
from s3lite.errors import S3Error
from s3lite.logging_config import configure_logging
from s3lite.service import Service

logger = logging.getLogger("s3lite")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="s3lite",
        description="s3lite - client for S3-compatible object storage",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("s3lite.yaml"),
        help="Path to YAML configuration file (default: s3lite.yaml)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config, default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("buckets", help="List buckets")

    mb = sub.add_parser("mb", help="Create a bucket")
    mb.add_argument("bucket")
    mb.add_argument("--location", default=None, help="Location constraint, e.g. EU")

    rb = sub.add_parser("rb", help="Delete a bucket")
    rb.add_argument("bucket")
    rb.add_argument("--force", action="store_true", help="Delete all objects first")

    ls = sub.add_parser("ls", help="List objects in a bucket")
    ls.add_argument("bucket")
    ls.add_argument("--prefix", default=None)

    get = sub.add_parser("get", help="Download an object")
    get.add_argument("bucket")
    get.add_argument("key")
    get.add_argument("-o", "--output", type=Path, default=None, help="Write to file instead of stdout")

    put = sub.add_parser("put", help="Upload a file")
    put.add_argument("bucket")
    put.add_argument("key")
    put.add_argument("file", type=Path)
    put.add_argument("--acl", default=None, help="Canned ACL (default: public-read)")
    put.add_argument("--content-type", default=None)

    cp = sub.add_parser("cp", help="Copy an object")
    cp.add_argument("bucket")
    cp.add_argument("key")
    cp.add_argument("dest_key")
    cp.add_argument("--dest-bucket", default=None)

    rm = sub.add_parser("rm", help="Delete an object")
    rm.add_argument("bucket")
    rm.add_argument("key")

    url = sub.add_parser("url", help="Print a temporary URL for an object")
    url.add_argument("bucket")
    url.add_argument("key")
    url.add_argument("--expires", type=int, default=3600, help="Lifetime in seconds")

    return parser.parse_args(argv)


def _load(path: Path) -> ClientConfig:
    config = load_config(path) if path.exists() else ClientConfig()
    access_key_id = os.environ.get("S3LITE_ACCESS_KEY_ID")
    secret_access_key = os.environ.get("S3LITE_SECRET_ACCESS_KEY")
    if access_key_id:
        config.auth.access_key_id = access_key_id
    if secret_access_key:
        config.auth.secret_access_key = secret_access_key
    return config


def run(args: argparse.Namespace, service: Service) -> None:
    """Execute one sub-command against ``service``."""
    command = args.command
    if command == "buckets":
        for bucket in service.buckets():
            print(bucket.name)
    elif command == "mb":
        service.build_bucket(args.bucket).save(location=args.location)
    elif command == "rb":
        service.build_bucket(args.bucket).destroy(force=args.force)
    elif command == "ls":
        for obj in service.build_bucket(args.bucket).objects(prefix=args.prefix):
            print(f"{obj.size:>12}  {obj.key}")
    elif command == "get":
        data = service.build_bucket(args.bucket).object(args.key).content()
        if args.output is not None:
            args.output.write_bytes(data)
        else:
            sys.stdout.buffer.write(data)
    elif command == "put":
        obj = service.build_bucket(args.bucket).object(args.key)
        obj.set_content(args.file.read_bytes())
        obj.acl = args.acl
        obj.content_type = args.content_type
        obj.save()
    elif command == "cp":
        source = service.build_bucket(args.bucket).object(args.key)
        dest_bucket = service.build_bucket(args.dest_bucket) if args.dest_bucket else None
        source.copy(args.dest_key, bucket=dest_bucket)
    elif command == "rm":
        service.build_bucket(args.bucket).object(args.key).destroy()
    elif command == "url":
        obj = service.build_bucket(args.bucket).object(args.key)
        print(obj.temporary_url(int(time.time()) + args.expires))


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the s3lite CLI.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].
    """
    args = parse_args(argv)

    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    try:
        config = _load(args.config)
    except Exception as exc:
        logger.error("Failed to load config: %s", exc)
        sys.exit(1)

    if args.log_level is not None:
        config.logging.level = args.log_level
    if args.log_format is not None:
        config.logging.format = args.log_format

    configure_logging(level=config.logging.level, fmt=config.logging.format)
    if config.metrics.enabled:
        metrics.init_metrics()

    with Service.from_config(config) as service:
        try:
            run(args, service)
        except S3Error as exc:
            logger.error("%s failed: %s", args.command, exc)
            sys.exit(1)


if __name__ == "__main__":
    main()
