#!/usr/bin/env python3
"""Entry point for s3loadgen package.

Usage::

    s3loadgen put --endpoint http://s3:9000 --bucket bench --duration 60
    s3loadgen get --bucket bench --range-bytes 100
    s3loadgen list --bucket bench --prefix test-object/
    s3loadgen cleanup --bucket bench --prefix test-object/
"""

from __future__ import annotations

import argparse
import sys

from s3loadgen import __version__


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="s3loadgen",
        description="S3 Load Testing Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  put       Upload fresh objects for the duration (multipart above --part-size)
  get       Download objects found under --prefix, round-robin
  list      Repeatedly paginate through every object under --prefix
  cleanup   Delete objects and abort open multipart uploads under --prefix

Examples:
  s3loadgen put --endpoint http://s3:9000 --bucket bench --duration 60 \\
      --concurrent 200 --object-size 1GiB --part-size 8MiB --prefix loadtest/
  s3loadgen get --bucket bench --prefix loadtest/ --range-bytes 100
  s3loadgen list --bucket bench --prefix loadtest/ --concurrent 10
  s3loadgen cleanup --bucket bench --prefix loadtest/
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["put", "get", "list", "cleanup"],
        help="Command to execute",
    )

    # Connection
    parser.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="S3 endpoint URL(s), comma-separated (default: S3_ENDPOINTS)",
    )
    parser.add_argument(
        "--bucket",
        type=str,
        default=None,
        help="Bucket name (default: S3_BUCKET)",
    )
    parser.add_argument(
        "--access-key",
        type=str,
        default=None,
        help="Access key (default: AWS_ACCESS_KEY_ID)",
    )
    parser.add_argument(
        "--secret-key",
        type=str,
        default=None,
        help="Secret key (default: AWS_SECRET_ACCESS_KEY)",
    )
    parser.add_argument(
        "--region",
        type=str,
        default=None,
        help="Signing region (default: AWS_REGION or us-east-1)",
    )
    parser.add_argument(
        "--backend",
        type=str,
        default=None,
        choices=["boto3", "memory"],
        help="Client backend; 'memory' is an in-process dry run",
    )
    parser.add_argument(
        "--simulated-latency",
        type=float,
        default=0,
        help=argparse.SUPPRESS,
    )

    # Run shape
    parser.add_argument(
        "--duration",
        type=str,
        default=None,
        help="Run duration (e.g. 60, 30s, 5m, 1h; default: 60s)",
    )
    parser.add_argument(
        "--concurrent",
        type=int,
        default=None,
        help="Maximum operations in flight (default: 10)",
    )
    parser.add_argument(
        "--prefix",
        type=str,
        default=None,
        help="Key prefix (default: test-object/, '' for list)",
    )
    parser.add_argument(
        "--pacing",
        type=float,
        default=None,
        help="Seconds between launches (default: 0.01, 0.1 for list)",
    )

    # PUT
    parser.add_argument(
        "--object-size",
        type=str,
        default=None,
        help="PUT object size, e.g. 1048576 or 1MiB (default: 1MiB)",
    )
    parser.add_argument(
        "--part-size",
        type=str,
        default=None,
        help="Multipart part size (default: 8MiB)",
    )
    parser.add_argument(
        "--disable-multipart",
        action="store_true",
        help="Always use single-request PUT",
    )
    parser.add_argument(
        "--part-concurrency",
        type=int,
        default=None,
        help="Cap parallel part uploads per object (default: all parts)",
    )

    # GET
    parser.add_argument(
        "--range-bytes",
        type=str,
        default=None,
        help="GET only the first N bytes of each object",
    )

    # Output
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level",
    )
    parser.add_argument(
        "--stats-interval",
        type=int,
        default=None,
        help="Progress logging interval in seconds (0 disables)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the final report as JSON",
    )
    parser.add_argument(
        "--skip-preflight",
        action="store_true",
        help="Don't check bucket access before running",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and dispatch to the appropriate command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    from s3loadgen.cli import cmd_cleanup, cmd_run

    commands = {
        "put": cmd_run,
        "get": cmd_run,
        "list": cmd_run,
        "cleanup": cmd_cleanup,
    }

    try:
        return commands[args.command](args) or 0
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
