"""CLI commands for s3loadgen."""

from __future__ import annotations

from s3loadgen.cli.cleanup import cmd_cleanup
from s3loadgen.cli.run import cmd_run

__all__ = [
    "cmd_cleanup",
    "cmd_run",
]
