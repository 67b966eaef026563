"""Configuration — All tunables in one place.

Configuration is loaded from these sources (in priority order):
    1. Command-line flags (applied by the CLI on top of this module)
    2. Environment variables
    3. ``.env`` file in current working directory
    4. ``.env`` file in ``~/.s3loadgen/``
    5. Built-in defaults
"""

from __future__ import annotations

import os
from pathlib import Path


# ---------------------------------------------------------------------------
# Stdlib .env file loader (no external dependency)
# ---------------------------------------------------------------------------

def _load_dotenv() -> None:
    """Load KEY=VALUE pairs from a .env file into ``os.environ``.

    Searches the current working directory first, then
    ``~/.s3loadgen/``. Only sets variables that are not already
    present in the environment (env vars take priority).
    """
    candidates = [
        Path.cwd() / ".env",
        Path.home() / ".s3loadgen" / ".env",
    ]
    for env_path in candidates:
        if env_path.is_file():
            _parse_env_file(env_path)
            return


def _parse_env_file(path: Path) -> None:
    """Parse a .env file and inject into ``os.environ``."""
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    continue
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if (
                    len(value) >= 2
                    and value[0] == value[-1]
                    and value[0] in ('"', "'")
                ):
                    value = value[1:-1]
                if key not in os.environ:
                    os.environ[key] = value
    except OSError:
        pass


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    return float(raw) if raw else default


_load_dotenv()


# ---------------------------------------------------------------------------
# Logging Configuration
# ---------------------------------------------------------------------------
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_STATS_INTERVAL = _env_int("S3LOADGEN_STATS_INTERVAL", 10)

# ---------------------------------------------------------------------------
# S3 Connection
# ---------------------------------------------------------------------------
_s3_endpoint_str = os.environ.get("S3_ENDPOINTS") or os.environ.get(
    "S3_ENDPOINT", ""
)
S3_ENDPOINTS: list[str] = [
    ep.strip() for ep in _s3_endpoint_str.split(",") if ep.strip()
]

S3_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID", "changeme")
S3_SECRET_ACCESS_KEY = os.environ.get(
    "AWS_SECRET_ACCESS_KEY", "changeme",
)
S3_BUCKET = os.environ.get("S3_BUCKET", "")
S3_REGION = os.environ.get("AWS_REGION", "us-east-1")

# ``path`` matches force-path-style addressing used by most
# S3-compatible appliances; set ``virtual`` for AWS-style hosts.
S3_ADDRESSING_STYLE = os.environ.get("S3_ADDRESSING_STYLE", "path")
S3_VERIFY_SSL = os.environ.get("S3_VERIFY_SSL", "false").lower() in (
    "true",
    "1",
    "yes",
)
# Attempts made by the SDK itself; the harness never retries.
S3_MAX_ATTEMPTS = _env_int("S3_MAX_ATTEMPTS", 1)
S3_CONNECT_TIMEOUT = _env_int("S3_CONNECT_TIMEOUT", 10)
S3_READ_TIMEOUT = _env_int("S3_READ_TIMEOUT", 300)

# ---------------------------------------------------------------------------
# S3 Client Backend
# ---------------------------------------------------------------------------
S3_BACKEND = os.environ.get("S3LOADGEN_BACKEND", "boto3")

# ---------------------------------------------------------------------------
# Benchmark Defaults
# ---------------------------------------------------------------------------
DEFAULT_DURATION = _env_float("S3LOADGEN_DURATION", 60)
DEFAULT_CONCURRENCY = _env_int("S3LOADGEN_CONCURRENCY", 10)
DEFAULT_OBJECT_SIZE = 1024 * 1024
DEFAULT_PART_SIZE = 8 * 1024 * 1024
DEFAULT_PREFIX = os.environ.get("S3LOADGEN_PREFIX", "test-object/")
DEFAULT_LIST_PREFIX = ""

# Pause between launches so the issuing loop does not monopolise the
# scheduler. LIST operations are heavier, so they are paced slower.
DEFAULT_PACING = 0.01
DEFAULT_LIST_PACING = 0.1

LIST_PAGE_SIZE = 1000
DELETE_BATCH_SIZE = 1000
CLEANUP_MAX_PARALLEL = 30
