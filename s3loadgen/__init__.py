from __future__ import annotations

# s3loadgen - Object storage load generator
"""
Usage:
    python -m s3loadgen put --endpoint http://s3:9000 --bucket bench --duration 60
    python -m s3loadgen get --range-bytes 100
    python -m s3loadgen list --prefix test-object/
"""

__version__ = "1.0.0"
