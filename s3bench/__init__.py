from __future__ import annotations

# s3bench - Object Storage PUT/GET Benchmark
"""
Usage:
    python -m s3bench run --endpoint http://127.0.0.1:9000 --bucket bench
    python -m s3bench create --directory /tmp/workload
    python -m s3bench cleanup --samples 1000
"""

__version__ = "1.0.0"
