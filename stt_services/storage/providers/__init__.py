"""
Object store implementations
"""

from .gcs import GCSObjectStore
from .local import LocalObjectStore
from .memory import InMemoryObjectStore
from .s3 import S3ObjectStore

__all__ = [
    "GCSObjectStore",
    "InMemoryObjectStore",
    "LocalObjectStore",
    "S3ObjectStore",
]
