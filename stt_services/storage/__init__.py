"""
Object staging with pluggable stores
"""

from .providers.gcs import GCSObjectStore
from .providers.local import LocalObjectStore
from .providers.memory import InMemoryObjectStore
from .providers.s3 import S3ObjectStore
from .service import ObjectStage

__all__ = [
    "ObjectStage",
    "GCSObjectStore",
    "InMemoryObjectStore",
    "LocalObjectStore",
    "S3ObjectStore",
]
