"""
Speech-to-text services: one saga for staging, vocabulary provisioning,
job execution and cleanup across recognition providers
"""

from .config import ProviderConfig, ServiceFactory, Settings
from .core.models import (
    AudioConfig,
    TranscriptionConfig,
    TranscriptionRequest,
    TranscriptionResponse,
)
from .orchestration import ProviderCapabilities, SagaCoordinator, TranscriptionService

__version__ = "0.1.0"

__all__ = [
    "ServiceFactory",
    "Settings",
    "ProviderConfig",
    "ProviderCapabilities",
    "SagaCoordinator",
    "TranscriptionService",
    "AudioConfig",
    "TranscriptionConfig",
    "TranscriptionRequest",
    "TranscriptionResponse",
]
