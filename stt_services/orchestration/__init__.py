"""
Transcription saga orchestration
"""

from .idempotency import IdempotencyResolver, Resolution, ResolutionAction
from .saga import ProviderCapabilities, SagaCoordinator
from .service import TranscriptionService

__all__ = [
    "IdempotencyResolver",
    "ProviderCapabilities",
    "Resolution",
    "ResolutionAction",
    "SagaCoordinator",
    "TranscriptionService",
]
