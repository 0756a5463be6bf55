"""
Vocabulary provisioning, job execution and result retrieval
"""

from .jobs import JobRunner
from .providers.aws import AmazonTranscribeService
from .providers.google import GoogleSpeechService
from .providers.http import HttpTranscriptStore
from .providers.memory import InMemoryRecognizer
from .results import ResultFetcher
from .vocabulary import VocabularyProvisioner

__all__ = [
    "JobRunner",
    "ResultFetcher",
    "VocabularyProvisioner",
    "AmazonTranscribeService",
    "GoogleSpeechService",
    "HttpTranscriptStore",
    "InMemoryRecognizer",
]
