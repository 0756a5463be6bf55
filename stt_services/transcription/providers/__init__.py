"""
Recognition provider implementations
"""

from .aws import AmazonTranscribeService
from .google import GoogleSpeechService
from .http import HttpTranscriptStore
from .memory import InMemoryRecognizer

__all__ = [
    "AmazonTranscribeService",
    "GoogleSpeechService",
    "HttpTranscriptStore",
    "InMemoryRecognizer",
]
