"""
Service factory for creating configured service instances
"""

from typing import Optional

from ..core.exceptions import ConfigurationError
from ..core.interfaces import Clock, EffectRunner, ObjectStore
from ..core.logging import get_logger
from ..orchestration.saga import ProviderCapabilities, SagaCoordinator
from ..orchestration.service import TranscriptionService
from ..storage.providers.gcs import GCSObjectStore
from ..storage.providers.local import LocalObjectStore
from ..storage.providers.memory import InMemoryObjectStore
from ..storage.providers.s3 import S3ObjectStore
from ..transcription.providers.aws import AmazonTranscribeService
from ..transcription.providers.google import GoogleSpeechService
from ..transcription.providers.http import HttpTranscriptStore
from ..transcription.providers.memory import InMemoryRecognizer
from .settings import Settings

logger = get_logger(__name__)


class ServiceFactory:
    """
    Factory for creating configured service instances
    """

    # Registry of available providers
    STORAGE_PROVIDERS = {
        "s3": S3ObjectStore,
        "gcs": GCSObjectStore,
        "local": LocalObjectStore,
        "memory": InMemoryObjectStore,
    }

    RECOGNITION_PROVIDERS = {
        "aws": AmazonTranscribeService,
        "google": GoogleSpeechService,
        "memory": InMemoryRecognizer,
    }

    # Object stores a recognition provider can read staged audio from
    COMPATIBLE_STORAGE = {
        "aws": ("s3",),
        "google": ("gcs",),
        "memory": ("s3", "gcs", "local", "memory"),
    }

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize service factory

        Args:
            settings: Configuration settings, uses environment if None
        """
        self.settings = settings or Settings.from_env()
        logger.info(
            f"ServiceFactory initialized for {self.settings.provider}/{self.settings.storage_provider}"
        )

    def create_object_store(self, provider_name: Optional[str] = None) -> ObjectStore:
        """
        Create an object store instance

        Args:
            provider_name: Provider name, uses default from settings if None

        Returns:
            Configured ObjectStore instance
        """
        provider_name = provider_name or self.settings.storage_provider

        if provider_name not in self.STORAGE_PROVIDERS:
            available = ", ".join(self.STORAGE_PROVIDERS.keys())
            raise ConfigurationError(
                f"Unknown storage provider: {provider_name}. Available: {available}"
            )

        config = self.settings.get_storage_config(provider_name)
        if not config.enabled:
            raise ConfigurationError(f"Storage provider '{provider_name}' is disabled")

        provider_class = self.STORAGE_PROVIDERS[provider_name]

        if provider_name == "s3":
            return provider_class(region_name=config.get("region", "us-east-1"))
        elif provider_name == "gcs":
            return provider_class(
                project_id=config.get("project_id"),
                credentials_path=config.get("credentials_path"),
            )
        elif provider_name == "local":
            return provider_class(base_path=config.get("base_path"))
        else:
            return provider_class()

    def create_capabilities(self, provider_name: Optional[str] = None) -> ProviderCapabilities:
        """
        Create the services of a recognition provider

        Args:
            provider_name: Provider name, uses default from settings if None

        Returns:
            ProviderCapabilities wired to the configured object store
        """
        provider_name = provider_name or self.settings.provider

        if provider_name not in self.RECOGNITION_PROVIDERS:
            available = ", ".join(self.RECOGNITION_PROVIDERS.keys())
            raise ConfigurationError(
                f"Unknown recognition provider: {provider_name}. Available: {available}"
            )

        config = self.settings.get_provider_config(provider_name)
        if not config.enabled:
            raise ConfigurationError(f"Recognition provider '{provider_name}' is disabled")

        storage_name = self.settings.storage_provider
        if storage_name not in self.COMPATIBLE_STORAGE.get(provider_name, ()):
            raise ConfigurationError(
                f"Recognition provider '{provider_name}' cannot read from '{storage_name}' storage"
            )

        storage_config = self.settings.get_storage_config(storage_name)
        bucket = storage_config.get("bucket")
        if not bucket:
            raise ConfigurationError(f"No bucket configured for storage provider '{storage_name}'")

        objects = self.create_object_store(storage_name)
        provider_class = self.RECOGNITION_PROVIDERS[provider_name]

        if provider_name == "aws":
            service = provider_class(region_name=config.get("region", "us-east-1"))
            return ProviderCapabilities(
                jobs=service,
                transcripts=HttpTranscriptStore(
                    timeout_seconds=float(config.get("download_timeout_seconds", 30.0))
                ),
                objects=objects,
                vocabularies=service,
                bucket=bucket,
            )

        if provider_name == "google":
            service = provider_class(
                project_id=config.get("project_id") or storage_config.get("project_id"),
                location=config.get("location", "global"),
                default_model=config.get("model", "chirp_3"),
                credentials_path=config.get("credentials_path"),
            )
            # Transcripts come back inline and phrases travel with each request
            return ProviderCapabilities(
                jobs=service,
                objects=objects,
                bucket=bucket,
                inline_max_bytes=int(config.get("inline_max_bytes", 0)),
                inline_vocabulary=True,
            )

        recognizer = provider_class()
        return ProviderCapabilities(
            jobs=recognizer,
            transcripts=recognizer,
            objects=objects,
            vocabularies=recognizer,
            bucket=bucket,
            inline_max_bytes=int(config.get("inline_max_bytes", 0)),
        )

    def create_saga_coordinator(
        self,
        clock: Optional[Clock] = None,
        effects: Optional[EffectRunner] = None,
    ) -> SagaCoordinator:
        """
        Create a saga coordinator for the configured provider

        Args:
            clock: Clock for the polling loops
            effects: Effect runner of the durable-execution host

        Returns:
            Configured SagaCoordinator instance
        """
        return SagaCoordinator(
            self.create_capabilities(),
            clock=clock,
            effects=effects,
            poll_interval_seconds=self.settings.poll_interval_seconds,
            vocabulary_timeout_seconds=self.settings.vocabulary_timeout_seconds,
            job_timeout_seconds=self.settings.job_timeout_seconds,
        )

    def create_transcription_service(
        self,
        clock: Optional[Clock] = None,
        effects: Optional[EffectRunner] = None,
    ) -> TranscriptionService:
        """
        Create a transcription service with configured providers

        Returns:
            Configured TranscriptionService instance
        """
        coordinator = self.create_saga_coordinator(clock=clock, effects=effects)
        return TranscriptionService(coordinator, max_concurrent=self.settings.max_concurrent)

    def get_available_providers(self) -> dict:
        """
        Get information about all available providers

        Returns:
            Dictionary with provider information
        """
        return {
            "recognition": {
                "available": list(self.RECOGNITION_PROVIDERS.keys()),
                "default": self.settings.provider,
                "enabled": list(self.settings.get_enabled_providers("recognition").keys()),
            },
            "storage": {
                "available": list(self.STORAGE_PROVIDERS.keys()),
                "default": self.settings.storage_provider,
                "enabled": list(self.settings.get_enabled_providers("storage").keys()),
            },
        }

    def validate_configuration(self) -> dict:
        """
        Validate current configuration and return status

        Returns:
            Dictionary with validation results
        """
        results = {"valid": True, "errors": [], "warnings": []}

        try:
            self.create_capabilities()
        except ConfigurationError as e:
            results["valid"] = False
            results["errors"].append(str(e))

        if self.settings.poll_interval_seconds <= 0:
            results["valid"] = False
            results["errors"].append("poll_interval_seconds must be positive")

        if self.settings.max_concurrent < 1:
            results["valid"] = False
            results["errors"].append("max_concurrent must be at least 1")

        if self.settings.job_timeout_seconds < self.settings.poll_interval_seconds:
            results["warnings"].append("job_timeout_seconds is shorter than one poll interval")

        return results
