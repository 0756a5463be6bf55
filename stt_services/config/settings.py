"""
Configuration settings for services
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from ..core.exceptions import ConfigurationError
from ..core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ProviderConfig:
    """Configuration for a service provider"""

    provider_type: str
    enabled: bool = True
    config: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value with default"""
        value = self.config.get(key)
        return default if value is None else value


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    """
    Central configuration for the transcription saga
    """

    # Recognition settings
    provider: str = "aws"
    provider_configs: Dict[str, ProviderConfig] = field(default_factory=dict)

    # Staging settings
    storage_provider: str = "s3"
    storage_configs: Dict[str, ProviderConfig] = field(default_factory=dict)

    # Polling settings
    poll_interval_seconds: float = 10.0
    vocabulary_timeout_seconds: float = 300.0
    job_timeout_seconds: float = 6 * 3600.0
    max_concurrent: int = 5

    # General settings
    log_level: str = "INFO"
    log_format: str = "json"
    service_name: str = "stt-services"

    def __post_init__(self):
        """Initialize default configurations"""
        if not self.provider_configs:
            self.provider_configs = self._get_default_provider_configs()

        if not self.storage_configs:
            self.storage_configs = self._get_default_storage_configs()

    def _get_default_provider_configs(self) -> Dict[str, ProviderConfig]:
        """Get default recognition provider configurations"""
        return {
            "aws": ProviderConfig(
                provider_type="aws",
                enabled=True,
                config={
                    "region": os.environ.get("AWS_REGION", "us-east-1"),
                    "download_timeout_seconds": 30.0,
                },
            ),
            "google": ProviderConfig(
                provider_type="google",
                enabled=True,
                config={
                    "project_id": os.environ.get("PROJECT_ID"),
                    "location": os.environ.get("GOOGLE_SPEECH_LOCATION", "global"),
                    "model": os.environ.get("GOOGLE_SPEECH_MODEL", "chirp_3"),
                    "credentials_path": os.environ.get("GOOGLE_APPLICATION_CREDENTIALS"),
                    # Synchronous recognize is limited to short clips
                    "inline_max_bytes": 0,
                },
            ),
            "memory": ProviderConfig(
                provider_type="memory",
                enabled=True,
                config={
                    "inline_max_bytes": 0,
                },
            ),
        }

    def _get_default_storage_configs(self) -> Dict[str, ProviderConfig]:
        """Get default staging store configurations"""
        return {
            "s3": ProviderConfig(
                provider_type="s3",
                enabled=bool(os.environ.get("STT_BUCKET")),
                config={
                    "bucket": os.environ.get("STT_BUCKET"),
                    "region": os.environ.get("AWS_REGION", "us-east-1"),
                },
            ),
            "gcs": ProviderConfig(
                provider_type="gcs",
                enabled=bool(os.environ.get("GCS_BUCKET")),
                config={
                    "project_id": os.environ.get("PROJECT_ID"),
                    "bucket": os.environ.get("GCS_BUCKET"),
                    "credentials_path": os.environ.get("GOOGLE_APPLICATION_CREDENTIALS"),
                },
            ),
            "local": ProviderConfig(
                provider_type="local",
                enabled=True,
                config={
                    "base_path": os.environ.get("LOCAL_STORAGE_PATH", "./local_storage"),
                    "bucket": "audio",
                },
            ),
            "memory": ProviderConfig(
                provider_type="memory",
                enabled=True,
                config={
                    "bucket": "stt-audio",
                },
            ),
        }

    def get_provider_config(self, provider: Optional[str] = None) -> ProviderConfig:
        """
        Get recognition provider configuration

        Args:
            provider: Provider name, uses default if None

        Returns:
            ProviderConfig for the recognition provider
        """
        provider_name = provider or self.provider
        if provider_name not in self.provider_configs:
            raise ConfigurationError(f"Unknown recognition provider: {provider_name}")
        return self.provider_configs[provider_name]

    def get_storage_config(self, provider: Optional[str] = None) -> ProviderConfig:
        """
        Get staging store configuration

        Args:
            provider: Provider name, uses default if None

        Returns:
            ProviderConfig for the staging store
        """
        provider_name = provider or self.storage_provider
        if provider_name not in self.storage_configs:
            raise ConfigurationError(f"Unknown storage provider: {provider_name}")
        return self.storage_configs[provider_name]

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Create settings from environment variables

        Returns:
            Settings instance configured from environment
        """
        return cls(
            # Provider selections
            provider=os.environ.get("STT_PROVIDER", "aws"),
            storage_provider=os.environ.get("STORAGE_PROVIDER", "s3"),
            # Polling
            poll_interval_seconds=_env_float("STT_POLL_INTERVAL", 10.0),
            vocabulary_timeout_seconds=_env_float("STT_VOCABULARY_TIMEOUT", 300.0),
            job_timeout_seconds=_env_float("STT_JOB_TIMEOUT", 6 * 3600.0),
            max_concurrent=_env_int("STT_MAX_CONCURRENT", 5),
            # General settings
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            log_format=os.environ.get("LOG_FORMAT", "json"),
            service_name=os.environ.get("SERVICE_NAME", "stt-services"),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "Settings":
        """
        Load settings from JSON configuration file

        Args:
            config_path: Path to JSON configuration file

        Returns:
            Settings instance
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file, "r") as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file: {e}")

        # Convert provider configs from dict to ProviderConfig objects
        for section in ("provider_configs", "storage_configs"):
            if section in config_data:
                config_data[section] = {
                    name: ProviderConfig(
                        provider_type=config.get("provider_type", name),
                        enabled=config.get("enabled", True),
                        config=config.get("config", {}),
                    )
                    for name, config in config_data[section].items()
                }

        try:
            return cls(**config_data)
        except TypeError as e:
            raise ConfigurationError(f"Error loading configuration: {e}")

    def to_file(self, config_path: str):
        """
        Save settings to JSON configuration file

        Args:
            config_path: Path to save configuration file
        """
        config_data = {
            # Provider selections
            "provider": self.provider,
            "storage_provider": self.storage_provider,
            # Polling
            "poll_interval_seconds": self.poll_interval_seconds,
            "vocabulary_timeout_seconds": self.vocabulary_timeout_seconds,
            "job_timeout_seconds": self.job_timeout_seconds,
            "max_concurrent": self.max_concurrent,
            # General settings
            "log_level": self.log_level,
            "log_format": self.log_format,
            "service_name": self.service_name,
            # Provider configurations
            "provider_configs": {
                name: {
                    "provider_type": config.provider_type,
                    "enabled": config.enabled,
                    "config": config.config,
                }
                for name, config in self.provider_configs.items()
            },
            "storage_configs": {
                name: {
                    "provider_type": config.provider_type,
                    "enabled": config.enabled,
                    "config": config.config,
                }
                for name, config in self.storage_configs.items()
            },
        }

        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, "w") as f:
            json.dump(config_data, f, indent=2)

        logger.info(f"Configuration saved to: {config_path}")

    def get_enabled_providers(self, provider_type: str) -> Dict[str, ProviderConfig]:
        """
        Get all enabled providers of a given type

        Args:
            provider_type: "recognition" or "storage"

        Returns:
            Dictionary of enabled provider configurations
        """
        configs_map = {
            "recognition": self.provider_configs,
            "storage": self.storage_configs,
        }

        if provider_type not in configs_map:
            return {}

        return {
            name: config for name, config in configs_map[provider_type].items() if config.enabled
        }
