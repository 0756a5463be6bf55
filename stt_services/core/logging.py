"""
Logging configuration for services
"""

import datetime
import json
import logging
import sys
from typing import Optional

NOISY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "httpx", "httpcore", "google")


class JsonFormatter(logging.Formatter):
    """Structured JSON log lines for production"""

    def __init__(self, service_name: Optional[str] = None):
        super().__init__()
        self.service_name = service_name

    def format(self, record):
        log_entry = {
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if self.service_name:
            log_entry["service"] = self.service_name

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, default=str)


class ExtraFieldsAdapter(logging.LoggerAdapter):
    """Attaches fixed structured fields to every record"""

    def process(self, msg, kwargs):
        if "extra" not in kwargs:
            kwargs["extra"] = {}
        kwargs["extra"]["extra_fields"] = self.extra
        return msg, kwargs


def configure_logging(
    level: str = "INFO", format_type: str = "json", service_name: Optional[str] = None
) -> None:
    """
    Configure logging for services

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format_type: Format type ("json" or "text")
        service_name: Service name to include in logs
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Clear any existing handlers
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)

    if format_type == "json":
        formatter = JsonFormatter(service_name)
    else:
        format_string = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        if service_name:
            format_string = f"%(asctime)s [%(levelname)s] {service_name}.%(name)s: %(message)s"

        formatter = logging.Formatter(format_string)

    handler.setFormatter(formatter)
    handler.setLevel(log_level)

    root.setLevel(log_level)
    root.addHandler(handler)

    # Reduce noise from SDK and transport libraries
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, extra_fields: Optional[dict] = None) -> logging.Logger:
    """
    Get a logger with optional extra fields for structured logging

    Args:
        name: Logger name
        extra_fields: Extra fields to include in all log messages

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    if extra_fields:
        return ExtraFieldsAdapter(logger, extra_fields)

    return logger
