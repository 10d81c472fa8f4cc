"""
Structured Logging for the Blob Router.

Every component logger writes one JSON object per record to stdout and
propagates to the Azure Functions root logger, which forwards to
Application Insights. Component type, component name and any job or
container context travel as customDimensions so a single envelope can be
followed across the dispatcher, cleaners and notification jobs.

Exports:
    ComponentType: Application layers
    JSONFormatter: One-line JSON records
    LoggerFactory: create_logger(), create_with_context()

Dependencies:
    Standard library only (logging, json)
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ComponentType(Enum):
    """Application layers; the value prefixes the logger name."""
    TRIGGER = "trigger"        # Timer / HTTP entry points
    SERVICE = "service"        # Processors, cleaners, publisher
    REPOSITORY = "repository"  # Blob storage, PostgreSQL, Service Bus
    FACTORY = "factory"        # Wiring of repositories and services
    VALIDATOR = "validator"    # Archive and signature verification


def _level_from_environment() -> int:
    if os.getenv("DEBUG_LOGGING", "").lower() == "true":
        return logging.DEBUG
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), None)
    return level if isinstance(level, int) else logging.INFO


# ============================================================================
# FORMATTER
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    Application Insights friendly JSON.

    Records carrying a `custom_dimensions` attribute (set by the component
    filter or passed via extra=) emit them under customDimensions.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        dimensions = getattr(record, "custom_dimensions", None)
        if dimensions:
            entry["customDimensions"] = dimensions
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str)


class _ComponentDimensions(logging.Filter):
    """Merge the component's fixed dimensions into each record."""

    def __init__(self, dimensions: Dict[str, Any]):
        super().__init__()
        self.dimensions = dimensions

    def filter(self, record: logging.LogRecord) -> bool:
        # Per-call extra={'custom_dimensions': {...}} wins over the fixed ones
        record.custom_dimensions = {**self.dimensions, **getattr(record, "custom_dimensions", {})}
        return True


# ============================================================================
# FACTORY
# ============================================================================

class LoggerFactory:
    """
    Component loggers.

    Example:
        logger = LoggerFactory.create_logger(ComponentType.SERVICE, "BlobProcessor")
        logger.info("📦 Processing bulkscan/a.zip")
    """

    @classmethod
    def create_logger(cls, component_type: ComponentType, name: str,
                      **dimensions: Any) -> logging.Logger:
        """
        Args:
            component_type: Layer the component belongs to
            name: Component name ("BlobProcessor", "ClusterLock", ...)
            **dimensions: Extra customDimensions on every record (None values dropped)

        Returns:
            Logger named "<layer>.<name>". Repeated calls return the same
            logger without stacking handlers.
        """
        logger = logging.getLogger(f"{component_type.value}.{name}")
        level = _level_from_environment()
        logger.setLevel(level)

        if not any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers):
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(JSONFormatter())
            logger.addHandler(handler)

        fixed = {"component_type": component_type.value, "component_name": name}
        fixed.update({k: v for k, v in dimensions.items() if v is not None})
        for existing in [f for f in logger.filters if isinstance(f, _ComponentDimensions)]:
            logger.removeFilter(existing)
        logger.addFilter(_ComponentDimensions(fixed))

        logger.propagate = True
        return logger

    @classmethod
    def create_with_context(cls, component_type: ComponentType, name: str,
                            job_name: Optional[str] = None,
                            container: Optional[str] = None) -> logging.Logger:
        """Logger whose records carry the scheduled job and/or source container."""
        return cls.create_logger(component_type, name, job_name=job_name, container=container)
