"""Configuration and accounting models."""

from toolloop.models.config import SessionConfig
from toolloop.models.usage import UsageAccumulator

__all__ = ["SessionConfig", "UsageAccumulator"]
