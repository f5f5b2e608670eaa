"""Configuration models for the voice capture gateway."""

from .settings import (
    ConfigurationError,
    MailConfig,
    Settings,
    TranscriptionConfig,
    load_settings,
)

__all__ = [
    "ConfigurationError",
    "MailConfig",
    "Settings",
    "TranscriptionConfig",
    "load_settings",
]
