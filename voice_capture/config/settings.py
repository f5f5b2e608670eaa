from typing import Literal, Optional

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# Spellings accepted for LOG_LEVEL beyond the canonical names.
_LOG_LEVEL_ALIASES = {"warn": "warning"}


def _require_secret(value: SecretStr) -> SecretStr:
    if not value.get_secret_value():
        raise ValueError("must not be empty")
    return value


class ConfigurationError(RuntimeError):
    """Raised when required settings are absent or malformed."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("Configuration validation failed: " + ", ".join(errors))


class TranscriptionConfig(BaseSettings):
    """Speech-to-text provider configuration"""

    api_key: SecretStr = Field(validation_alias="VOICE_API_KEY")
    base_url: str = Field(
        default="https://api.openai.com/v1",
        validation_alias="VOICE_API_BASE_URL",
        min_length=1,
    )
    model: str = Field(default="whisper-1", validation_alias="VOICE_API_MODEL")
    response_format: str = Field(
        default="verbose_json",
        validation_alias="VOICE_API_RESPONSE_FORMAT",
        description="verbose_json makes the provider report the detected language.",
    )
    timeout: float = Field(default=30.0, validation_alias="VOICE_API_TIMEOUT", gt=0)

    check_api_key = field_validator("api_key")(_require_secret)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


class MailConfig(BaseSettings):
    """SMTP relay configuration"""

    host: str = Field(validation_alias="SMTP_HOST", min_length=1)
    port: int = Field(default=587, validation_alias="SMTP_PORT", ge=1, le=65535)
    username: str = Field(validation_alias="SMTP_USER", min_length=1)
    password: SecretStr = Field(validation_alias="SMTP_PASS")
    sender: str = Field(validation_alias="MAIL_FROM", pattern=_EMAIL_PATTERN)
    recipient: str = Field(validation_alias="MAIL_TO", pattern=_EMAIL_PATTERN)
    timeout: float = Field(default=60.0, validation_alias="SMTP_TIMEOUT", gt=0)

    check_password = field_validator("password")(_require_secret)

    @property
    def use_ssl(self) -> bool:
        """Implicit TLS on 465, STARTTLS negotiation everywhere else."""
        return self.port == 465

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Voice Capture Gateway"
    environment: Literal["development", "production"] = "development"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: Literal["debug", "info", "warning", "error"] = "info"
    log_file: Optional[str] = None
    service_version: str = "unknown"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return _LOG_LEVEL_ALIASES.get(value, value)
        return value

    ingest_token: SecretStr = Field(validation_alias="INGEST_TOKEN")
    check_ingest_token = field_validator("ingest_token")(_require_secret)

    # Speech-to-text provider
    transcription: TranscriptionConfig = Field(default_factory=TranscriptionConfig)

    # SMTP relay
    mail: MailConfig = Field(default_factory=MailConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def debug(self) -> bool:
        return self.log_level == "debug"

    def missing_required(self) -> list[str]:
        """Return the names of required values that are currently blank."""

        required = {
            "INGEST_TOKEN": self.ingest_token.get_secret_value(),
            "VOICE_API_KEY": self.transcription.api_key.get_secret_value(),
            "VOICE_API_BASE_URL": self.transcription.base_url,
            "SMTP_HOST": self.mail.host,
            "SMTP_USER": self.mail.username,
            "SMTP_PASS": self.mail.password.get_secret_value(),
            "MAIL_FROM": self.mail.sender,
            "MAIL_TO": self.mail.recipient,
        }
        return [name for name, value in required.items() if not value]


def _format_errors(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc']) or 'settings'}: {error['msg']}"
        for error in exc.errors()
    ]


def load_settings() -> Settings:
    """Read and validate settings from the environment, failing fast."""

    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigurationError(_format_errors(exc)) from exc
