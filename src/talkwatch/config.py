"""Configuration management for the talkwatch application."""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Uses TALKWATCH_ prefix for all environment variables.
    Supports loading from .env file.

    Examples:
        TALKWATCH_MAX_MENTIONS_COUNT=20
        TALKWATCH_MENTION_SUCCESS_NOTIFICATIONS=true
        TALKWATCH_TIMEZONE_LABEL=CET
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TALKWATCH_",
        case_sensitive=False,
    )

    # Server configuration
    host: str = Field(
        default="127.0.0.1",
        description="Server host address",
    )
    port: Optional[int] = Field(
        default=None,
        description="Server port (defaults to 8000 if not specified)",
        ge=1,
        le=65535,
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    # Mention configuration
    max_mentions_count: int = Field(
        default=50,
        description="Maximum number of mentions in one action before all are rejected",
        ge=0,
    )
    mention_success_notifications: bool = Field(
        default=False,
        description="Send the agent an acknowledgment for every delivered mention",
    )
    mentions_on_multiple_section_edits: bool = Field(
        default=True,
        description="Scan for mentions when one edit touches several sections",
    )
    mention_on_changes: bool = Field(
        default=True,
        description="Scan for mentions in edits to existing signed content",
    )

    # Interpretation configuration
    snippet_length: int = Field(
        default=150,
        description="Maximum length of section text snippets",
        ge=1,
    )
    interpretation_cache_size: int = Field(
        default=0,
        description="Number of revision interpretations and rendered link tables to keep (0 keeps all)",
        ge=0,
    )

    # Signature configuration
    signature_format: str = Field(
        default="[[User:{name}|{name}]] ([[User talk:{name}|talk]])",
        description="Signature inserted for registered users by ~~~",
    )
    anon_signature_format: str = Field(
        default="[[Special:Contributions/{name}|{name}]]",
        description="Signature inserted for anonymous users by ~~~",
    )
    timestamp_format: str = Field(
        default="%H:%M, %d %B %Y",
        description="strftime format of the timestamp inserted by ~~~~~",
    )
    timezone_label: str = Field(
        default="UTC",
        description="Timezone abbreviation appended to timestamps",
    )

    @field_validator("signature_format", "anon_signature_format")
    @classmethod
    def validate_signature_format(cls, v: str) -> str:
        """Require the {name} placeholder so signatures can be regenerated."""
        if "{name}" not in v:
            raise ValueError("signature formats must contain a {name} placeholder")
        return v


# Global settings instance
settings = Settings()
