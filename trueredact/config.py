"""
Engine configuration using Pydantic Settings

Values default to sensible limits and can be overridden through
TRUEREDACT_* environment variables.
"""

from typing import Any, Mapping, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

ENV_PREFIX = "TRUEREDACT_"

TOOL_PRODUCER = "trueredact Redaction Engine"
TOOL_CREATOR = "trueredact"

# Spellings that switch the operation timeout off
_TIMEOUT_DISABLED = ("none", "off", "0")


class EngineConfig(BaseSettings):
    """Limits and identifiers for the redaction pipeline"""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    max_render_pixels: int = Field(
        default=64_000_000, gt=0, description="Upper bound on width_px * height_px of any rendered page."
    )
    timeout_seconds: Optional[float] = Field(
        default=120.0, description="Whole-operation budget for apply(); None disables it."
    )
    max_workers: int = Field(
        default=1, ge=1, description=">1 rasterizes sanitize pages in a process pool of this size."
    )
    max_file_size: int = Field(default=50 * 1024 * 1024, gt=0)
    producer: str = TOOL_PRODUCER
    creator: str = TOOL_CREATOR
    log_level: str = "INFO"

    @field_validator("max_render_pixels", "max_workers", "max_file_size", mode="before")
    @classmethod
    def strip_digit_separators(cls, v: Any) -> Any:
        """Accept ``64_000_000`` style values from the environment."""
        if isinstance(v, str):
            return v.strip().replace("_", "")
        return v

    @field_validator("timeout_seconds", mode="before")
    @classmethod
    def parse_timeout(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().lower() in _TIMEOUT_DISABLED:
            return None
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("timeout_seconds must be positive or unset")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "EngineConfig":
        """
        Build a validated config

        Args:
            environ: Variables read ahead of the process environment
            **overrides: Field values that take precedence over the environment

        Raises:
            ConfigurationError: if any value fails validation
        """
        values = {}
        if environ is not None:
            for key, raw in environ.items():
                if not key.upper().startswith(ENV_PREFIX) or not raw.strip():
                    continue
                values[key[len(ENV_PREFIX):].lower()] = raw.strip()
        values.update(overrides)

        try:
            return cls(**values)
        except ValidationError as e:
            errors = "; ".join(
                f"{ENV_PREFIX}{'.'.join(str(p) for p in err['loc']).upper()}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {errors}") from None
