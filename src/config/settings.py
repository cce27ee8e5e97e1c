# src/config/settings.py — v1
"""Typed configuration loaded from the environment via pydantic-settings.

All variables share the ``ACROLINX_`` prefix (ACROLINX_URL,
ACROLINX_SSO_TOKEN, ...) and may also come from a ``.env`` file.

Numeric fields are checked at construction time. Connection settings are
loaded leniently and checked by ``validation_errors`` so the CLI can print
every problem at once before any file is dispatched.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from acrocheck.core.errors import AcrocheckError, ErrorKind

# Values shipped in the sample environment script that must be replaced.
_TOKEN_PLACEHOLDERS = ("ACROLINX-SECURELY-PROVISIONED", "ACROLINX-PROVISIONED")
_USERNAME_PLACEHOLDER = "myacrolinx-username"

_REQUIRED_FIELDS: dict[str, str] = {
    "url": "Acrolinx URL",
    "sso_token": "SSO Token",
    "username": "Username",
    "client_signature": "Client Signature",
    "content_dir": "Content Directory",
}


class ConfigurationError(AcrocheckError):
    """Raised when required settings are missing or malformed."""

    kind = ErrorKind.CONFIGURATION

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("Configuration validation failed: " + "; ".join(self.errors))


class Settings(BaseSettings):
    """Application settings loaded from ACROLINX_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="ACROLINX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Connection ===
    url: str = ""
    sso_token: str = ""
    username: str = ""
    client_signature: str = ""
    content_dir: str = ""

    # === Dispatch ===
    max_concurrency: int = 2
    pacing_delay_s: float = 0.5
    request_timeout_s: float = 60.0
    check_timeout_s: float = 300.0
    max_file_size_mb: float = 10.0
    recursive: bool = True

    # === Watch mode ===
    watch_interval_s: float = 1.0
    open_browser: bool = True

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("max_concurrency")
    @classmethod
    def validate_max_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_concurrency must be >= 1")
        return v

    @field_validator("pacing_delay_s")
    @classmethod
    def validate_pacing_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("pacing_delay_s must be >= 0")
        return v

    @field_validator(
        "request_timeout_s", "check_timeout_s", "max_file_size_mb", "watch_interval_s",
    )
    @classmethod
    def validate_positive(cls, v: float, info) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("url", "sso_token", "username", "client_signature", "content_dir")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()

    @field_validator("log_file", mode="before")
    @classmethod
    def blank_log_file_is_unset(cls, v):
        # An empty ACROLINX_LOG_FILE means console logging only.
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # --- Semantic validation ---

    @property
    def validation_errors(self) -> list[str]:
        """Human-readable list of configuration problems (empty when valid)."""
        return self.collect_errors()

    def collect_errors(self, require_content_dir: bool = True) -> list[str]:
        errors: list[str] = []

        for name, display in _REQUIRED_FIELDS.items():
            if name == "content_dir" and not require_content_dir:
                continue
            if not getattr(self, name):
                errors.append(
                    f"Missing required environment variable: ACROLINX_{name.upper()} ({display})"
                )

        if require_content_dir and self.content_dir and not self.content_path.is_dir():
            errors.append(f"Content directory does not exist: {self.content_dir}")

        if self.url:
            if "{" in self.url and "}" in self.url:
                errors.append(
                    f"Acrolinx URL contains template placeholder: {self.url}. "
                    "Please replace with actual URL."
                )
            elif not _is_absolute_http_url(self.url):
                errors.append(f"Invalid URL format: {self.url}")

        if any(p in self.sso_token for p in _TOKEN_PLACEHOLDERS):
            errors.append("SSO Token contains placeholder value. Please replace with actual token.")

        if any(p in self.client_signature for p in _TOKEN_PLACEHOLDERS):
            errors.append(
                "Client Signature contains placeholder value. Please replace with actual signature."
            )

        if _USERNAME_PLACEHOLDER in self.username:
            errors.append(
                f"Username contains placeholder value: {self.username}. "
                "Please replace with actual username."
            )

        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    def ensure_valid(self, require_content_dir: bool = True) -> None:
        """Raise ConfigurationError listing every problem found."""
        errors = self.collect_errors(require_content_dir)
        if errors:
            raise ConfigurationError(errors)

    # --- Helpers ---

    @property
    def content_path(self) -> Path:
        return Path(self.content_dir).expanduser()

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)


def _is_absolute_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def load_settings(**overrides: object) -> Settings:
    """Load settings from the environment with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Settings instance. Call ``ensure_valid()`` before dispatching.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
