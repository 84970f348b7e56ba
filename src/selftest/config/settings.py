"""Configuration settings and loading."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from selftest.errors import ConfigValidationError, ErrorContext

# Hashtag every fixture character carries; the platform's cleanup endpoint
# treats characters tagged with it as test data.
CANONICAL_TAG = "テスト"

DEFAULT_ATTENDANCE_MARKERS = ["既に出席済み", "already"]


class SelfTestConfig(BaseSettings):
    """Configuration for a self-test session."""

    model_config = SettingsConfigDict(
        env_prefix="SELFTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "http://localhost:3000"
    operator_email: str | None = None
    operator_password: str | None = None
    session_token: str | None = None
    session_cookie_name: str = "next-auth.session-token"
    timeout: float = 30.0
    cooldown_seconds: float = 0.5
    slow_check_ms: float = 1000.0

    charge_amount: int = 100
    attendance_bonus: int = 30
    attendance_markers: list[str] = Field(default_factory=lambda: list(DEFAULT_ATTENDANCE_MARKERS))
    discovery_tag: str = CANONICAL_TAG

    test_password: str = "Test1234!"
    test_email_domain: str = "test.com"
    comment_text: str = "テストコメント"
    chat_message: str = "テストメッセージ"

    log_level: str = "INFO"
    json_logs: bool = False
    report_format: str = "console"

    @field_validator("base_url", mode="before")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not isinstance(v, str) or not v.startswith(("http://", "https://")):
            raise ConfigValidationError(
                message="base_url must start with http:// or https://",
                field="base_url",
                value=v,
            )
        return v.rstrip("/")

    @field_validator("cooldown_seconds")
    @classmethod
    def validate_cooldown(cls, v: float) -> float:
        if v < 0:
            raise ConfigValidationError(
                message="cooldown_seconds cannot be negative",
                field="cooldown_seconds",
                value=v,
            )
        return v

    @field_validator("slow_check_ms")
    @classmethod
    def validate_slow_check_ms(cls, v: float) -> float:
        if v <= 0:
            raise ConfigValidationError(
                message="slow_check_ms must be positive",
                field="slow_check_ms",
                value=v,
            )
        return v

    @field_validator("charge_amount")
    @classmethod
    def validate_charge_amount(cls, v: int) -> int:
        if v <= 0:
            raise ConfigValidationError(
                message="charge_amount must be positive",
                field="charge_amount",
                value=v,
            )
        return v

    @field_validator("report_format")
    @classmethod
    def validate_report_format(cls, v: str) -> str:
        valid = {"console", "json"}
        if v not in valid:
            raise ConfigValidationError(
                message=f"Invalid report format: {v}. Valid: {sorted(valid)}",
                field="report_format",
                value=v,
                context=ErrorContext(extra={"valid_formats": sorted(valid)}),
            )
        return v

    @property
    def has_credentials(self) -> bool:
        return bool(self.operator_email and self.operator_password)


def load_config(config_path: str | Path | None = None, **overrides: Any) -> SelfTestConfig:
    """Load configuration from file and environment.

    Priority: explicit overrides > env vars > config file > defaults
    """
    config_data: dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        if config_path.exists():
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}
            if not isinstance(config_data, dict):
                raise ConfigValidationError(
                    message=f"{config_path} must contain a mapping",
                    field=None,
                    value=type(config_data).__name__,
                )

    config_data.update(_get_env_overrides())
    config_data.update({k: v for k, v in overrides.items() if v is not None})

    return SelfTestConfig(**config_data)


def _get_env_overrides() -> dict[str, Any]:
    """Get configuration overrides from environment variables."""
    overrides: dict[str, Any] = {}

    env_mappings = {
        "SELFTEST_BASE_URL": "base_url",
        "SELFTEST_OPERATOR_EMAIL": "operator_email",
        "SELFTEST_OPERATOR_PASSWORD": "operator_password",
        "SELFTEST_SESSION_TOKEN": "session_token",
        "SELFTEST_TIMEOUT": ("timeout", float),
        "SELFTEST_COOLDOWN_SECONDS": ("cooldown_seconds", float),
        "SELFTEST_SLOW_CHECK_MS": ("slow_check_ms", float),
        "SELFTEST_JSON_LOGS": ("json_logs", lambda x: x.lower() in ("true", "1", "yes")),
        "SELFTEST_LOG_LEVEL": "log_level",
    }

    for env_key, config_key in env_mappings.items():
        value = os.environ.get(env_key)
        if value is not None:
            if isinstance(config_key, tuple):
                key, converter = config_key
                overrides[key] = converter(value)
            else:
                overrides[config_key] = value

    return overrides
