from __future__ import annotations

import os
from enum import Enum
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field


class DispatchStrategy(str, Enum):
    # Answer the hook first, send the SMS afterwards in a detached task.
    RESPOND_THEN_SEND = "respond_then_send"
    # Await the SMS send and report its outcome in the verdict.
    SEND_THEN_RESPOND = "send_then_respond"


def _env(name: str, default: str | None = None) -> str | None:
    # A variable that is set but empty counts as unset.
    return os.getenv(name) or default


class Settings(BaseModel):
    """
    Process-wide configuration.

    Built once at startup and handed to the app; handlers never read the
    environment themselves.
    """

    # Env values arrive as strings; validate them like explicit input.
    model_config = ConfigDict(frozen=True, validate_default=True)

    # --- Inline hook authentication ---
    auth_header_key: str = Field(default_factory=lambda: _env("AUTH_HEADER_KEY", "Authorization"))
    # No default: when unset every request is rejected.
    auth_header_value: str | None = Field(default_factory=lambda: _env("AUTH_HEADER_VALUE"))

    # --- Outbound SMS ---
    verification_number: str = Field(default_factory=lambda: _env("VERIFICATION_NUMBER", ""))
    verification_text: str = Field(
        default_factory=lambda: _env("VERIFICATION_TEXT", "Your verification code is:")
    )
    twilio_account_sid: str | None = Field(default_factory=lambda: _env("TWILIO_ACCOUNT_SID"))
    twilio_auth_token: str | None = Field(default_factory=lambda: _env("TWILIO_AUTH_TOKEN"))

    # --- Dispatch policy ---
    dispatch_strategy: DispatchStrategy = Field(
        default_factory=lambda: _env("DISPATCH_STRATEGY", DispatchStrategy.RESPOND_THEN_SEND.value)
    )
    # Only applies to send_then_respond; keep it under the caller's own timeout.
    send_timeout_seconds: float = Field(
        default_factory=lambda: _env("SEND_TIMEOUT_SECONDS", "2.5"), gt=0
    )

    # --- Process ---
    host: str = Field(default_factory=lambda: _env("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: _env("PORT", "3000"))
    log_level: str = Field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))


@lru_cache
def get_settings() -> Settings:
    return Settings()
