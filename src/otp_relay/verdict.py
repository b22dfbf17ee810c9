from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict

TELEPHONY_ACTION_TYPE: Final[str] = "com.okta.telephony.action"
SEND_FAILED: Final[str] = "SMS_SEND_FAILED"


class CommandStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str


class TelephonyCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    value: tuple[CommandStatus, ...]


class AllowVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    commands: tuple[TelephonyCommand, ...]


class FailureVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    error: str


def allow_verdict() -> dict[str, Any]:
    """Tell the identity provider the OTP is on its way."""
    verdict = AllowVerdict(
        commands=(
            TelephonyCommand(
                type=TELEPHONY_ACTION_TYPE,
                value=(CommandStatus(status="ALLOW"),),
            ),
        )
    )
    return verdict.model_dump(mode="json")


def failure_verdict() -> dict[str, Any]:
    return FailureVerdict(error=SEND_FAILED).model_dump(mode="json")
