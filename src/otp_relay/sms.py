from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from .config import Settings

logger = logging.getLogger(__name__)


class DeliveryChannel(str, Enum):
    SMS = "SMS"
    VOICE = "VOICE"


class VerificationRequest(BaseModel):
    """One inline-hook call: where to send which code."""

    model_config = ConfigDict(frozen=True)

    phone_number: str
    delivery_channel: DeliveryChannel = DeliveryChannel.SMS
    otp_code: str

    def missing_fields(self) -> list[str]:
        missing: list[str] = []
        if not self.phone_number:
            missing.append("phoneNumber")
        if not self.otp_code:
            missing.append("otpCode")
        return missing


class OutboundMessage(BaseModel):
    """What the SMS provider receives. Numbers are E.164 digits without '+'."""

    model_config = ConfigDict(frozen=True)

    to: str
    from_: str
    text: str


def strip_plus(number: str) -> str:
    """Drop a single leading '+'; already-stripped numbers are returned as-is."""
    return number[1:] if number.startswith("+") else number


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_text(value: Any) -> str:
    # Missing, null, "", 0 and false all degrade to "".
    if not value:
        return ""
    return str(value)


def _parse_channel(raw: str) -> DeliveryChannel:
    if not raw:
        return DeliveryChannel.SMS
    try:
        return DeliveryChannel(raw.upper())
    except ValueError:
        logger.warning("verify.unknown_channel", extra={"delivery_channel": raw})
        return DeliveryChannel.SMS


def parse_verification_request(body: Any) -> VerificationRequest:
    """
    Read `data.messageProfile` out of an inline-hook body.

    The caller is trusted to send well-formed payloads, so nothing here raises:
    missing or non-object levels count as empty and missing fields become "".
    An empty phone number or code then fails at dispatch time, after the
    caller has been answered.
    """
    data = _as_mapping(_as_mapping(body).get("data"))
    profile = _as_mapping(data.get("messageProfile"))

    return VerificationRequest(
        phone_number=_as_text(profile.get("phoneNumber")),
        delivery_channel=_parse_channel(_as_text(profile.get("deliveryChannel"))),
        otp_code=_as_text(profile.get("otpCode")),
    )


def build_outbound_message(request: VerificationRequest, settings: Settings) -> OutboundMessage:
    return OutboundMessage(
        to=strip_plus(request.phone_number),
        from_=strip_plus(settings.verification_number),
        text=f"{settings.verification_text} {request.otp_code}",
    )
