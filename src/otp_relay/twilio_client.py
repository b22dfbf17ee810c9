from __future__ import annotations

from typing import Protocol

from twilio.rest import Client

from .config import Settings


class Messenger(Protocol):
    def send(self, to: str, from_: str, text: str) -> None:
        """Deliver one SMS; raise on any failure."""
        ...


class TwilioMessenger:
    """Send SMS through the configured Twilio account."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client: Client | None = None

    def get_client(self) -> Client:
        # Built on first send so a missing credential fails that send,
        # not process startup.
        if self._client is None:
            if not self._settings.twilio_account_sid or not self._settings.twilio_auth_token:
                raise RuntimeError(
                    "Twilio credentials are not configured (TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN)"
                )
            self._client = Client(
                self._settings.twilio_account_sid, self._settings.twilio_auth_token
            )
        return self._client

    def send(self, to: str, from_: str, text: str) -> None:
        if not from_:
            raise RuntimeError("VERIFICATION_NUMBER is not configured")

        self.get_client().messages.create(to=to, from_=from_, body=text)
