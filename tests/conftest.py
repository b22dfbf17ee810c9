from __future__ import annotations

import threading
from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from otp_relay.config import DispatchStrategy, Settings
from otp_relay.main import create_app

SECRET = "s3cret-hook-token"


class FakeMessenger:
    """Records sends; can be told to fail or to block until released."""

    def __init__(self, *, fail: Exception | None = None, block: bool = False) -> None:
        self.fail = fail
        self.calls: list[dict[str, str]] = []
        self.release = threading.Event()
        self.finished = threading.Event()
        if not block:
            self.release.set()

    def send(self, to: str, from_: str, text: str) -> None:
        self.release.wait(timeout=5)
        try:
            self.calls.append({"to": to, "from_": from_, "text": text})
            if self.fail is not None:
                raise self.fail
        finally:
            self.finished.set()


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "auth_header_key": "Authorization",
        "auth_header_value": SECRET,
        "verification_number": "+15550000000",
        "verification_text": "Your verification code is:",
        "dispatch_strategy": DispatchStrategy.RESPOND_THEN_SEND,
        "send_timeout_seconds": 2.5,
    }
    values.update(overrides)
    return Settings(**values)  # type: ignore[arg-type]


def verify_body(
    phone: str = "+15551234567", channel: str = "SMS", code: str = "482913"
) -> dict[str, object]:
    return {
        "data": {
            "messageProfile": {
                "phoneNumber": phone,
                "deliveryChannel": channel,
                "otpCode": code,
            }
        }
    }


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture
def client_factory() -> Iterator[Callable[..., TestClient]]:
    """
    Build a TestClient around a fresh app.

    The client is entered as a context manager so one event loop lives for the
    whole test; detached sends run on it after the response comes back.
    """
    clients: list[TestClient] = []

    def factory(messenger: FakeMessenger, **overrides: object) -> TestClient:
        app = create_app(settings=make_settings(**overrides), messenger=messenger)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)
