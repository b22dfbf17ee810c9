from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .sms import OutboundMessage
from .twilio_client import Messenger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchOutcome:
    success: bool
    error: str | None = None


class DeliveryDispatcher:
    """
    Hand OTP messages to the SMS provider.

    A failed send is final: no retries, no backoff, no queue. Outcomes only
    go to the log; callers that need them use `send` directly.
    """

    def __init__(self, messenger: Messenger) -> None:
        self.messenger = messenger
        # Strong references so detached sends are not garbage-collected mid-flight.
        self._pending: set[asyncio.Task[DispatchOutcome]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def send(self, message: OutboundMessage) -> DispatchOutcome:
        if not message.to:
            outcome = DispatchOutcome(success=False, error="missing destination number")
        elif not message.text:
            outcome = DispatchOutcome(success=False, error="missing message text")
        else:
            try:
                # The provider SDK blocks; keep it off the event loop.
                await asyncio.to_thread(
                    self.messenger.send, message.to, message.from_, message.text
                )
            except Exception as e:
                outcome = DispatchOutcome(success=False, error=_describe(e))
            else:
                outcome = DispatchOutcome(success=True)

        if outcome.success:
            logger.info("dispatch.sent", extra={"to": message.to})
        else:
            logger.error("dispatch.failed", extra={"to": message.to, "error": outcome.error})
        return outcome

    async def send_with_timeout(self, message: OutboundMessage, timeout: float) -> DispatchOutcome:
        try:
            return await asyncio.wait_for(self.send(message), timeout=timeout)
        except TimeoutError:
            # The worker thread may still finish; its result is dropped.
            logger.error("dispatch.timeout", extra={"to": message.to, "timeout_s": timeout})
            return DispatchOutcome(success=False, error=f"send timed out after {timeout}s")

    def detach(self, message: OutboundMessage) -> asyncio.Task[DispatchOutcome]:
        """Start a send that nothing awaits; it outlives the request that started it."""
        task = asyncio.create_task(self.send(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every detached send still in flight."""
        # Sends detached while we wait are picked up on the next pass.
        while self._pending:
            logger.info("dispatch.draining", extra={"pending": len(self._pending)})
            await asyncio.gather(*self._pending, return_exceptions=True)


def _describe(exc: Exception) -> str:
    # Twilio errors carry a provider message; fall back to the exception text.
    detail = getattr(exc, "msg", None) or str(exc)
    return f"{type(exc).__name__}: {detail}"
