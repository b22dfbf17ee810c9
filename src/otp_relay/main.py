from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.background import BackgroundTask

from .auth import AuthError, require_auth
from .config import DispatchStrategy, Settings, get_settings
from .dispatch import DeliveryDispatcher
from .sms import OutboundMessage, build_outbound_message, parse_verification_request
from .twilio_client import Messenger, TwilioMessenger
from .verdict import allow_verdict, failure_verdict

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Shutdown: let detached sends finish so a graceful stop does not drop OTPs.
    await app.state.dispatcher.drain()


async def launch_detached_send(
    dispatcher: DeliveryDispatcher, message: OutboundMessage, started: float
) -> None:
    """
    Runs once the verdict has been written to the caller.

    Only starts the send; the task it creates is awaited by nobody.
    """
    responded_ms = (time.perf_counter() - started) * 1000
    logger.info("verify.responded", extra={"duration_ms": round(responded_ms, 1)})
    try:
        dispatcher.detach(message)
    except Exception:
        # The caller already has its answer; nothing left to report to it.
        logger.exception("verify.detach_failed", extra={"to": message.to})


def create_app(settings: Settings | None = None, messenger: Messenger | None = None) -> FastAPI:
    if settings is None:
        settings = get_settings()

    app = FastAPI(title="otp-relay", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.dispatcher = DeliveryDispatcher(messenger or TwilioMessenger(settings))

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> Response:
        return PlainTextResponse("Unauthorized", status_code=401)

    @app.get("/health")
    def health() -> Response:
        """Reachability probe; carries nothing sensitive so it skips auth."""
        logger.info("health.probe", extra={"at": datetime.now(UTC).isoformat()})
        return PlainTextResponse("ok")

    @app.post("/verify", dependencies=[Depends(require_auth)])
    async def verify(request: Request) -> Response:
        """
        Telephony inline hook.

        - respond_then_send: answer ALLOW right away, send the SMS after the
          response is written
        - send_then_respond: send first (bounded by send_timeout_seconds) and
          answer ALLOW or 500 depending on the outcome
        """
        started = time.perf_counter()
        settings: Settings = request.app.state.settings
        dispatcher: DeliveryDispatcher = request.app.state.dispatcher

        try:
            verification = parse_verification_request(await request.json())
            message = build_outbound_message(verification, settings)

            # Record exactly what the user is expected to enter.
            logger.info(
                "verify.dispatch",
                extra={
                    "phone_number": verification.phone_number,
                    "to": message.to,
                    "delivery_channel": verification.delivery_channel.value,
                    "otp_code": verification.otp_code,
                    "strategy": settings.dispatch_strategy.value,
                },
            )
            missing = verification.missing_fields()
            if missing:
                logger.warning("verify.incomplete_request", extra={"missing": missing})

            if settings.dispatch_strategy is DispatchStrategy.SEND_THEN_RESPOND:
                outcome = await dispatcher.send_with_timeout(
                    message, settings.send_timeout_seconds
                )
                if not outcome.success:
                    return JSONResponse(failure_verdict(), status_code=500)
                return JSONResponse(allow_verdict())

            return JSONResponse(
                allow_verdict(),
                background=BackgroundTask(launch_detached_send, dispatcher, message, started),
            )
        except Exception:
            # Nothing has been sent yet; give the caller a failure it can act on.
            logger.exception("verify.handler_error")
            return JSONResponse(failure_verdict(), status_code=500)

    return app


app = create_app()
