from __future__ import annotations

import uvicorn

from .config import get_settings
from .logging_setup import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "otp_relay.main:app",
        host=settings.host,
        port=settings.port,
        # Keep our JSON handler instead of uvicorn's default config.
        log_config=None,
    )


if __name__ == "__main__":
    main()
