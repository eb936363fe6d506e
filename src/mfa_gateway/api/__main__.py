"""
mfa_gateway.api.__main__

Entrypoint for running the FastAPI application via `python -m mfa_gateway.api`.

Responsibilities:
- Load settings (fails fast in prod when required values are missing).
- Create the app.
- Start uvicorn with structlog-compatible logging config.
"""

from __future__ import annotations

import uvicorn

from mfa_gateway.api.app import create_app
from mfa_gateway.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
