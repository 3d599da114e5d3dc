from __future__ import annotations

import logging

import sentry_sdk

from app.core.config import settings

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Install the root handler once and hook Sentry when a DSN is configured."""
    global _configured
    if _configured:
        return
    logging.basicConfig(level=(level or settings.log_level).upper(), format="%(message)s")
    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn)
    _configured = True
