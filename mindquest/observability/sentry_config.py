"""Sentry configuration and initialization for error tracking."""

import logging
import os
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)


def init_sentry() -> bool:
    """
    Initialize Sentry SDK for error tracking.

    Configures Sentry with:
    - FastAPI integration for the proxy endpoint
    - Logging integration (info breadcrumbs, errors as events)
    - Release tracking from GIT_COMMIT_SHA

    Returns:
        True if Sentry was initialized
    """
    from mindquest.config import (
        SENTRY_DSN,
        SENTRY_ENVIRONMENT,
        SENTRY_TRACES_SAMPLE_RATE,
        ENABLE_SENTRY,
    )

    if not ENABLE_SENTRY:
        logger.info("Sentry is disabled (ENABLE_SENTRY=false)")
        return False

    if not SENTRY_DSN:
        logger.warning("Sentry DSN not configured - error tracking disabled")
        return False

    release = os.getenv("GIT_COMMIT_SHA")
    release = f"mindquest@{release[:7]}" if release else "mindquest@dev"

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        release=release,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        attach_stacktrace=True,
        # Journal text must never leave the server
        send_default_pii=False,
        before_send=_before_send,
    )

    logger.info(
        f"Sentry initialized: environment={SENTRY_ENVIRONMENT}, "
        f"release={release}, traces_sample_rate={SENTRY_TRACES_SAMPLE_RATE}"
    )
    return True


def _before_send(event, hint):
    """
    Drop events that are not server faults

    4xx HTTP exceptions and user input validation errors are expected
    traffic, not errors.
    """
    if "exc_info" in hint:
        exc_type, exc_value, tb = hint["exc_info"]
        if exc_type.__name__ == "HTTPException":
            if hasattr(exc_value, "status_code") and exc_value.status_code < 500:
                return None
        if exc_type.__name__ in ("ValidationError", "ActionNotAllowedError"):
            return None

    return event


def shutdown_sentry() -> None:
    """Flush pending events before shutdown"""
    client = sentry_sdk.get_client()
    if client.is_active():
        logger.info("Flushing Sentry events before shutdown...")
        client.close(timeout=2.0)
        logger.info("Sentry shutdown complete")
