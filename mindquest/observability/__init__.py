"""
Observability module for mindquest.

This module provides error tracking with Sentry.
"""

from mindquest.observability.sentry_config import init_sentry, shutdown_sentry

__all__ = ["init_sentry", "shutdown_sentry"]
