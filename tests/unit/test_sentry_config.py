"""Tests for Sentry event filtering and initialization switches"""

from fastapi import HTTPException

from mindquest import config
from mindquest.exceptions import ActionNotAllowedError, GenerationError, ValidationError
from mindquest.observability import init_sentry
from mindquest.observability.sentry_config import _before_send


def hint_for(error):
    return {"exc_info": (type(error), error, None)}


def test_client_errors_are_dropped():
    assert _before_send({"id": 1}, hint_for(HTTPException(status_code=404))) is None
    assert _before_send({"id": 2}, hint_for(ValidationError(message="Mood must be between 1 and 5."))) is None
    assert _before_send({"id": 3}, hint_for(ActionNotAllowedError("Come back tomorrow!"))) is None


def test_server_errors_are_kept():
    event = {"id": 4}
    assert _before_send(event, hint_for(HTTPException(status_code=502))) is event
    assert _before_send(event, hint_for(GenerationError(message="endpoint down"))) is event
    assert _before_send(event, {}) is event


def test_init_sentry_disabled(monkeypatch):
    monkeypatch.setattr(config, "ENABLE_SENTRY", False)
    assert init_sentry() is False


def test_init_sentry_without_dsn(monkeypatch):
    monkeypatch.setattr(config, "ENABLE_SENTRY", True)
    monkeypatch.setattr(config, "SENTRY_DSN", "")
    assert init_sentry() is False
