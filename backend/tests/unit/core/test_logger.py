"""Unit tests for the JSON log formatter and request correlation."""

from __future__ import annotations

import json
import logging

import pytest
from refresh_engine.core.logger import JSONFormatter, configure_logging, ensure_request_id


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "refresh_engine.test", logging.WARNING, __file__, 1, "hello %s", ("x",), None
    )
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_formatter_emits_json_with_engine_extras():
    out = json.loads(
        JSONFormatter().format(_record(user_id="7", token_family="f1", count=3, secret="nope"))
    )
    assert out["message"] == "hello x"
    assert out["level"] == "WARNING"
    assert out["user_id"] == "7"
    assert out["token_family"] == "f1"
    assert out["count"] == 3
    assert "secret" not in out


def test_request_id_comes_from_header(app):
    with app.test_request_context(headers={"X-Request-ID": "req-123"}):
        assert ensure_request_id() == "req-123"
        assert ensure_request_id() == "req-123"


def test_request_id_is_generated(app):
    with app.test_request_context():
        first = ensure_request_id()
        assert first
        assert ensure_request_id() == first


def test_request_id_cleared_between_request_contexts(app):
    with app.test_request_context():
        generated = ensure_request_id()
    with app.test_request_context(headers={"X-Request-ID": "req-456"}):
        assert ensure_request_id() == "req-456"
    with app.test_request_context():
        assert ensure_request_id() not in {generated, "req-456"}


def test_response_header_tracks_each_request(client):
    first = client.get("/api/v1/health")
    second = client.get("/api/v1/health", headers={"X-Request-ID": "req-789"})
    third = client.get("/api/v1/health")

    assert second.headers["X-Request-ID"] == "req-789"
    assert third.headers["X-Request-ID"] not in {first.headers["X-Request-ID"], "req-789"}


@pytest.mark.parametrize("header", ["x" * 129, "bad\tid"])
def test_unacceptable_correlation_header_is_replaced(app, header):
    with app.test_request_context(headers={"X-Request-ID": header, "X-Correlation-ID": "corr-1"}):
        assert ensure_request_id() == "corr-1"


@pytest.mark.parametrize("level, expected", [("debug", logging.DEBUG), ("nope", logging.INFO)])
def test_configure_logging_resolves_level_names(level, expected):
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, root.handlers[:]
    try:
        configure_logging(level)
        assert root.level == expected
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
