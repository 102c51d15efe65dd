from __future__ import annotations

import json
import logging

from elearn.core.logging import (
    RequestContextFilter,
    _ContainerFormatter,
    _JsonFormatter,
    request_id_var,
    setup_logging,
    user_id_var,
)


def _record(level: int = logging.INFO, msg: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test",
        level=level,
        pathname="svc.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_noisy_libraries() -> None:
    setup_logging("debug")
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    assert logging.getLogger("stripe").level == logging.WARNING


def test_context_filter_is_on_the_handler() -> None:
    setup_logging("info")
    (handler,) = logging.getLogger().handlers
    assert any(isinstance(f, RequestContextFilter) for f in handler.filters)


def test_container_formatter_location_only_for_warnings() -> None:
    fmt = _ContainerFormatter()
    assert "[svc.py:42]" not in fmt.format(_record(logging.INFO))
    assert "[svc.py:42]" in fmt.format(_record(logging.WARNING))


def test_context_filter_stamps_context_vars() -> None:
    token_req = request_id_var.set("req-1")
    token_user = user_id_var.set("auth0|7")
    try:
        record = _record()
        RequestContextFilter().filter(record)
    finally:
        request_id_var.reset(token_req)
        user_id_var.reset(token_user)
    assert record.request_id == "req-1"
    assert record.user_id == "auth0|7"


def test_context_filter_keeps_explicit_extra() -> None:
    record = _record(user_id="explicit")
    RequestContextFilter().filter(record)
    assert record.user_id == "explicit"


def test_json_formatter_promotes_context_fields() -> None:
    record = _record(msg="Rejected", request_id="req-2", user_id="u-1", route="/v1/x")
    entry = json.loads(_JsonFormatter().format(record))
    assert entry["message"] == "Rejected"
    assert entry["request_id"] == "req-2"
    assert entry["user_id"] == "u-1"
    assert entry["route"] == "/v1/x"


def test_json_formatter_drops_placeholder_context() -> None:
    record = _record(request_id="-", user_id="-")
    entry = json.loads(_JsonFormatter().format(record))
    assert "request_id" not in entry
    assert "user_id" not in entry
