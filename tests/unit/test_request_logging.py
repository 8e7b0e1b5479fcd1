"""Request id sanitizing and log record stamping."""

import logging
import uuid

from sqlgate.middleware.request_id import REQUEST_ID_MAX_LENGTH, sanitize_request_id
from sqlgate.shared.telemetry.logging import (
    RequestIdFilter,
    current_request_id,
    reset_request_id,
    set_request_id,
)


def test_safe_request_id_is_kept() -> None:
    assert sanitize_request_id("  req_42-a ") == "req_42-a"


def test_unsafe_request_id_is_replaced() -> None:
    for raw in (None, "", "a b", "line\ninjected", "x" * (REQUEST_ID_MAX_LENGTH + 1)):
        replaced = sanitize_request_id(raw)
        assert uuid.UUID(replaced).version == 4


def test_filter_stamps_bound_request_id() -> None:
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
    token = set_request_id("req-1")
    try:
        assert current_request_id() == "req-1"
        RequestIdFilter().filter(record)
    finally:
        reset_request_id(token)
    assert record.request_id == "req-1"
    assert current_request_id() == "-"
