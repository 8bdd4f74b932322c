"""Test request-id logging setup."""
import logging

from core.observability.logging_setup import (
    RequestIdFilter,
    bind_request_id,
    get_request_id,
    reset_request_id,
    setup_logging,
)


def _record():
    return logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)


def test_request_id_defaults_outside_a_request():
    record = _record()
    assert RequestIdFilter().filter(record)
    assert record.request_id == "-"


def test_bound_request_id_is_stamped_and_reset():
    token = bind_request_id("abc123")
    try:
        assert get_request_id() == "abc123"
        record = _record()
        RequestIdFilter().filter(record)
        assert record.request_id == "abc123"
    finally:
        reset_request_id(token)
    assert get_request_id() == "-"


def test_setup_logging_adds_one_handler():
    root = logging.getLogger()
    previous = root.level
    try:
        setup_logging("debug")
        setup_logging("debug")
        ours = [h for h in root.handlers if getattr(h, "_storefront", False)]
        assert len(ours) == 1
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)
