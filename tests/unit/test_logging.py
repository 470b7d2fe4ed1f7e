from __future__ import annotations

import json
import logging
import sys

import pytest

from rr_bench.utils.logging import _json_formatter, configure_logging, get_logger

EXPECTED_SAMPLES = 1200
EXPECTED_TPS = 10


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.samples = EXPECTED_SAMPLES
    record.client = "client-0"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["samples"] == EXPECTED_SAMPLES
    assert payload["client"] == "client-0"
    assert "lineno" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"tps": EXPECTED_TPS}

    payload = json.loads(_json_formatter(record))

    assert payload["tps"] == EXPECTED_TPS


def test_json_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("replica gone")
    except RuntimeError:
        record = logging.LogRecord(
            name="test.logger",
            level=logging.ERROR,
            pathname=__file__,
            lineno=1,
            msg="[WORKER FAILED] client-0",
            args=(),
            exc_info=sys.exc_info(),
        )

    payload = json.loads(_json_formatter(record))

    assert "RuntimeError: replica gone" in payload["exc_info"]


def test_configure_logging_emits_json_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(level="INFO", json_logs=True)
    try:
        get_logger("rr_bench.test").info("Reader finished", extra={"client": "client-1", "samples": 3})
        err = capsys.readouterr().err.strip().splitlines()
    finally:
        logging.getLogger().handlers.clear()

    payload = json.loads(err[-1])
    assert payload["message"] == "Reader finished"
    assert payload["client"] == "client-1"
    assert payload["samples"] == 3
