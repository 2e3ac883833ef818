"""Tests for logging setup and structured webhook events."""

import json
import logging

import pytest

from calccart.logging_config import ROOT_LOGGER, get_logger, log_webhook_event, setup_logging


@pytest.fixture
def file_logging(tmp_path):
    setup_logging(log_to_file=True, log_to_console=False, log_dir=tmp_path)
    yield tmp_path
    setup_logging(log_to_file=False, log_to_console=False)


def _read_entries(log_dir):
    files = list(log_dir.glob(f"{ROOT_LOGGER}_*.jsonl"))
    assert len(files) == 1
    return [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]


def test_get_logger_prefixes_namespace():
    assert get_logger("webhooks").name == "calccart.webhooks"
    assert get_logger("calccart.db").name == "calccart.db"
    assert get_logger().name == "calccart"


def test_setup_logging_replaces_handlers():
    logger = setup_logging(log_to_file=False, log_to_console=True)
    logger = setup_logging(log_to_file=False, log_to_console=True)
    assert len(logger.handlers) == 1
    setup_logging(log_to_file=False, log_to_console=False)


def test_webhook_event_written_as_jsonl(file_logging):
    log_webhook_event(
        "webhook_received",
        {"message": "Received shop/redact webhook for s1.myshopify.com", "shop": "s1.myshopify.com", "topic": "shop/redact"},
    )

    entries = _read_entries(file_logging)
    assert entries[-1]["event_type"] == "webhook_received"
    assert entries[-1]["message"] == "Received shop/redact webhook for s1.myshopify.com"
    assert entries[-1]["shop"] == "s1.myshopify.com"
    assert entries[-1]["logger"] == "calccart.webhooks"
    assert entries[-1]["level"] == "INFO"


def test_plain_log_records_written(file_logging):
    logging.getLogger("calccart.calculators").warning("Delete failed")
    entries = _read_entries(file_logging)
    assert entries[-1]["message"] == "Delete failed"
    assert "event_type" not in entries[-1]
