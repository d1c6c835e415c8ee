"""Tests for credential masking in log records."""

import logging

from common.logging_config import SensitiveDataFilter, setup_logging


def make_record(msg, args=None):
    return logging.LogRecord("gateway.test", logging.INFO, __file__, 1, msg, args, None)


def test_masks_shard_secret_in_message():
    record = make_record('saved {"secretAccessKey": "wJalrXUtnFEMI"}')

    SensitiveDataFilter().filter(record)

    assert "wJalrXUtnFEMI" not in record.getMessage()
    assert "***MASKED***" in record.getMessage()


def test_masks_basic_credentials_in_args():
    record = make_record("header %s", ("Authorization: Basic YWRtaW46cHc=",))

    SensitiveDataFilter().filter(record)

    assert "YWRtaW46cHc=" not in record.getMessage()


def test_masks_quoted_authorization_header():
    record = make_record("headers {'authorization': 'Basic YWRtaW46cHc='}")

    SensitiveDataFilter().filter(record)

    assert "YWRtaW46cHc=" not in record.getMessage()


def test_leaves_basic_auth_wording_readable():
    record = make_record("Missing or malformed Basic credentials")

    SensitiveDataFilter().filter(record)

    assert record.getMessage() == "Missing or malformed Basic credentials"


def test_masks_sigv4_signature():
    record = make_record("AWS4-HMAC-SHA256 Credential=AK/x, Signature=deadbeef01")

    SensitiveDataFilter().filter(record)

    assert "deadbeef01" not in record.getMessage()


def test_leaves_ordinary_messages():
    record = make_record("Stored /a.txt on shard A [size=5]")

    SensitiveDataFilter().filter(record)

    assert record.getMessage() == "Stored /a.txt on shard A [size=5]"


def test_setup_logging_is_idempotent():
    logger = setup_logging("gateway-test", log_level="DEBUG")
    assert logger.level == logging.DEBUG

    again = setup_logging("gateway-test", log_level="DEBUG")

    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.propagate is False
