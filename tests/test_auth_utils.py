"""Tests for authentication and request helpers."""

import base64
from datetime import timezone

import pytest

from gateway.auth import parse_basic_credentials, verify_admin_secret, verify_basic_auth
from gateway.exceptions import AuthError, BadRequestError
from gateway.types import GatewayConfig
from gateway.utils import (
    destination_path,
    generate_lock_token,
    normalize_path,
    parse_content_length,
    utc_now,
)

CONFIG = GatewayConfig(shards=(), admin_password="pw")


def encode(text):
    return "Basic " + base64.b64encode(text.encode("utf-8")).decode("ascii")


class TestBasicAuth:
    def test_parse_credentials(self):
        assert parse_basic_credentials(encode("admin:pa:ss")) == ("admin", "pa:ss")

    def test_parse_rejects_malformed(self):
        assert parse_basic_credentials(None) is None
        assert parse_basic_credentials("Bearer abc") is None
        assert parse_basic_credentials("Basic !!!") is None
        assert parse_basic_credentials(encode("no-separator")) is None

    def test_scheme_is_case_insensitive(self):
        assert parse_basic_credentials(encode("admin:pw").replace("Basic", "basic")) == ("admin", "pw")

    def test_valid_credentials(self):
        assert verify_basic_auth(encode("admin:pw"), CONFIG) == "admin"

    def test_wrong_password(self):
        with pytest.raises(AuthError):
            verify_basic_auth(encode("admin:nope"), CONFIG)

    def test_wrong_username(self):
        with pytest.raises(AuthError):
            verify_basic_auth(encode("root:pw"), CONFIG)

    def test_missing_header(self):
        with pytest.raises(AuthError):
            verify_basic_auth(None, CONFIG)


class TestAdminSecret:
    def test_matching_secret(self):
        verify_admin_secret("pw", CONFIG)

    @pytest.mark.parametrize("secret", [None, "", "PW"])
    def test_rejected_secret(self, secret):
        with pytest.raises(AuthError):
            verify_admin_secret(secret, CONFIG)


class TestNormalizePath:
    @pytest.mark.parametrize("raw,expected", [
        ("", "/"),
        ("/", "/"),
        ("/docs/", "/docs"),
        ("/docs", "/docs"),
        ("docs/a.txt", "/docs/a.txt"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_path(raw) == expected


class TestDestinationPath:
    def test_absolute_url(self):
        assert destination_path("http://gateway.local/a/c%20d.txt") == "/a/c d.txt"

    def test_trailing_slash_dropped(self):
        assert destination_path("https://gateway.local/new-dir/") == "/new-dir"

    def test_bare_path(self):
        assert destination_path("/x/y") == "/x/y"

    def test_missing(self):
        with pytest.raises(BadRequestError):
            destination_path(None)

    def test_relative(self):
        with pytest.raises(BadRequestError):
            destination_path("relative/path")


class TestMisc:
    def test_lock_token_format(self):
        token = generate_lock_token()
        assert token.startswith("opaquelocktoken:")
        assert token != generate_lock_token()

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo == timezone.utc

    @pytest.mark.parametrize("value,expected", [
        (None, None),
        ("12", 12),
        (" 0 ", 0),
        ("abc", None),
        ("-1", None),
    ])
    def test_parse_content_length(self, value, expected):
        assert parse_content_length(value) == expected
