"""
Unit tests for CDN URL signing.

The signer reads the clock on every call, so every test pins it.
"""

import hashlib
from urllib.parse import parse_qs, urlsplit

import pytest

from cosgate.core.cdn import CdnSigner

KEY = "s3cr3t"
NOW = 1700000000


def md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


@pytest.fixture
def signer() -> CdnSigner:
    return CdnSigner(domain="https://cdn.example.com", key=KEY, clock=lambda: NOW)


class TestSign:
    """Tests for the raw signature."""

    def test_signature_is_md5_of_key_path_timestamp(self, signer):
        values = signer.sign("docs/a.pdf")

        assert values == {
            "sign": md5_hex(f"{KEY}/docs/a.pdf{NOW}"),
            "t": str(NOW),
        }

    def test_leading_slash_does_not_change_signature(self, signer):
        assert signer.sign("/docs/a.pdf") == signer.sign("docs/a.pdf")

    def test_fractional_clock_is_truncated(self):
        signer = CdnSigner(domain="https://cdn.example.com", key=KEY, clock=lambda: NOW + 0.9)

        assert signer.sign("docs/a.pdf")["t"] == str(NOW)

    def test_signature_changes_with_clock(self):
        ticks = iter([NOW, NOW + 1])
        signer = CdnSigner(domain="https://cdn.example.com", key=KEY, clock=lambda: next(ticks))

        assert signer.sign("docs/a.pdf")["sign"] != signer.sign("docs/a.pdf")["sign"]


class TestAuthURL:
    """Tests for full signed URLs."""

    def test_url_combines_domain_path_and_query(self, signer):
        url = signer.get_auth_url("docs/a.pdf")

        expected_sign = md5_hex(f"{KEY}/docs/a.pdf{NOW}")
        assert url == f"https://cdn.example.com/docs/a.pdf?sign={expected_sign}&t={NOW}"

    def test_url_is_reproducible_with_frozen_clock(self, signer):
        assert signer.get_auth_url("/docs/a.pdf") == signer.get_auth_url("/docs/a.pdf")

    def test_query_of_input_is_not_signed(self, signer):
        """Only the path part of the input takes part in the signature."""
        values = signer.get_auth_values("/docs/a.pdf?version=2")

        assert values == signer.sign("/docs/a.pdf")

    def test_spaces_are_escaped_before_signing(self, signer):
        url = signer.get_auth_url("/docs/my file.pdf")

        parts = urlsplit(url)
        assert parts.path == "/docs/my%20file.pdf"
        assert parse_qs(parts.query)["sign"] == [md5_hex(f"{KEY}/docs/my%20file.pdf{NOW}")]
