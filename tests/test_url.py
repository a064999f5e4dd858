"""Tests for privacy_analyzer.utils.url: domain classification."""

from __future__ import annotations

from unittest import mock

import pytest

from privacy_analyzer.utils import url
from privacy_analyzer.utils.url import extract_domain, is_third_party, resolve_host, third_party_domains

# ── extract_domain ──────────────────────────────────────────────


class TestExtractDomain:
    """Tests for extract_domain()."""

    def test_simple_url(self) -> None:
        assert extract_domain("https://example.com/path") == "example.com"

    def test_url_with_port(self) -> None:
        assert extract_domain("https://example.com:8080/path") == "example.com"

    def test_empty_string_returns_unknown(self) -> None:
        assert extract_domain("") == "unknown"

    def test_url_without_scheme(self) -> None:
        assert extract_domain("example.com") == "unknown"


# ── is_third_party ──────────────────────────────────────────────


class TestIsThirdParty:
    """Tests for is_third_party()."""

    def test_same_host(self) -> None:
        assert is_third_party("example.com", "example.com") is False

    def test_different_host(self) -> None:
        assert is_third_party("example.com", "tracker.io") is True

    def test_page_host_ends_with_candidate(self) -> None:
        assert is_third_party("www.example.com", "example.com") is False

    def test_subdomain_of_page_is_third_party(self) -> None:
        # One-directional suffix check, not registrable-domain aware.
        assert is_third_party("example.com", "cdn.example.com") is True

    def test_literal_suffix_without_dot_boundary(self) -> None:
        assert is_third_party("notexample.com", "example.com") is False

    @pytest.mark.parametrize(("page_host", "candidate"), [("", "tracker.io"), ("example.com", ""), (None, "x.io"), ("example.com", None)])
    def test_empty_hosts_are_not_third_party(self, page_host: str | None, candidate: str | None) -> None:
        assert is_third_party(page_host, candidate) is False


# ── resolve_host ────────────────────────────────────────────────


class TestResolveHost:
    """Tests for resolve_host()."""

    def test_absolute_src(self) -> None:
        assert resolve_host("https://cdn.example.net/a.js", "https://example.com/") == "cdn.example.net"

    def test_relative_src(self) -> None:
        assert resolve_host("/static/app.js", "https://example.com/page") == "example.com"

    def test_protocol_relative_src(self) -> None:
        assert resolve_host("//cdn.example.net/a.js", "https://example.com/") == "cdn.example.net"

    def test_src_is_trimmed(self) -> None:
        assert resolve_host("  https://cdn.example.net/a.js ", "https://example.com/") == "cdn.example.net"


# ── third_party_domains ─────────────────────────────────────────


class TestThirdPartyDomains:
    """Tests for third_party_domains()."""

    def test_single_cdn_script(self) -> None:
        assert third_party_domains("https://example.com/", ["https://cdn.example.net/lib.js"]) == ["cdn.example.net"]

    def test_duplicates_listed_once(self) -> None:
        srcs = ["https://a.io/1.js", "https://b.io/2.js", "https://a.io/3.js"]
        assert sorted(third_party_domains("https://example.com/", srcs)) == ["a.io", "b.io"]

    def test_first_party_and_relative_ignored(self) -> None:
        srcs = ["/app.js", "https://example.com/lib.js", "vendor.js"]
        assert third_party_domains("https://example.com/", srcs) == []

    def test_no_scripts(self) -> None:
        assert third_party_domains("https://example.com/", []) == []

    def test_unparseable_src_is_skipped(self) -> None:
        original = url.resolve_host

        def flaky(raw_src: str, base_url: str) -> str | None:
            if raw_src == "bad":
                raise ValueError("Invalid IPv6 URL")
            return original(raw_src, base_url)

        with mock.patch.object(url, "resolve_host", side_effect=flaky):
            result = third_party_domains("https://example.com/", ["bad", "https://tracker.io/t.js"])

        assert result == ["tracker.io"]

    def test_malformed_ipv6_src_does_not_fail_batch(self) -> None:
        result = third_party_domains("https://example.com/", ["http://[::1/x.js", "https://tracker.io/t.js"])
        assert result == ["tracker.io"]
