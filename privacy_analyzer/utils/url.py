"""
URL and domain utility functions for third-party classification.

Classification is a literal, one-directional suffix check: a script
host is first-party when it equals the page host or when the page
host ends with it (``example.com`` serving ``www.example.com``).
It is deliberately *not* registrable-domain (eTLD+1) aware, so
``cdn.example.com`` is reported as third-party on ``example.com``.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib import parse

from privacy_analyzer.utils import logger

log = logger.create_logger("DomainClassifier")


def extract_domain(url: str) -> str:
    """Extract the hostname from a URL string."""
    try:
        parsed = parse.urlparse(url)
        return parsed.hostname or "unknown"
    except ValueError:
        return "unknown"


def is_third_party(page_host: str | None, candidate_host: str | None) -> bool:
    """Decide whether *candidate_host* is third-party relative to *page_host*.

    Args:
        page_host: Hostname of the analysed page.
        candidate_host: Hostname a script was loaded from.

    Returns:
        ``False`` when either host is empty or they are equal,
        otherwise ``True`` unless *page_host* ends with
        *candidate_host*.
    """
    if not page_host or not candidate_host:
        return False
    if not isinstance(page_host, str) or not isinstance(candidate_host, str):
        return False
    if page_host == candidate_host:
        return False
    return not page_host.endswith(candidate_host)


def resolve_host(raw_src: str, base_url: str) -> str | None:
    """Resolve *raw_src* against *base_url* and return its hostname.

    Raises:
        ValueError: If the resolved URL cannot be parsed.
    """
    resolved = parse.urljoin(base_url, raw_src.strip())
    return parse.urlparse(resolved).hostname


def third_party_domains(page_url: str, raw_srcs: Iterable[str]) -> list[str]:
    """Collect the unique third-party hosts among script ``src`` values.

    Each raw ``src`` may be relative and is resolved against
    *page_url*.  Values that cannot be parsed are skipped without
    failing the batch.

    Returns:
        Hostnames in first-seen order, each listed once.
    """
    page_host = parse.urlparse(page_url).hostname or ""
    seen: dict[str, None] = {}

    for raw_src in raw_srcs:
        try:
            host = resolve_host(raw_src, page_url)
        except ValueError as exc:
            log.debug("Skipping unparseable script src", {"src": raw_src, "error": str(exc)})
            continue
        if host and is_third_party(page_host, host):
            seen.setdefault(host, None)

    return list(seen)
