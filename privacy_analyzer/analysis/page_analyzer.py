"""
Page analyzer: orchestrates the detectors over one page.

Two entry points share the same aggregation:

* ``analyze_html`` works on raw HTML (the CLI surface) and extracts
  scripts with regular expressions;
* ``analyze_document`` works on a ``DocumentSnapshot`` read from a
  live DOM (the live page host).

Both produce an ``AnalysisReport`` whose summary is derived from its
arrays.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from privacy_analyzer.analysis import dangerous_patterns, fingerprinting
from privacy_analyzer.models import page, report
from privacy_analyzer.utils import logger, serialization, url

log = logger.create_logger("PageAnalyzer")

Clock = Callable[[], datetime]

# ============================================================================
# HTML extraction
# ============================================================================

_SCRIPT_SRC_RE = re.compile(r"<script[^>]+src=[\"']([^\"']+)[\"']", re.I)
_INLINE_SCRIPT_RE = re.compile(r"<script(?![^>]*src=)([^>]*)>([\s\S]*?)</script>", re.I)
_CANVAS_RE = re.compile(r"<canvas\b", re.I)


def extract_scripts(html: str) -> list[page.ScriptReference]:
    """Extract external and inline script references in document order.

    Inline scripts are numbered by their position among inline
    scripts only.
    """
    found: list[tuple[int, page.ScriptReference]] = []

    for match in _SCRIPT_SRC_RE.finditer(html):
        found.append((match.start(), page.ExternalScript(raw_src=match.group(1))))

    inline_matches = list(_INLINE_SCRIPT_RE.finditer(html))
    for index, match in enumerate(inline_matches):
        found.append((match.start(), page.InlineScript(body=match.group(2), ordinal_index=index)))

    found.sort(key=lambda item: item[0])
    return [ref for _, ref in found]


def count_canvas_elements(html: str) -> int:
    """Count ``<canvas>`` opening tags in *html*."""
    return len(_CANVAS_RE.findall(html))


def snapshot_from_html(html: str) -> page.DocumentSnapshot:
    """Build the snapshot a live document would produce for *html*."""
    scripts = extract_scripts(html)
    return page.DocumentSnapshot(
        script_srcs=[s.raw_src for s in scripts if isinstance(s, page.ExternalScript)],
        inline_scripts=[s.body for s in scripts if isinstance(s, page.InlineScript)],
        canvas_count=count_canvas_elements(html),
    )


# ============================================================================
# Aggregation
# ============================================================================


def _scan_inline_scripts(inline_scripts: Sequence[str]) -> list[report.InlineEvalFinding]:
    """Scan each inline body, keeping only scripts with matches."""
    findings: list[report.InlineEvalFinding] = []
    for index, body in enumerate(inline_scripts):
        matches = dangerous_patterns.scan(body)
        if matches:
            findings.append(report.InlineEvalFinding(index=index, patterns=matches))
    return findings


def _utc_now() -> datetime:
    return datetime.now(UTC)


def analyze_document(
    page_url: str,
    snapshot: page.DocumentSnapshot,
    *,
    clock: Clock = _utc_now,
) -> report.AnalysisReport:
    """Run every detector over a document snapshot.

    Args:
        page_url: Absolute URL of the page.
        snapshot: Script sources, inline bodies and canvas count.
        clock: Source of the report timestamp.

    Returns:
        The aggregated report.

    Raises:
        errors.InvalidUrlError: If *page_url* is not an absolute
            http(s) URL.
    """
    target = page.AnalysisTarget.from_url(page_url)

    domains = url.third_party_domains(target.url, snapshot.script_srcs)
    eval_findings = _scan_inline_scripts(snapshot.inline_scripts)
    signals = fingerprinting.detect_static(snapshot.inline_scripts, snapshot.canvas_count)

    result = report.AnalysisReport(
        url=target.url,
        timestamp=serialization.format_iso_timestamp(clock()),
        third_party_domains=domains,
        inline_eval_patterns=eval_findings,
        fingerprinting_apis=signals,
    )

    log.info(
        "Page analyzed",
        {
            "host": target.host,
            "externalScripts": len(snapshot.script_srcs),
            "inlineScripts": len(snapshot.inline_scripts),
            "thirdPartyDomains": result.summary.total_third_party_domains,
            "evalPatterns": result.summary.total_eval_patterns,
            "fingerprintingAPIs": result.summary.total_fingerprinting_apis,
        },
    )
    return result


def analyze_html(page_url: str, html: str, *, clock: Clock = _utc_now) -> report.AnalysisReport:
    """Analyse a raw HTML document fetched from *page_url*."""
    target = page.AnalysisTarget.from_url(page_url)
    return analyze_document(target.url, snapshot_from_html(html or ""), clock=clock)
