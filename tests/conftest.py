"""Shared fixtures for the test suite."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from privacy_analyzer.models import report

FIXED_NOW = datetime(2026, 1, 1, 12, 30, 45, 123000, tzinfo=UTC)

# ── Pages ───────────────────────────────────────────────────────


@pytest.fixture()
def fixed_clock():
    """Clock returning a fixed UTC datetime."""
    return lambda: FIXED_NOW


@pytest.fixture()
def tracker_page_html() -> str:
    """A page with one third-party script, an eval call and a canvas."""
    return (
        "<html><head>"
        '<script src="https://cdn.example.net/lib.js"></script>'
        '<script src="/static/app.js"></script>'
        "</head><body>"
        '<canvas id="fp"></canvas>'
        '<script>var x = 1;\neval("evil");</script>'
        "</body></html>"
    )


@pytest.fixture()
def clean_page_html() -> str:
    """A page without any findings."""
    return '<html><body><script src="/app.js"></script><p>hello</p></body></html>'


# ── Reports ─────────────────────────────────────────────────────


@pytest.fixture()
def canvas_event() -> report.CanvasInterceptionEvent:
    """A runtime toDataURL interception."""
    return report.CanvasInterceptionEvent(
        method="toDataURL",
        width=300,
        height=150,
        in_dom=False,
        timestamp=1767270645123,
        url="https://example.com/",
    )


@pytest.fixture()
def sample_report(canvas_event: report.CanvasInterceptionEvent) -> report.AnalysisReport:
    """A report with findings in every category."""
    return report.AnalysisReport(
        url="https://example.com/",
        timestamp="2026-01-01T12:30:45.123Z",
        third_party_domains=["cdn.example.net", "tracker.io"],
        inline_eval_patterns=[
            report.InlineEvalFinding(
                index=0,
                patterns=[
                    report.DangerousPatternMatch(
                        pattern="eval",
                        description="Direct eval() call",
                        line=2,
                        column=0,
                        snippet='eval("evil");',
                    )
                ],
            )
        ],
        fingerprinting_apis=["canvas.element_present", "navigator.userAgent"],
        canvas_detections=[canvas_event],
    )
