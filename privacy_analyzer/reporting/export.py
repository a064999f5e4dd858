"""
Report export: build the exported report and its file name.

``build_report`` and ``format_filename`` are pure functions of their
inputs; the clock is read only when the timestamp argument is
omitted.  File names use the *local* calendar fields of the
timestamp so they match what the user sees on their own clock.
"""

from __future__ import annotations

import pathlib
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import pydantic

from privacy_analyzer.models import report
from privacy_analyzer.utils import errors, logger, serialization

log = logger.create_logger("ReportExport")

TimestampInput = datetime | int | float | str | None


def to_datetime(value: TimestampInput) -> datetime | None:
    """Interpret *value* as a point in time.

    Accepts a ``datetime`` (naive values are local time), epoch
    milliseconds, or an ISO-8601 string.

    Raises:
        errors.InputError: If *value* cannot be interpreted.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        raise errors.InputError(f"Invalid timestamp: {value!r}")
    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value / 1000, UTC)
        return datetime.fromisoformat(value.strip())
    except (ValueError, OverflowError, OSError, AttributeError) as exc:
        raise errors.InputError(f"Invalid timestamp: {value!r}") from exc


def format_filename(timestamp: TimestampInput = None) -> str:
    """Return ``privacy-report-YYYY-MM-DD-HHMM.json`` for *timestamp*.

    Omitting *timestamp* uses the current time.
    """
    moment = to_datetime(timestamp) or datetime.now(UTC)
    local = moment.astimezone()
    return f"privacy-report-{local.year:04d}-{local.month:02d}-{local.day:02d}-{local.hour:02d}{local.minute:02d}.json"


def _as_report(latest_data: report.AnalysisReport | Mapping[str, Any] | None) -> report.AnalysisReport | None:
    if latest_data is None or isinstance(latest_data, report.AnalysisReport):
        return latest_data
    try:
        return report.AnalysisReport.model_validate(latest_data)
    except pydantic.ValidationError as exc:
        raise errors.InputError(f"Invalid report data: {exc.error_count()} validation error(s)") from exc


def _resolve_version(extension_version: str | Mapping[str, Any] | None) -> str:
    if isinstance(extension_version, Mapping):
        extension_version = extension_version.get("version")
    return str(extension_version) if extension_version else "Unknown"


def build_report(
    latest_data: report.AnalysisReport | Mapping[str, Any] | None,
    domains: list[str] | None,
    eval_patterns: list[Any] | None,
    extension_version: str | Mapping[str, Any] | None = None,
    browser_info: report.BrowserInfo | Mapping[str, Any] | None = None,
    fallback_url: str | None = None,
) -> report.ExportReport:
    """Assemble the report written to an export file.

    Args:
        latest_data: Most recent report of the tab (``url``,
            ``timestamp``, fingerprinting and canvas findings are
            taken from it).
        domains: Third-party domains to export; non-lists become ``[]``.
        eval_patterns: Eval findings to export; non-lists become ``[]``.
        extension_version: Version string or a manifest mapping with
            a ``version`` key.
        browser_info: Browser name and version.
        fallback_url: Used when *latest_data* carries no URL.

    Returns:
        The export report; its summary is derived from its arrays.
    """
    latest = _as_report(latest_data)

    moment = to_datetime(latest.timestamp) if latest and latest.timestamp is not None else None
    if moment is None:
        moment = datetime.now(UTC)

    browser = browser_info if isinstance(browser_info, report.BrowserInfo) else report.BrowserInfo.model_validate(browser_info or {})

    try:
        return report.ExportReport(
            url=(latest.url if latest else None) or fallback_url or "Unknown",
            timestamp=serialization.format_iso_timestamp(moment),
            third_party_domains=domains if isinstance(domains, list) else [],
            inline_eval_patterns=eval_patterns if isinstance(eval_patterns, list) else [],
            fingerprinting_apis=list(latest.fingerprinting_apis) if latest else [],
            canvas_detections=list(latest.canvas_detections) if latest else [],
            browser=browser,
            extension_version=_resolve_version(extension_version),
        )
    except pydantic.ValidationError as exc:
        raise errors.InputError(f"Invalid report data: {exc.error_count()} validation error(s)") from exc


def export_report(latest: report.AnalysisReport, extension_version: str, browser_info: report.BrowserInfo | None = None) -> report.ExportReport:
    """Build the export report for a complete analysis report."""
    return build_report(
        latest,
        list(latest.third_party_domains),
        list(latest.inline_eval_patterns),
        extension_version,
        browser_info,
    )


def write_report(path: str | pathlib.Path, result: pydantic.BaseModel) -> pathlib.Path:
    """Write *result* as pretty-printed camelCase JSON to *path*."""
    target = pathlib.Path(path)
    target.write_text(serialization.to_json(result) + "\n", encoding="utf-8")
    log.success("Report saved", {"path": str(target)})
    return target
