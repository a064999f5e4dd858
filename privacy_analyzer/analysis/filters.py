"""
Report category filters.

A report can be narrowed to any subset of the three finding
categories.  Filtering always returns a new report; the summary of
the result is recomputed from its (possibly emptied) arrays.
"""

from __future__ import annotations

from collections.abc import Iterable

from privacy_analyzer.models import report
from privacy_analyzer.utils import errors

TRACKERS = "trackers"
EVAL = "eval"
FINGERPRINTING = "fingerprinting"
ALL = "all"

CATEGORIES: list[str] = [TRACKERS, EVAL, FINGERPRINTING]
VALID_TOKENS: list[str] = [*CATEGORIES, ALL]


def parse_filters(text: str | None) -> list[str]:
    """Parse a comma-separated filter list.

    Tokens are trimmed and case-insensitive.  ``all`` (or an empty
    list) expands to every category in canonical order.

    Raises:
        errors.InvalidFilterError: On the first unknown token.
    """
    tokens = [t.strip().lower() for t in (text or "").split(",")]
    tokens = [t for t in tokens if t]

    for token in tokens:
        if token not in VALID_TOKENS:
            raise errors.InvalidFilterError(token, VALID_TOKENS)

    if not tokens or ALL in tokens:
        return list(CATEGORIES)
    return list(dict.fromkeys(tokens))


def filter_report(result: report.AnalysisReport, categories: Iterable[str]) -> report.AnalysisReport:
    """Return a copy of *result* keeping only the given categories.

    Dropping ``fingerprinting`` also drops runtime canvas detections.
    The copy is deep, so it shares no lists with *result*.
    """
    keep = set(categories)
    update: dict[str, list[object]] = {}
    if TRACKERS not in keep:
        update["third_party_domains"] = []
    if EVAL not in keep:
        update["inline_eval_patterns"] = []
    if FINGERPRINTING not in keep:
        update["fingerprinting_apis"] = []
        update["canvas_detections"] = []
    return result.model_copy(update=update, deep=True)
