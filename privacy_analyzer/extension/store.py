"""
Per-tab report log.

An append-only list of reports per browser tab.  Appends for the
same tab keep arrival order.  Entries are copied on the way in and
out, so no caller can rewrite a stored report.  A tab's log lives until
the host reports that the tab was closed; there is no other expiry.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from privacy_analyzer.models import report
from privacy_analyzer.utils import logger

log = logger.create_logger("TabStore")

TabId = int
Clock = Callable[[], float]


def _now_ms() -> float:
    return int(time.time() * 1000)


class TabReportStore:
    """Append-only report log keyed by tab id."""

    def __init__(self, clock: Clock = _now_ms) -> None:
        """Create an empty store.

        Args:
            clock: Returns the current time in epoch milliseconds;
                used to stamp entries that arrive without one.
        """
        self._clock = clock
        self._tabs: dict[TabId, list[report.AnalysisReport]] = {}

    def now(self) -> float:
        """Current time according to the injected clock."""
        return self._clock()

    def append(self, tab_id: TabId, entry: report.AnalysisReport) -> None:
        """Append a copy of *entry* to the log of *tab_id*."""
        self._tabs.setdefault(tab_id, []).append(entry.model_copy(deep=True))
        log.debug("Entry appended", {"tabId": tab_id, "entries": len(self._tabs[tab_id])})

    def get(self, tab_id: TabId) -> list[report.AnalysisReport]:
        """Return copies of the log entries of *tab_id*, most recent last."""
        return [entry.model_copy(deep=True) for entry in self._tabs.get(tab_id, [])]

    def remove(self, tab_id: TabId) -> bool:
        """Drop the log of *tab_id*; returns whether it existed."""
        removed = self._tabs.pop(tab_id, None) is not None
        if removed:
            log.debug("Tab log removed", {"tabId": tab_id})
        return removed

    def tab_ids(self) -> list[TabId]:
        """Tabs that currently have a log."""
        return list(self._tabs)

    def __len__(self) -> int:
        return len(self._tabs)


def _is_canvas_only(entry: report.AnalysisReport) -> bool:
    return bool(entry.canvas_detections) and not (
        entry.third_party_domains or entry.inline_eval_patterns or entry.fingerprinting_apis
    )


def latest_view(entries: list[report.AnalysisReport]) -> report.AnalysisReport | None:
    """Merge a tab log into the view of its most recent page load.

    Canvas detections may arrive embedded in the page report or as
    separate canvas-only entries appended after it.  The view is the
    last entry carrying static findings (or the last entry if none
    does) plus the canvas detections of the canvas-only entries that
    follow it for the same URL.
    """
    if not entries:
        return None

    base_index = len(entries) - 1
    for i in range(len(entries) - 1, -1, -1):
        if not _is_canvas_only(entries[i]):
            base_index = i
            break

    base = entries[base_index]
    trailing = [
        event
        for entry in entries[base_index + 1 :]
        if entry.url in (None, base.url)
        for event in entry.canvas_detections
    ]
    if not trailing:
        return base.model_copy(deep=True)
    return base.model_copy(update={"canvas_detections": [*base.canvas_detections, *trailing]}, deep=True)
