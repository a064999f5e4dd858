"""Pydantic models for analysis findings and reports.

``AnalysisReport`` is the single wire shape shared by the CLI
output, the messages sent from the page context and the per-tab
log.  Its ``summary`` is a computed field, so the totals can never
disagree with the arrays they count.
"""

from __future__ import annotations

from typing import Literal

import pydantic

from privacy_analyzer.utils.serialization import snake_to_camel

Timestamp = str | int | float

CanvasMethod = Literal["toDataURL", "getImageData", "createElement"]


class _CamelModel(pydantic.BaseModel):
    """Frozen base with camelCase aliases."""

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True, frozen=True
    )


# ── Findings ────────────────────────────────────────────────────


class DangerousPatternMatch(_CamelModel):
    """One occurrence of a dynamic-code-execution construct.

    Positions refer to the comment-stripped source.
    """

    pattern: str
    description: str = ""
    line: int = pydantic.Field(default=1, ge=1)
    column: int = pydantic.Field(default=0, ge=0)
    snippet: str = ""


class InlineEvalFinding(_CamelModel):
    """All dangerous-pattern matches found in one inline script.

    ``snippet`` is only populated by older senders that reported a
    leading excerpt instead of positioned matches.
    """

    index: int = pydantic.Field(ge=0)
    patterns: list[DangerousPatternMatch] = pydantic.Field(default_factory=list)
    snippet: str | None = None


# Older extension builds sent the matches flattened, without the
# per-script grouping.
EvalFinding = InlineEvalFinding | DangerousPatternMatch


class CanvasInterceptionEvent(_CamelModel):
    """A canvas API call observed at runtime."""

    method: CanvasMethod
    width: int | None = None
    height: int | None = None
    in_dom: bool = False
    timestamp: Timestamp | None = None
    note: str | None = None
    url: str | None = None


# ── Reports ─────────────────────────────────────────────────────


class ReportSummary(_CamelModel):
    """Counts derived from a report's finding arrays."""

    total_third_party_domains: int
    total_eval_patterns: int
    total_fingerprinting_apis: int


class AnalysisReport(_CamelModel):
    """Aggregate privacy findings for one page analysis."""

    url: str | None = None
    timestamp: Timestamp | None = None
    third_party_domains: list[str] = pydantic.Field(default_factory=list)
    inline_eval_patterns: list[EvalFinding] = pydantic.Field(default_factory=list)
    fingerprinting_apis: list[str] = pydantic.Field(default_factory=list)
    canvas_detections: list[CanvasInterceptionEvent] = pydantic.Field(default_factory=list)

    @pydantic.computed_field  # type: ignore[prop-decorator]
    @property
    def summary(self) -> ReportSummary:
        """Totals recomputed from the current arrays."""
        return ReportSummary(
            total_third_party_domains=len(self.third_party_domains),
            total_eval_patterns=len(self.inline_eval_patterns),
            total_fingerprinting_apis=len(self.fingerprinting_apis),
        )


class BrowserInfo(_CamelModel):
    """Name and version of the browser a report was exported from."""

    name: str = "Unknown"
    version: str = "Unknown"


class ExportReport(AnalysisReport):
    """A report as written to a ``privacy-report-*.json`` file."""

    browser: BrowserInfo = pydantic.Field(default_factory=BrowserInfo)
    extension_version: str = "Unknown"
