"""Plain-text rendering of an analysis report for the terminal."""

from __future__ import annotations

from privacy_analyzer.models import report

# Domains listed before collapsing the rest into "... and N more".
MAX_DOMAINS_SHOWN = 10

_RULE = "=" * 50


def _render_eval_finding(finding: report.EvalFinding) -> list[str]:
    if isinstance(finding, report.DangerousPatternMatch):
        return [f"  - {finding.pattern} (line {finding.line}, col {finding.column}): {finding.snippet}"]

    if not finding.patterns:
        return [f"  - Script #{finding.index}: {finding.snippet or ''}".rstrip()]

    lines = [f"  - Script #{finding.index}: {len(finding.patterns)} pattern(s)"]
    for match in finding.patterns:
        lines.append(f"      {match.pattern} (line {match.line}, col {match.column}): {match.snippet}")
    return lines


def render_report(result: report.AnalysisReport) -> list[str]:
    """Render *result* as terminal lines."""
    summary = result.summary
    lines = ["📊 Analysis Results", _RULE]

    lines.append(f"\n📡 Third-Party Domains ({summary.total_third_party_domains}):")
    if not result.third_party_domains:
        lines.append("  ✓ None detected")
    else:
        lines.extend(f"  - {domain}" for domain in result.third_party_domains[:MAX_DOMAINS_SHOWN])
        hidden = len(result.third_party_domains) - MAX_DOMAINS_SHOWN
        if hidden > 0:
            lines.append(f"  ... and {hidden} more")

    lines.append(f"\n⚠  Inline Eval Patterns ({summary.total_eval_patterns}):")
    if not result.inline_eval_patterns:
        lines.append("  ✓ None detected")
    else:
        for finding in result.inline_eval_patterns:
            lines.extend(_render_eval_finding(finding))

    lines.append(f"\n👁  Fingerprinting APIs ({summary.total_fingerprinting_apis}):")
    if not result.fingerprinting_apis:
        lines.append("  ✓ None detected")
    else:
        lines.extend(f"  - {api}" for api in result.fingerprinting_apis)

    if result.canvas_detections:
        lines.append(f"\n🎨 Canvas Interceptions ({len(result.canvas_detections)}):")
        for i, event in enumerate(result.canvas_detections, start=1):
            size = f"{event.width if event.width is not None else 'unknown'}x{event.height if event.height is not None else 'unknown'}"
            note = f" - {event.note}" if event.note else ""
            lines.append(f"  #{i}: {event.method} ({size}){note}")

    lines.append("\n" + _RULE)
    return lines
