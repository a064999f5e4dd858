"""
Static fingerprinting detection.

Matches inline script bodies against a fixed catalogue of
fingerprinting-API signatures and adds one structural signal for
``<canvas>`` elements present in the document.  Signals form a
closed vocabulary and are reported at most once per analysis, in
catalogue order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from privacy_analyzer.utils import logger

log = logger.create_logger("Fingerprinting")

CANVAS_ELEMENT_PRESENT = "canvas.element_present"

# ============================================================================
# Signature Catalogue
# ============================================================================

FINGERPRINT_SIGNATURES: dict[str, re.Pattern[str]] = {
    "canvas.getContext": re.compile(r"\bgetContext\s*\(", re.I | re.ASCII),
    "canvas.toDataURL": re.compile(r"\btoDataURL\s*\(", re.I | re.ASCII),
    "canvas.toBlob": re.compile(r"\btoBlob\s*\(", re.I | re.ASCII),
    "navigator.plugins": re.compile(r"\bnavigator\s*\.\s*plugins\b", re.I | re.ASCII),
    "navigator.userAgent": re.compile(r"\bnavigator\s*\.\s*userAgent\b", re.I | re.ASCII),
    "navigator.hardwareConcurrency": re.compile(r"\bnavigator\s*\.\s*hardwareConcurrency\b", re.I | re.ASCII),
    "screen.dimensions": re.compile(r"\bscreen\s*\.\s*(?:width|height|availWidth|availHeight)\b", re.I | re.ASCII),
    "webgl.getParameter": re.compile(r"\bgetParameter\s*\(|\bWEBGL_debug_renderer_info\b", re.I | re.ASCII),
    "audio.context": re.compile(r"\b(?:Offline)?AudioContext\b", re.I | re.ASCII),
}

# Closed vocabulary, in reporting order.
FINGERPRINT_SIGNALS: list[str] = [CANVAS_ELEMENT_PRESENT, *FINGERPRINT_SIGNATURES]


def detect_static(inline_scripts: Iterable[str | None], canvas_count: int = 0) -> list[str]:
    """Detect fingerprinting signals in inline script bodies.

    Args:
        inline_scripts: Bodies of the page's inline scripts.
        canvas_count: Number of ``<canvas>`` elements in the page.

    Returns:
        De-duplicated signal ids in catalogue order.
    """
    found: set[str] = set()
    if canvas_count > 0:
        found.add(CANVAS_ELEMENT_PRESENT)

    for body in inline_scripts:
        if not body:
            continue
        for signal, regex in FINGERPRINT_SIGNATURES.items():
            if signal not in found and regex.search(body):
                found.add(signal)

    signals = [s for s in FINGERPRINT_SIGNALS if s in found]
    if signals:
        log.debug("Fingerprinting signals detected", {"signals": signals, "canvasCount": canvas_count})
    return signals
