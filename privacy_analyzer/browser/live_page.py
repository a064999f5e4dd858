"""
Live page host backed by Playwright.

Plays the part of the extension's content script: it loads the page
in Chromium, installs canvas interception before any page script
runs, reads script and canvas data from the live DOM and hands it to
the page analyzer.  Canvas events reach Python through an exposed
binding and are validated with ``interception.event_from_payload``.

Each ``LivePageSession`` owns its own browser so that concurrent
analyses do not share state.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from playwright import async_api

from privacy_analyzer import config
from privacy_analyzer.analysis import interception, page_analyzer
from privacy_analyzer.models import page, report
from privacy_analyzer.utils import errors, logger

log = logger.create_logger("LivePage")

_BINDING_NAME = "__privacyAnalyzerCanvas"

# In-page counterpart of interception.install_interception.  Runs
# before any page script.  Inspection failures are swallowed and the
# original call always proceeds.
_CANVAS_INIT_SCRIPT = """
(attachDelayMs) => {
    if (window.__privacyAnalyzerInstalled) return;
    window.__privacyAnalyzerInstalled = true;

    const report = (payload) => {
        try {
            payload.timestamp = Date.now();
            payload.url = location.href;
            window.%(binding)s(payload);
        } catch (e) {}
    };
    const describe = (canvas, method) => {
        try {
            return { method, width: canvas.width, height: canvas.height, inDOM: canvas.isConnected };
        } catch (e) {
            return { method };
        }
    };

    if (typeof HTMLCanvasElement !== 'undefined') {
        const origToDataURL = HTMLCanvasElement.prototype.toDataURL;
        HTMLCanvasElement.prototype.toDataURL = function () {
            report(describe(this, 'toDataURL'));
            return origToDataURL.apply(this, arguments);
        };
    }

    if (typeof CanvasRenderingContext2D !== 'undefined') {
        const origGetImageData = CanvasRenderingContext2D.prototype.getImageData;
        CanvasRenderingContext2D.prototype.getImageData = function () {
            report(describe(this.canvas, 'getImageData'));
            return origGetImageData.apply(this, arguments);
        };
    }

    const origCreateElement = Document.prototype.createElement;
    Document.prototype.createElement = function (tagName) {
        const element = origCreateElement.apply(this, arguments);
        try {
            if (String(tagName).toLowerCase() === 'canvas') {
                let observer = null;
                const timer = setTimeout(() => {
                    if (observer) observer.disconnect();
                    if (!element.isConnected && element.width > 0 && element.height > 0) {
                        const payload = describe(element, 'createElement');
                        payload.note = 'Canvas created but not attached to the document within ' + (attachDelayMs / 1000) + 's';
                        report(payload);
                    }
                }, attachDelayMs);
                if (typeof MutationObserver !== 'undefined') {
                    observer = new MutationObserver(() => {
                        if (element.isConnected) {
                            clearTimeout(timer);
                            observer.disconnect();
                        }
                    });
                    observer.observe(document, { childList: true, subtree: true });
                }
            }
        } catch (e) {}
        return element;
    };
}
""" % {"binding": _BINDING_NAME}

_SNAPSHOT_JS = """() => ({
    scriptSrcs: Array.from(document.querySelectorAll('script[src]')).map(s => s.src),
    inlineScripts: Array.from(document.querySelectorAll('script:not([src])')).map(s => s.textContent || ''),
    canvasCount: document.querySelectorAll('canvas').length,
})"""

CanvasCallback = Callable[[report.CanvasInterceptionEvent], None]


class LivePageSession:
    """Loads one page in Chromium and analyses its live DOM."""

    def __init__(self, settings: config.Settings | None = None) -> None:
        self._settings = settings or config.get_settings()
        self._playwright: async_api.Playwright | None = None
        self._browser: async_api.Browser | None = None

    async def __aenter__(self) -> LivePageSession:
        self._playwright = await async_api.async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=True)
        except async_api.Error as exc:
            await self._playwright.stop()
            self._playwright = None
            raise errors.ResourceError(f"Could not launch browser: {exc}") from exc
        log.info("Browser launched")
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def analyze(self, url: str, on_canvas_event: CanvasCallback | None = None) -> report.AnalysisReport:
        """Load *url*, collect a DOM snapshot and canvas events, and analyse it.

        Canvas events are passed to *on_canvas_event* as they arrive
        and are also embedded in the returned report.

        Raises:
            errors.InvalidUrlError: If *url* is not an absolute
                http(s) URL.
            errors.PageFetchError: If the page cannot be loaded.
        """
        target = page.AnalysisTarget.from_url(url)
        if self._browser is None:
            raise errors.ResourceError("Browser session is not started")

        events: list[report.CanvasInterceptionEvent] = []

        def on_payload(payload: dict[str, Any]) -> None:
            event = interception.event_from_payload(payload)
            if event is None:
                return
            events.append(event)
            log.debug("Canvas call intercepted", {"method": event.method, "inDOM": event.in_dom})
            if on_canvas_event:
                on_canvas_event(event)

        context = await self._browser.new_context(user_agent=self._settings.user_agent)
        try:
            browser_page = await context.new_page()
            await browser_page.expose_function(_BINDING_NAME, on_payload)
            await browser_page.add_init_script(
                f"({_CANVAS_INIT_SCRIPT})({self._settings.canvas_attach_delay_ms});"
            )

            log.start_timer("live-load")
            try:
                response = await browser_page.goto(
                    target.url,
                    wait_until="load",
                    timeout=self._settings.fetch_timeout * 1000,
                )
            except async_api.Error as exc:
                raise errors.PageFetchError(target.url, f"Navigation failed: {exc}") from exc
            if response is not None and not response.ok:
                raise errors.PageFetchError(target.url, f"HTTP {response.status}", status=response.status)
            log.end_timer("live-load", "Page loaded")

            await browser_page.wait_for_timeout(self._settings.live_dwell_ms)
            snapshot = page.DocumentSnapshot.model_validate(await browser_page.evaluate(_SNAPSHOT_JS))
        finally:
            await context.close()

        result = page_analyzer.analyze_document(target.url, snapshot)
        log.info("Live analysis complete", {"canvasEvents": len(events)})
        return result.model_copy(update={"canvas_detections": events})
