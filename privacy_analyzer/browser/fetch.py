"""
Page fetching for the CLI.

One request per invocation, awaited to completion before analysis
runs.  There is no retry: a non-2xx status or a network error is
surfaced as a single ``PageFetchError``.
"""

from __future__ import annotations

import asyncio

import aiohttp

from privacy_analyzer import config
from privacy_analyzer.utils import errors, logger

log = logger.create_logger("PageFetch")


async def fetch_page(
    url: str,
    settings: config.Settings | None = None,
    *,
    http_session: aiohttp.ClientSession | None = None,
) -> str:
    """Fetch the HTML of *url*.

    Args:
        url: Absolute http(s) URL.
        settings: Timeout and User-Agent; read from the environment
            when omitted.
        http_session: Optional shared session; a private one is
            created and closed otherwise.

    Returns:
        The response body decoded as text.

    Raises:
        errors.PageFetchError: On non-2xx status, network error or
            timeout.
    """
    settings = settings or config.get_settings()
    headers = {"User-Agent": settings.user_agent, "Accept": "text/html,application/xhtml+xml,*/*;q=0.8"}

    if http_session is None:
        timeout = aiohttp.ClientTimeout(total=settings.fetch_timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            return await _get(session, url, headers)
    return await _get(http_session, url, headers)


async def _get(session: aiohttp.ClientSession, url: str, headers: dict[str, str]) -> str:
    log.start_timer("fetch")
    try:
        async with session.get(url, headers=headers) as response:
            if not 200 <= response.status < 300:
                log.warn("Page fetch failed", {"url": url, "status": response.status})
                raise errors.PageFetchError(url, f"HTTP {response.status}", status=response.status)
            html = await response.text(errors="replace")
    except aiohttp.ClientError as exc:
        log.warn("Page fetch error", {"url": url, "error": str(exc)})
        raise errors.PageFetchError(url, f"Network error: {exc}") from exc
    except TimeoutError as exc:
        log.warn("Page fetch timed out", {"url": url})
        raise errors.PageFetchError(url, "Request timed out") from exc

    log.end_timer("fetch", "Page fetched")
    log.debug("Page body received", {"url": url, "length": len(html)})
    return html


def fetch_page_sync(url: str, settings: config.Settings | None = None) -> str:
    """Blocking wrapper around ``fetch_page`` for the CLI."""
    return asyncio.run(fetch_page(url, settings))
