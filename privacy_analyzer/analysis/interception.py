"""
Runtime canvas interception.

Wraps three canvas-related capabilities of a host environment so
that every call is reported as a ``CanvasInterceptionEvent``:

* ``to_data_url`` and ``get_image_data`` report synchronously, on
  every call;
* ``create_element`` arms a fire-once timer for each new canvas and
  reports it if the canvas is still detached from the document when
  the timer fires (canvases that are drawn but never shown are a
  common fingerprinting technique).

Interception is best effort.  Failures while inspecting the live
objects, or inside the event callback, are swallowed and the
original call always runs and returns its own result.

The wrapping is explicit: ``install_interception`` takes the
original capabilities and returns wrapped ones, it never patches
shared objects in place.

``privacy_analyzer.browser.live_page._CANVAS_INIT_SCRIPT`` is the
in-browser counterpart of this module.  Keep the two in step: same
wrapped methods, same detached-canvas check, same note text.
"""

from __future__ import annotations

import dataclasses
import functools
import threading
import time
from collections.abc import Callable, Mapping
from typing import Any

import pydantic

from privacy_analyzer.models import report
from privacy_analyzer.utils import errors, logger

log = logger.create_logger("CanvasInterception")

EventSink = Callable[[report.CanvasInterceptionEvent], None]
Describer = Callable[..., report.CanvasInterceptionEvent | None]
Scheduler = Callable[[float, Callable[[], None]], object]
Clock = Callable[[], float]

# Seconds a new canvas may stay detached before it is reported.
DEFAULT_ATTACH_DELAY = 1.0

DETACHED_CANVAS_NOTE = "Canvas created but not attached to the document"


@dataclasses.dataclass(frozen=True)
class CanvasCapabilities:
    """The host capabilities subject to interception.

    Attributes:
        to_data_url: ``(canvas, *args) -> str``.
        get_image_data: ``(context, *args) -> image data``.
        create_element: ``(tag_name, *args) -> element``.
        is_attached: ``(element) -> bool``, whether the element is
            part of the visible document.
    """

    to_data_url: Callable[..., Any] | None = None
    get_image_data: Callable[..., Any] | None = None
    create_element: Callable[..., Any] | None = None
    is_attached: Callable[[Any], bool] | None = None


def timer_scheduler(delay: float, callback: Callable[[], None]) -> threading.Timer:
    """Run *callback* once after *delay* seconds on a daemon timer."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


def _now_ms() -> float:
    return int(time.time() * 1000)


# ============================================================================
# Introspection helpers
# ============================================================================


def _introspect(fn: Callable[[], Any]) -> Any:
    """Run *fn*, converting any failure into ``IntrospectionError``."""
    try:
        return fn()
    except Exception as exc:
        raise errors.IntrospectionError(str(exc)) from exc


def _dimension(obj: Any, name: str) -> int | None:
    value = _introspect(lambda: getattr(obj, name, None))
    if value is None:
        return None
    return int(value)


def _attached(host: CanvasCapabilities, element: Any) -> bool:
    if host.is_attached is None:
        return False
    return bool(_introspect(lambda: host.is_attached(element)))  # type: ignore[misc]


def _deliver(describe: Describer, sink: EventSink, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
    """Describe a call and hand the event to *sink*, swallowing failures."""
    try:
        event = describe(*args, **kwargs)
        if event is not None:
            sink(event)
    except Exception as exc:
        log.debug("Canvas introspection failed", {"error": str(exc), "type": type(exc).__name__})


def wrap_capability(original: Callable[..., Any], describe: Describer, sink: EventSink) -> Callable[..., Any]:
    """Wrap *original* so that each call is described and reported.

    The event is emitted before the original runs, and the original
    result (or exception) passes through unchanged.
    """

    @functools.wraps(original)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        _deliver(describe, sink, args, kwargs)
        return original(*args, **kwargs)

    return wrapper


# ============================================================================
# Installation
# ============================================================================


def install_interception(
    host: CanvasCapabilities,
    callback: EventSink,
    *,
    scheduler: Scheduler = timer_scheduler,
    delay: float = DEFAULT_ATTACH_DELAY,
    clock: Clock = _now_ms,
) -> CanvasCapabilities | None:
    """Return *host* with its canvas capabilities wrapped.

    Args:
        host: Original capabilities.  Missing ones stay missing.
        callback: Receives every ``CanvasInterceptionEvent``.
        scheduler: Arms the fire-once attachment check.
        delay: Seconds before a detached canvas is reported.
        clock: Returns the event timestamp in epoch milliseconds.

    Returns:
        The wrapped capabilities, or ``None`` when the host offers
        nothing to intercept.
    """
    if host.to_data_url is None and host.get_image_data is None and host.create_element is None:
        log.debug("Canvas APIs unavailable, interception not installed")
        return None

    def describe_to_data_url(canvas: Any, *_args: Any, **_kwargs: Any) -> report.CanvasInterceptionEvent:
        return report.CanvasInterceptionEvent(
            method="toDataURL",
            width=_dimension(canvas, "width"),
            height=_dimension(canvas, "height"),
            in_dom=_attached(host, canvas),
            timestamp=clock(),
        )

    def describe_get_image_data(context: Any, *_args: Any, **_kwargs: Any) -> report.CanvasInterceptionEvent:
        canvas = _introspect(lambda: getattr(context, "canvas", None))
        return report.CanvasInterceptionEvent(
            method="getImageData",
            width=_dimension(canvas, "width") if canvas is not None else None,
            height=_dimension(canvas, "height") if canvas is not None else None,
            in_dom=_attached(host, canvas) if canvas is not None else False,
            timestamp=clock(),
        )

    def check_attachment(element: Any) -> None:
        def describe() -> report.CanvasInterceptionEvent | None:
            if _attached(host, element):
                return None
            width = _dimension(element, "width")
            height = _dimension(element, "height")
            # A zero-sized canvas cannot render anything to read back.
            if width == 0 or height == 0:
                return None
            return report.CanvasInterceptionEvent(
                method="createElement",
                width=width,
                height=height,
                in_dom=False,
                timestamp=clock(),
                note=f"{DETACHED_CANVAS_NOTE} within {delay:g}s",
            )

        _deliver(describe, callback, (), {})

    def create_element(tag_name: Any, *args: Any, **kwargs: Any) -> Any:
        element = host.create_element(tag_name, *args, **kwargs)  # type: ignore[misc]
        if host.is_attached is not None and isinstance(tag_name, str) and tag_name.lower() == "canvas":
            try:
                scheduler(delay, lambda: check_attachment(element))
            except Exception as exc:
                log.debug("Could not arm canvas attachment check", {"error": str(exc)})
        return element

    wrapped = dataclasses.replace(
        host,
        to_data_url=wrap_capability(host.to_data_url, describe_to_data_url, callback) if host.to_data_url else None,
        get_image_data=wrap_capability(host.get_image_data, describe_get_image_data, callback) if host.get_image_data else None,
        create_element=functools.wraps(host.create_element)(create_element) if host.create_element else None,
    )
    log.debug(
        "Canvas interception installed",
        {
            "toDataURL": host.to_data_url is not None,
            "getImageData": host.get_image_data is not None,
            "createElement": host.create_element is not None,
        },
    )
    return wrapped


def event_from_payload(payload: Mapping[str, Any] | None) -> report.CanvasInterceptionEvent | None:
    """Validate a raw event payload reported from a live page.

    Returns ``None`` for payloads that do not describe a known
    canvas call.
    """
    if not payload:
        return None
    try:
        return report.CanvasInterceptionEvent.model_validate(payload)
    except pydantic.ValidationError as exc:
        log.debug("Ignoring malformed canvas event", {"errors": exc.error_count()})
        return None
