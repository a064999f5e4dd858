"""
Background message dispatcher.

Receives the messages the extension exchanges between the page
context and the popup and keeps the per-tab report log:

* ``TRACKER_DETECTED``: one static report per page load;
* ``CANVAS_FINGERPRINT``: zero or more runtime canvas events,
  each stored as its own canvas-only entry;
* ``GET_TRACKERS``: returns the full log of a tab.

Messages from older senders may omit the optional arrays; they are
defaulted to empty lists on validation.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pydantic

from privacy_analyzer.extension import store
from privacy_analyzer.models import messages, report
from privacy_analyzer.utils import errors, logger

log = logger.create_logger("Background")


class BackgroundService:
    """Dispatches extension messages against a ``TabReportStore``."""

    def __init__(self, tab_store: store.TabReportStore | None = None) -> None:
        self.store = tab_store or store.TabReportStore()

    @staticmethod
    def parse_message(raw: Mapping[str, Any]) -> messages.ExtensionMessage:
        """Validate a raw message dict.

        Raises:
            errors.InvalidMessageError: If the message type is unknown
                or its payload is malformed.
        """
        try:
            return messages.MESSAGE_ADAPTER.validate_python(raw)
        except pydantic.ValidationError as exc:
            raise errors.InvalidMessageError(
                f"Invalid message: {exc.errors()[0]['msg']}" if exc.errors() else "Invalid message"
            ) from exc

    def handle_message(
        self,
        raw: Mapping[str, Any] | messages.ExtensionMessage,
        sender: messages.MessageSender | Mapping[str, Any] | None = None,
    ) -> messages.GetTrackersResponse | None:
        """Handle one message.

        Args:
            raw: The message, as a dict or an already parsed model.
            sender: Sender metadata; messages from the page context
                without a tab id are ignored.

        Returns:
            The response for ``GET_TRACKERS``, otherwise ``None``.
        """
        message = raw if isinstance(raw, pydantic.BaseModel) else self.parse_message(raw)
        if sender is None or isinstance(sender, messages.MessageSender):
            meta = sender or messages.MessageSender()
        else:
            meta = messages.MessageSender.model_validate(sender)
        tab_id = meta.tab.id if meta.tab else None

        match message:
            case messages.TrackerDetectedMessage(data=data):
                if tab_id is None:
                    log.warn("TRACKER_DETECTED without sender tab, ignoring")
                    return None
                self.store.append(tab_id, data)
                log.info(
                    "Page report received",
                    {"tabId": tab_id, "url": data.url, "thirdPartyDomains": data.summary.total_third_party_domains},
                )
                return None

            case messages.CanvasFingerprintMessage(data=event):
                if tab_id is None:
                    log.warn("CANVAS_FINGERPRINT without sender tab, ignoring")
                    return None
                entry = report.AnalysisReport(
                    url=event.url or (meta.tab.url if meta.tab else None),
                    timestamp=event.timestamp if event.timestamp is not None else self.store.now(),
                    canvas_detections=[event],
                )
                self.store.append(tab_id, entry)
                log.info("Canvas event received", {"tabId": tab_id, "method": event.method})
                return None

            case messages.GetTrackersMessage(tab_id=requested):
                trackers = self.store.get(requested) if requested is not None else []
                return messages.GetTrackersResponse(trackers=trackers)

        return None

    def on_tab_removed(self, tab_id: int) -> bool:
        """Tear down the log of a closed tab."""
        return self.store.remove(tab_id)

    def latest(self, tab_id: int) -> report.AnalysisReport | None:
        """Merged view of the most recent page load of *tab_id*."""
        return store.latest_view(self.store.get(tab_id))
