"""Pydantic models for the messages exchanged between the page
context, the background process and the popup."""

from __future__ import annotations

from typing import Annotated, Literal

import pydantic

from privacy_analyzer.models import report
from privacy_analyzer.utils.serialization import snake_to_camel


class _MessageModel(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True
    )


class TrackerDetectedMessage(_MessageModel):
    """Static findings for one page load, sent once per load."""

    type: Literal["TRACKER_DETECTED"]
    data: report.AnalysisReport


class CanvasFingerprintMessage(_MessageModel):
    """A single runtime canvas interception, sent asynchronously."""

    type: Literal["CANVAS_FINGERPRINT"]
    data: report.CanvasInterceptionEvent


class GetTrackersMessage(_MessageModel):
    """Popup request for the accumulated log of a tab."""

    type: Literal["GET_TRACKERS"]
    tab_id: int | None = None


ExtensionMessage = Annotated[
    TrackerDetectedMessage | CanvasFingerprintMessage | GetTrackersMessage,
    pydantic.Field(discriminator="type"),
]

MESSAGE_ADAPTER: pydantic.TypeAdapter[ExtensionMessage] = pydantic.TypeAdapter(ExtensionMessage)


class SenderTab(_MessageModel):
    """The tab a message originated from."""

    id: int | None = None
    url: str | None = None


class MessageSender(_MessageModel):
    """Sender metadata attached to a message by the host."""

    tab: SenderTab | None = None


class GetTrackersResponse(_MessageModel):
    """Response to ``GET_TRACKERS``: the tab log, most recent last."""

    trackers: list[report.AnalysisReport] = pydantic.Field(default_factory=list)
