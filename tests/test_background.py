"""Tests for privacy_analyzer.extension.background: message dispatch."""

from __future__ import annotations

import pytest

from privacy_analyzer.extension import background, store
from privacy_analyzer.models import messages, report
from privacy_analyzer.utils import errors

SENDER = {"tab": {"id": 7, "url": "https://example.com/"}}


@pytest.fixture()
def service() -> background.BackgroundService:
    return background.BackgroundService(store.TabReportStore(clock=lambda: 5000))


def _tracker_message(**data: object) -> dict[str, object]:
    return {"type": "TRACKER_DETECTED", "data": {"url": "https://example.com/", **data}}


# ── TRACKER_DETECTED ────────────────────────────────────────────


class TestTrackerDetected:
    """Tests for TRACKER_DETECTED handling."""

    def test_appended_to_sender_tab(self, service: background.BackgroundService) -> None:
        assert service.handle_message(_tracker_message(thirdPartyDomains=["t.io"]), SENDER) is None
        entries = service.store.get(7)
        assert len(entries) == 1
        assert entries[0].third_party_domains == ["t.io"]

    def test_missing_arrays_default_to_empty(self, service: background.BackgroundService) -> None:
        service.handle_message(_tracker_message(), SENDER)
        entry = service.store.get(7)[0]
        assert entry.third_party_domains == []
        assert entry.inline_eval_patterns == []
        assert entry.fingerprinting_apis == []
        assert entry.summary.total_third_party_domains == 0

    def test_summary_recomputed_from_arrays(self, service: background.BackgroundService) -> None:
        message = _tracker_message(
            thirdPartyDomains=["a.io", "b.io"],
            summary={"totalThirdPartyDomains": 99, "totalEvalPatterns": 0, "totalFingerprintingAPIs": 0},
        )
        service.handle_message(message, SENDER)
        assert service.store.get(7)[0].summary.total_third_party_domains == 2

    def test_without_tab_ignored(self, service: background.BackgroundService) -> None:
        service.handle_message(_tracker_message(), None)
        assert len(service.store) == 0

    def test_arrival_order_kept(self, service: background.BackgroundService) -> None:
        service.handle_message(_tracker_message(url="https://a.io/"), SENDER)
        service.handle_message(_tracker_message(url="https://b.io/"), SENDER)
        assert [e.url for e in service.store.get(7)] == ["https://a.io/", "https://b.io/"]


# ── CANVAS_FINGERPRINT ──────────────────────────────────────────


class TestCanvasFingerprint:
    """Tests for CANVAS_FINGERPRINT handling."""

    def test_stored_as_canvas_only_entry(self, service: background.BackgroundService) -> None:
        message = {"type": "CANVAS_FINGERPRINT", "data": {"method": "toDataURL", "width": 16, "height": 16}}
        service.handle_message(message, SENDER)

        entry = service.store.get(7)[0]
        assert entry.url == "https://example.com/"
        assert entry.timestamp == 5000
        assert entry.third_party_domains == []
        assert [e.method for e in entry.canvas_detections] == ["toDataURL"]

    def test_event_url_and_timestamp_take_precedence(self, service: background.BackgroundService) -> None:
        message = {
            "type": "CANVAS_FINGERPRINT",
            "data": {"method": "getImageData", "url": "https://frame.example/", "timestamp": 42},
        }
        service.handle_message(message, SENDER)

        entry = service.store.get(7)[0]
        assert (entry.url, entry.timestamp) == ("https://frame.example/", 42)

    def test_merged_into_latest_view(self, service: background.BackgroundService) -> None:
        service.handle_message(_tracker_message(thirdPartyDomains=["t.io"]), SENDER)
        service.handle_message({"type": "CANVAS_FINGERPRINT", "data": {"method": "toDataURL"}}, SENDER)

        view = service.latest(7)
        assert view is not None
        assert view.third_party_domains == ["t.io"]
        assert len(view.canvas_detections) == 1


# ── GET_TRACKERS ────────────────────────────────────────────────


class TestGetTrackers:
    """Tests for GET_TRACKERS handling."""

    def test_returns_log(self, service: background.BackgroundService) -> None:
        service.handle_message(_tracker_message(), SENDER)
        response = service.handle_message({"type": "GET_TRACKERS", "tabId": 7})

        assert isinstance(response, messages.GetTrackersResponse)
        assert len(response.trackers) == 1

    def test_unknown_tab(self, service: background.BackgroundService) -> None:
        response = service.handle_message({"type": "GET_TRACKERS", "tabId": 99})
        assert response == messages.GetTrackersResponse(trackers=[])

    def test_parsed_message_accepted(self, service: background.BackgroundService) -> None:
        response = service.handle_message(messages.GetTrackersMessage(type="GET_TRACKERS", tab_id=1))
        assert response is not None
        assert response.trackers == []


# ── Errors and teardown ─────────────────────────────────────────


class TestDispatchErrors:
    """Tests for malformed messages."""

    def test_unknown_type(self, service: background.BackgroundService) -> None:
        with pytest.raises(errors.InvalidMessageError):
            service.handle_message({"type": "NOPE"}, SENDER)

    def test_bad_canvas_method(self, service: background.BackgroundService) -> None:
        with pytest.raises(errors.InputError):
            service.handle_message({"type": "CANVAS_FINGERPRINT", "data": {"method": "fillText"}}, SENDER)


class TestTabRemoval:
    """Tests for on_tab_removed()."""

    def test_removes_log(self, service: background.BackgroundService) -> None:
        service.handle_message(_tracker_message(), SENDER)
        assert service.on_tab_removed(7) is True
        assert service.store.get(7) == []
        assert service.latest(7) is None

    def test_sender_model_accepted(self, service: background.BackgroundService) -> None:
        sender = messages.MessageSender(tab=messages.SenderTab(id=3))
        service.handle_message(_tracker_message(), sender)
        assert isinstance(service.store.get(3)[0], report.AnalysisReport)
