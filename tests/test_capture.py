"""Capture session flow: single-session rule, quota, and sink isolation."""

import pytest

from circlesnip.capture import CaptureCoordinator, CaptureSettings, is_capturable_url
from circlesnip.errors import CircleSnipError, DecodeError, SessionActiveError, UpgradeRequired
from circlesnip.geometry import Circle, Viewport

from conftest import decode_png

VIEWPORT = Viewport(400, 300)
CIRCLE = Circle(200, 150, 100)


class RecordingFileSink:
    def __init__(self, tmp_path):
        self.tmp_path = tmp_path
        self.calls = []

    def __call__(self, png, filename, directory=None):
        self.calls.append(filename)
        path = self.tmp_path / filename
        path.write_bytes(png)
        return path


def failing_clipboard(png):
    raise RuntimeError("clipboard permission denied")


def make_coordinator(tmp_path, clipboard=lambda png: True, **kwargs):
    file_sink = RecordingFileSink(tmp_path)
    coordinator = CaptureCoordinator(clipboard_sink=clipboard, file_sink=file_sink, **kwargs)
    return coordinator, file_sink


def test_clipboard_failure_still_saves(tmp_path, screenshot_800x600):
    coordinator, file_sink = make_coordinator(tmp_path, clipboard=failing_clipboard)
    outcome = coordinator.start(screenshot_800x600, VIEWPORT).capture(CIRCLE)

    assert outcome.copied is False
    assert outcome.saved is True
    assert outcome.status_message == "Saved"
    assert file_sink.calls == [outcome.filename]
    assert decode_png(outcome.saved_path.read_bytes()).size == (200, 200)


def test_clipboard_returning_false_is_not_reported(tmp_path, screenshot_800x600):
    coordinator, _ = make_coordinator(tmp_path, clipboard=lambda png: False)
    outcome = coordinator.start(screenshot_800x600, VIEWPORT).capture(CIRCLE)
    assert outcome.status_message == "Saved"


def test_both_sinks_succeed(tmp_path, screenshot_800x600):
    coordinator, _ = make_coordinator(tmp_path)
    outcome = coordinator.start(screenshot_800x600, VIEWPORT).capture(CIRCLE)
    assert outcome.status_message == "Copied and saved"
    assert outcome.data_url.startswith("data:image/png;base64,")


def test_no_sink_succeeds(tmp_path, screenshot_800x600):
    coordinator = CaptureCoordinator(clipboard_sink=lambda png: False, file_sink=lambda png, name, d=None: None)
    outcome = coordinator.start(screenshot_800x600, VIEWPORT).capture(CIRCLE)
    assert outcome.copied is False and outcome.saved is False
    assert outcome.status_message == "Capture ready"


def test_disabled_sinks_are_not_called(tmp_path, screenshot_800x600):
    coordinator, file_sink = make_coordinator(
        tmp_path,
        clipboard=failing_clipboard,
        settings=CaptureSettings(auto_copy=False, auto_download=False),
    )
    outcome = coordinator.start(screenshot_800x600, VIEWPORT).capture(CIRCLE)
    assert file_sink.calls == []
    assert outcome.status_message == "Capture ready"


def test_only_one_session_at_a_time(tmp_path, screenshot_800x600):
    coordinator, _ = make_coordinator(tmp_path)
    session = coordinator.start(screenshot_800x600, VIEWPORT)
    with pytest.raises(SessionActiveError):
        coordinator.start(screenshot_800x600, VIEWPORT)

    session.cancel()
    assert not session.active
    assert coordinator.active_session is None
    coordinator.start(screenshot_800x600, VIEWPORT)


def test_session_closes_after_capture(tmp_path, screenshot_800x600):
    coordinator, _ = make_coordinator(tmp_path)
    session = coordinator.start(screenshot_800x600, VIEWPORT)
    session.capture(CIRCLE)

    assert coordinator.active_session is None
    with pytest.raises(CircleSnipError):
        session.capture(CIRCLE)


def test_decode_error_propagates_and_releases_session(tmp_path):
    coordinator, file_sink = make_coordinator(tmp_path)
    session = coordinator.start(b"garbage", VIEWPORT)
    with pytest.raises(DecodeError):
        session.capture(CIRCLE)

    assert coordinator.active_session is None
    assert coordinator.capture_count == 0
    assert file_sink.calls == []


def test_free_quota_blocks_before_processing(tmp_path, screenshot_800x600):
    coordinator, file_sink = make_coordinator(tmp_path, capture_count=3)
    assert coordinator.remaining_free_captures == 0

    session = coordinator.start(screenshot_800x600, VIEWPORT)
    with pytest.raises(UpgradeRequired):
        session.capture(CIRCLE)
    assert file_sink.calls == []
    assert coordinator.active_session is None


def test_entitled_install_is_unlimited(tmp_path, screenshot_800x600):
    coordinator, _ = make_coordinator(tmp_path, capture_count=50, entitled=True)
    assert coordinator.remaining_free_captures is None
    coordinator.start(screenshot_800x600, VIEWPORT).capture(CIRCLE)
    assert coordinator.capture_count == 51


def test_captures_count_toward_quota(tmp_path, screenshot_800x600):
    coordinator, _ = make_coordinator(tmp_path)
    for _ in range(3):
        coordinator.start(screenshot_800x600, VIEWPORT).capture(CIRCLE)
    assert coordinator.remaining_free_captures == 0
    with pytest.raises(UpgradeRequired):
        coordinator.start(screenshot_800x600, VIEWPORT).capture(CIRCLE)


def test_initial_circle_is_centered(screenshot_800x600):
    session = CaptureCoordinator().start(screenshot_800x600, VIEWPORT)
    circle = session.initial_circle()
    assert (circle.x, circle.y) == (200, 150)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.com/page", True),
        ("file:///tmp/a.html", True),
        ("chrome://settings", False),
        ("chrome-extension://abc/popup.html", False),
        ("edge://flags", False),
        ("about:blank", False),
        ("", False),
    ],
)
def test_is_capturable_url(url, expected):
    assert is_capturable_url(url) is expected
