"""Capture sessions: one screenshot -> one circle -> one crop -> sinks.

CaptureCoordinator owns the single-session rule (no new capture while one is
open) and the free-capture quota. CaptureSession holds the screenshot for the
interactive overlay and runs the pipeline once when the user captures.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .constants import SnipConstants
from .errors import CircleSnipError, SessionActiveError, UpgradeRequired
from .geometry import Circle, Viewport, default_circle
from .naming import generate_filename
from .processor import CircleCropProcessor, ImageSource, encode_data_url
from .sinks import copy_to_clipboard, download

logger = logging.getLogger(__name__)

RESTRICTED_URL_PREFIXES = ("chrome://", "chrome-extension://", "edge://", "about:")

ClipboardSink = Callable[[bytes], bool]
FileSink = Callable[[bytes, str, Optional[Path]], Optional[Path]]


def is_capturable_url(url: str) -> bool:
    """False for browser-internal pages that cannot be screenshotted."""
    return bool(url) and not url.startswith(RESTRICTED_URL_PREFIXES)


@dataclass
class CaptureSettings:
    auto_copy: bool = True
    auto_download: bool = True
    download_dir: Optional[Path] = None


@dataclass(frozen=True)
class CaptureOutcome:
    """Result of one capture plus which sinks actually succeeded."""

    png: bytes
    filename: str
    copied: bool = False
    saved_path: Optional[Path] = None

    @property
    def saved(self) -> bool:
        return self.saved_path is not None

    @property
    def data_url(self) -> str:
        return encode_data_url(self.png)

    @property
    def status_message(self) -> str:
        if self.copied and self.saved:
            return "Copied and saved"
        if self.copied:
            return "Copied"
        if self.saved:
            return "Saved"
        return "Capture ready"


def _run_sink(name: str, sink: Callable, *args):
    """Run one sink so its failure cannot affect the other."""
    try:
        return sink(*args)
    except Exception:
        logger.exception(f"{name} sink raised; treating as failed")
        return None


class CaptureSession:
    """Screenshot handed to the overlay, captured at most once."""

    def __init__(self, coordinator: "CaptureCoordinator", image: ImageSource, viewport: Viewport):
        self.session_id = uuid.uuid4().hex
        self.image = image
        self.viewport = viewport
        self._coordinator = coordinator
        self._open = True

    @property
    def active(self) -> bool:
        return self._open

    def initial_circle(self) -> Circle:
        return default_circle(self.viewport)

    def cancel(self) -> None:
        """Discard the overlay without processing (escape key)."""
        if self._open:
            logger.info(f"Capture session {self.session_id} cancelled")
            self._close()

    def capture(self, circle: Circle) -> CaptureOutcome:
        """Crop the circle and hand the PNG to the enabled sinks.

        Raises:
            UpgradeRequired: Free quota used up (session is closed)
            DecodeError / ProcessError: Crop failed (session is closed)
        """
        if not self._open:
            raise CircleSnipError(f"Capture session {self.session_id} is closed")

        coordinator = self._coordinator
        try:
            coordinator.check_quota()
            png = coordinator.processor.process(self.image, circle, self.viewport)
        finally:
            self._close()

        settings = coordinator.settings
        filename = generate_filename()

        copied = False
        if settings.auto_copy:
            copied = bool(_run_sink("Clipboard", coordinator.clipboard_sink, png))

        saved_path = None
        if settings.auto_download:
            saved_path = _run_sink("File", coordinator.file_sink, png, filename, settings.download_dir)

        coordinator.record_capture()
        outcome = CaptureOutcome(png=png, filename=filename, copied=copied, saved_path=saved_path)
        logger.info(f"Capture {filename}: {outcome.status_message}")
        return outcome

    def _close(self) -> None:
        self._open = False
        self._coordinator._release(self)


class CaptureCoordinator:
    """Hands out capture sessions, one at a time"""

    def __init__(
        self,
        processor: Optional[CircleCropProcessor] = None,
        settings: Optional[CaptureSettings] = None,
        entitled: bool = False,
        capture_count: int = 0,
        free_captures: int = SnipConstants.FREE_CAPTURES,
        clipboard_sink: ClipboardSink = copy_to_clipboard,
        file_sink: FileSink = download,
    ):
        self.processor = processor or CircleCropProcessor()
        self.settings = settings or CaptureSettings()
        self.entitled = entitled
        self.capture_count = capture_count
        self.free_captures = free_captures
        self.clipboard_sink = clipboard_sink
        self.file_sink = file_sink
        self._lock = threading.Lock()
        self._active: Optional[CaptureSession] = None

    @property
    def active_session(self) -> Optional[CaptureSession]:
        return self._active

    @property
    def remaining_free_captures(self) -> Optional[int]:
        if self.entitled:
            return None
        return max(0, self.free_captures - self.capture_count)

    def start(self, image: ImageSource, viewport: Viewport) -> CaptureSession:
        """Open a session for a freshly captured screenshot.

        Raises:
            SessionActiveError: Another session is still open
        """
        with self._lock:
            if self._active is not None:
                raise SessionActiveError(
                    f"Capture session {self._active.session_id} is already active"
                )
            session = CaptureSession(self, image, viewport)
            self._active = session
        logger.info(f"Capture session {session.session_id} started")
        return session

    def check_quota(self) -> None:
        if not self.entitled and self.capture_count >= self.free_captures:
            raise UpgradeRequired(
                f"Free limit of {self.free_captures} captures reached; upgrade for unlimited captures"
            )

    def record_capture(self) -> None:
        with self._lock:
            self.capture_count += 1

    def _release(self, session: CaptureSession) -> None:
        with self._lock:
            if self._active is session:
                self._active = None
