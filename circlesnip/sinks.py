"""Output sinks for finished captures (clipboard + file).

Both sinks are best effort: failures are logged and reported as a falsy
return value, never raised, so one sink can fail without stopping the other.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CLIPBOARD_TIMEOUT_S = 5


def clipboard_command() -> Optional[list[str]]:
    """Pick a clipboard tool that accepts PNG on stdin, or None."""
    if os.environ.get("WAYLAND_DISPLAY") and shutil.which("wl-copy"):
        return ["wl-copy", "--type", "image/png"]
    if os.environ.get("DISPLAY") and shutil.which("xclip"):
        return ["xclip", "-selection", "clipboard", "-t", "image/png", "-i"]
    return None


def copy_to_clipboard(png: bytes, command: Optional[list[str]] = None) -> bool:
    """Write PNG bytes to the system clipboard.

    Args:
        png: Encoded PNG
        command: Override clipboard tool argv (defaults to clipboard_command())

    Returns:
        True if the clipboard tool accepted the image
    """
    command = command or clipboard_command()
    if not command:
        logger.warning("Failed to copy to clipboard: no clipboard tool available")
        return False

    try:
        result = subprocess.run(
            command, input=png, capture_output=True, timeout=CLIPBOARD_TIMEOUT_S
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Failed to copy to clipboard: {e}")
        return False

    if result.returncode != 0:
        stderr = result.stderr.decode(errors="replace").strip()
        logger.warning(f"Failed to copy to clipboard: {command[0]} exited {result.returncode} {stderr}")
        return False
    return True


def default_download_dir() -> Path:
    return Path.home() / "Downloads"


def download(png: bytes, filename: str, directory: Optional[Path] = None) -> Optional[Path]:
    """Save PNG bytes as directory/filename.

    Returns:
        Written path, or None when the save could not be started
    """
    if not filename or Path(filename).name != filename:
        logger.warning(f"Download rejected: invalid filename {filename!r}")
        return None

    target_dir = Path(directory) if directory is not None else default_download_dir()
    target = target_dir / filename
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        target.write_bytes(png)
    except OSError as e:
        logger.warning(f"Download failed for {target}: {e}")
        return None

    logger.info(f"Saved capture to {target}")
    return target
