import subprocess

from circlesnip import sinks


def test_download_writes_file(tmp_path):
    path = sinks.download(b"\x89PNG-data", "circle-snip_2026-01-28_09-30-00.png", tmp_path)
    assert path == tmp_path / "circle-snip_2026-01-28_09-30-00.png"
    assert path.read_bytes() == b"\x89PNG-data"


def test_download_creates_missing_directory(tmp_path):
    target_dir = tmp_path / "nested" / "downloads"
    path = sinks.download(b"png", "a.png", target_dir)
    assert path is not None and path.exists()


def test_download_rejects_path_in_filename(tmp_path):
    assert sinks.download(b"png", "../escape.png", tmp_path) is None
    assert sinks.download(b"png", "", tmp_path) is None
    assert not (tmp_path.parent / "escape.png").exists()


def test_download_failure_returns_none(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file")
    assert sinks.download(b"png", "a.png", blocker) is None


def test_copy_to_clipboard_success(monkeypatch):
    calls = []

    def fake_run(cmd, input=None, capture_output=False, timeout=None):
        calls.append((cmd, input))
        return subprocess.CompletedProcess(cmd, 0, b"", b"")

    monkeypatch.setattr(sinks.subprocess, "run", fake_run)
    assert sinks.copy_to_clipboard(b"png", command=["wl-copy", "--type", "image/png"]) is True
    assert calls == [(["wl-copy", "--type", "image/png"], b"png")]


def test_copy_to_clipboard_tool_failure(monkeypatch):
    monkeypatch.setattr(
        sinks.subprocess, "run",
        lambda cmd, **kw: subprocess.CompletedProcess(cmd, 1, b"", b"no display"),
    )
    assert sinks.copy_to_clipboard(b"png", command=["xclip"]) is False


def test_copy_to_clipboard_missing_binary(monkeypatch):
    def fake_run(cmd, **kw):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(sinks.subprocess, "run", fake_run)
    assert sinks.copy_to_clipboard(b"png", command=["wl-copy"]) is False


def test_copy_to_clipboard_without_tool(monkeypatch):
    monkeypatch.setattr(sinks, "clipboard_command", lambda: None)
    assert sinks.copy_to_clipboard(b"png") is False


def test_clipboard_command_prefers_wayland(monkeypatch):
    monkeypatch.setenv("WAYLAND_DISPLAY", "wayland-0")
    monkeypatch.setenv("DISPLAY", ":0")
    monkeypatch.setattr(sinks.shutil, "which", lambda name: f"/usr/bin/{name}")
    assert sinks.clipboard_command()[0] == "wl-copy"


def test_clipboard_command_none_without_display(monkeypatch):
    monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
    monkeypatch.delenv("DISPLAY", raising=False)
    assert sinks.clipboard_command() is None


def test_clipboard_command_falls_back_to_xclip(monkeypatch):
    monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
    monkeypatch.setenv("DISPLAY", ":0")
    monkeypatch.setattr(sinks.shutil, "which", lambda name: f"/usr/bin/{name}")
    assert sinks.clipboard_command() == ["xclip", "-selection", "clipboard", "-t", "image/png", "-i"]
