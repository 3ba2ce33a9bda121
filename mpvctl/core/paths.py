from pathlib import Path
import os

APP_NAME = "mpvctl"


def config_dir() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / APP_NAME


def runtime_dir() -> Path:
    """
    Where mpv is usually told to put its IPC socket.

    Prefer XDG_RUNTIME_DIR (systemd user session),
    fall back to /tmp for non-systemd shells.
    """
    base = os.environ.get("XDG_RUNTIME_DIR") or "/tmp"
    return Path(base) / "mpv"


def default_socket() -> Path:
    # matches: mpv --input-ipc-server=$XDG_RUNTIME_DIR/mpv/mpv.sock
    return runtime_dir() / "mpv.sock"
