#!/usr/bin/env python3
import queue
import threading

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Footer, Header, Label
from textual.worker import get_current_worker

from mpvctl.core import commands, config
from mpvctl.core.connection import Connection, connect
from mpvctl.core.errors import MpvctlError

SEEK_STEP = 5
REFRESH_SECONDS = 1.0
POLL_SECONDS = 0.2

_REFRESH = "refresh"


def format_position(seconds) -> str:
    if seconds is None:
        return "--:--"
    seconds = int(seconds)
    h, rest = divmod(seconds, 3600)
    m, s = divmod(rest, 60)
    if h:
        return f"{h}:{m:02}:{s:02}"
    return f"{m:02}:{s:02}"


class StatusChanged(Message):
    def __init__(self, text: str) -> None:
        super().__init__()
        self.text = text


class PlaybackChanged(Message):
    def __init__(self, paused, position) -> None:
        super().__init__()
        self.paused = paused
        self.position = position


class MpvRemote(App):
    """
    mpv remote. All socket I/O happens on one worker thread that works
    through a job queue in order; the UI only ever sees messages.
    """

    TITLE = "mpvctl"

    CSS = """
    Screen {
        background: black;
    }
    #main {
        border: round white;
        padding: 1 1;
    }
    #status {
        margin-top: 1;
        height: 3;
        border: round white;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("space", "toggle", "Play/Pause"),
        Binding("p", "pause", "Pause"),
        Binding("r", "play", "Resume"),
        Binding("left", "seek_back", f"-{SEEK_STEP}s"),
        Binding("right", "seek_forward", f"+{SEEK_STEP}s"),
    ]

    position: reactive[str] = reactive("--:--")

    def __init__(self, cfg: dict | None = None, conn: Connection | None = None):
        super().__init__()
        self.cfg = cfg if cfg is not None else config.settings()
        self.conn = conn
        self._jobs: queue.Queue = queue.Queue()
        self._stopping = threading.Event()
        self.last_status = "Ready."

    # ------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        with Vertical(id="main"):
            yield Label(f"Socket: {self.cfg['socket']}")
            self.playback = Label("Not connected.", id="playback")
            yield self.playback
            self.status_label = Label("Ready.", id="status")
            yield self.status_label

        yield Footer()

    def on_mount(self) -> None:
        self.mpv_worker()
        self.queue_refresh()
        self.set_interval(REFRESH_SECONDS, self.queue_refresh)

    def on_unmount(self) -> None:
        self._stopping.set()
        self._jobs.put(None)

    # ------------------------------------------------------------
    # mpv (worker thread)
    # ------------------------------------------------------------

    @work(thread=True, exclusive=True, name="mpv")
    def mpv_worker(self) -> None:
        worker = get_current_worker()
        try:
            while not (self._stopping.is_set() or worker.is_cancelled):
                try:
                    job = self._jobs.get(timeout=POLL_SECONDS)
                except queue.Empty:
                    continue
                if job is None or self._stopping.is_set():
                    break
                if job != _REFRESH:
                    fn, args, verb = job
                    self._call(fn, *args, verb=verb)
                self._refresh()
        finally:
            if self.conn is not None:
                self.conn.release()

    def _connection(self) -> Connection:
        if self.conn is not None and not self.conn.closed:
            return self.conn
        if self.conn is not None:
            # broken or out of step: start over
            self.conn.release()
            self.conn = None
        self.conn = connect(self.cfg["socket"], timeout=self.cfg["timeout"])
        return self.conn

    def _call(self, fn, *args, verb: str | None = None):
        try:
            result = fn(
                self._connection(),
                *args,
                max_lines=self.cfg["max_lines"],
                timeout=self.cfg["timeout"],
            )
        except MpvctlError as e:
            self.post_message(StatusChanged(f"Error: {e}"))
            return None
        if verb:
            self.post_message(StatusChanged(verb))
        return result

    def _refresh(self) -> None:
        paused = self._call(commands.get_property, "pause")
        pos = self._call(commands.get_property, "time-pos")
        self.post_message(PlaybackChanged(paused, pos))

    # ------------------------------------------------------------
    # UI
    # ------------------------------------------------------------

    def queue_refresh(self) -> None:
        # skip when commands are still waiting; each one refreshes anyway
        if self._jobs.empty():
            self._jobs.put(_REFRESH)

    def send(self, fn, *args, verb: str | None = None) -> None:
        self._jobs.put((fn, args, verb))

    def on_status_changed(self, message: StatusChanged) -> None:
        self.set_status(message.text)

    def on_playback_changed(self, message: PlaybackChanged) -> None:
        pos = message.position
        self.position = format_position(pos if isinstance(pos, (int, float)) else None)
        state = {True: "Paused", False: "Playing"}.get(message.paused, "Unknown")
        self.playback.update(f"{state}  {self.position}")

    # ------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------

    def action_toggle(self):
        self.send(commands.toggle_pause, verb="Toggled pause.")

    def action_play(self):
        self.send(commands.play, verb="Playing.")

    def action_pause(self):
        self.send(commands.pause, verb="Paused.")

    def action_seek_back(self):
        self.send(commands.seek, commands.TimeStamp(-SEEK_STEP, "relative"), verb=f"Seek -{SEEK_STEP}s")

    def action_seek_forward(self):
        self.send(commands.seek, commands.TimeStamp(SEEK_STEP, "relative"), verb=f"Seek +{SEEK_STEP}s")

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------

    def set_status(self, msg: str):
        self.last_status = msg
        self.status_label.update(msg)


def main(cfg: dict | None = None):
    # the mpv worker owns the connection and releases it on exit
    MpvRemote(cfg).run()


if __name__ == "__main__":
    main()
