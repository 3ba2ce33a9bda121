# mpvctl/cli/main.py

import json
import logging
import sys

from mpvctl.core import commands, config
from mpvctl.core.connection import connect
from mpvctl.core.errors import ConnectError, MpvctlError
from mpvctl.core.log import setup_logging

logger = logging.getLogger(__name__)


HELP = """mpvctl — control a running mpv over its IPC socket

Usage:
  mpvctl [--socket PATH] [--timeout SECONDS] [-v] <command> [args...]

Playback:
  mpvctl pause
  mpvctl play
  mpvctl toggle
  mpvctl seek <[+-]SECONDS|MM:SS|HH:MM:SS|N%>
  mpvctl stop
  mpvctl quit

Properties:
  mpvctl get <property>
  mpvctl set <property> <value>
  mpvctl raw <command> [args...]

Interactive:
  mpvctl tui

mpv must be started with --input-ipc-server=PATH.
"""

EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_CONNECT = 3


def fail(msg: str, code: int = EXIT_ERROR):
    print(f"mpvctl: {msg}", file=sys.stderr)
    sys.exit(code)


# ------------------------------------------------------------
# Option parsing
# ------------------------------------------------------------

def parse_options(argv: list[str]) -> tuple[dict, list[str]]:
    """
    Split leading global options from the command words.
    """
    opts: dict = {}
    rest = list(argv)

    while rest and rest[0].startswith("-"):
        flag = rest.pop(0)

        if flag in ("-h", "--help"):
            opts["help"] = True
            continue

        if flag in ("-v", "--verbose"):
            opts["log_level"] = "DEBUG"
            continue

        name, eq, value = flag.partition("=")
        if name in ("-s", "--socket", "--timeout"):
            if not eq:
                if not rest:
                    fail(f"{name} needs a value", EXIT_USAGE)
                value = rest.pop(0)
            key = "timeout" if name == "--timeout" else "socket"
            opts[key] = value
            continue

        # negative seek offsets look like flags
        rest.insert(0, flag)
        break

    return opts, rest


# ------------------------------------------------------------
# Entry
# ------------------------------------------------------------

def main(argv: list[str] | None = None):
    argv = sys.argv[1:] if argv is None else argv
    opts, words = parse_options(argv)

    if opts.pop("help", False) or not words or words[0] == "help":
        print(HELP)
        return

    try:
        cfg = config.settings(opts)
    except ValueError as e:
        fail(str(e), EXIT_USAGE)

    setup_logging(cfg["log_level"])

    cmd, *args = words

    if cmd == "tui":
        from mpvctl.tui.app import main as tui_main
        tui_main(cfg)
        return

    dispatch_command(cfg, cmd, args)


# ------------------------------------------------------------
# Command dispatch
# ------------------------------------------------------------

def dispatch_command(cfg: dict, cmd: str, args: list[str]) -> None:
    if cmd not in commands.SIMPLE_COMMANDS and cmd not in ("seek", "get", "set", "raw"):
        fail(f"unknown command: {cmd} (see mpvctl --help)", EXIT_USAGE)

    if cmd == "seek" and args:
        try:
            commands.parse_timestamp(args[0])
        except ValueError as e:
            fail(str(e), EXIT_USAGE)

    try:
        with connect(cfg["socket"], timeout=cfg["timeout"]) as conn:
            result = commands.dispatch(
                conn,
                cmd,
                args,
                max_lines=cfg["max_lines"],
                timeout=cfg["timeout"],
            )
    except ConnectError as e:
        fail(f"cannot connect to mpv: {e}", EXIT_CONNECT)
    except ValueError as e:
        fail(str(e), EXIT_USAGE)
    except MpvctlError as e:
        logger.debug("%s failed", cmd, exc_info=True)
        fail(f"{cmd}: {e}")

    if cmd in ("get", "raw"):
        print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
