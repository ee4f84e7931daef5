from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import asdict
from functools import partial
from pathlib import Path
from random import Random
from typing import Optional, Sequence, Tuple

import curses

from catalog_picker import __version__
from catalog_picker.catalog import sample_catalog, scan_directory
from catalog_picker.errors import (
    ChannelClosedError,
    LayoutError,
    RenderError,
    TerminalCapabilityError,
    TerminalLostError,
)
from catalog_picker.events import ResizeListener
from catalog_picker.log import logger, setup_logger
from catalog_picker.models import CatalogEntry
from catalog_picker.paths import ENV_CPICK_LOG_FILE, ENV_CPICK_LOG_LEVEL, default_log_file, resolve_log_level
from catalog_picker.tasks import simulated_transfer
from catalog_picker.terminal import restore_terminal
from catalog_picker.tui import SelectionResult, select_entries


def load_catalog(*, directory: Optional[Path], count: int, seed: Optional[int]) -> Tuple[CatalogEntry, ...]:
    if directory is not None:
        return scan_directory(directory)
    return sample_catalog(count, rng=Random(seed))


def cmd_list(entries: Sequence[CatalogEntry], *, pretty: bool) -> int:
    payload = [asdict(e) for e in entries]
    txt = json.dumps(payload, ensure_ascii=False, indent=2 if pretty else None)
    sys.stdout.write(txt + "\n")
    return 0


def _run_tui(entries: Sequence[CatalogEntry], *, header: str, delay_s: float) -> SelectionResult:
    listener = ResizeListener()

    def _inner(stdscr: "curses.window") -> SelectionResult:
        return select_entries(
            stdscr,
            entries=entries,
            header=header,
            action=partial(simulated_transfer, duration_s=delay_s),
            resize_source=listener,
        )

    # The listener must block SIGWINCH before curses starts and before any worker thread exists.
    listener.start()
    try:
        return curses.wrapper(_inner)
    finally:
        listener.close()
        restore_terminal()


def cmd_tui(entries: Sequence[CatalogEntry], *, header: str, delay_s: float) -> int:
    if not entries:
        print("Catalog is empty; nothing to select.")
        return 1

    try:
        result = _run_tui(entries, header=header, delay_s=delay_s)
    except LayoutError as e:
        print(f"Error: {e}. Enlarge the window and try again.", file=sys.stderr)
        return 2
    except (TerminalCapabilityError, curses.error) as e:
        term = os.environ.get("TERM")
        msg = str(e) or "curses error"
        logger.error("terminal setup failed: %s", msg)
        print(f"Error: failed to initialize terminal UI: {msg}", file=sys.stderr)
        if term:
            print(f"Tip: your TERM is {term!r}. If this system lacks terminfo for it, try:", file=sys.stderr)
        else:
            print("Tip: TERM is not set. Try:", file=sys.stderr)
        print("  TERM=xterm-256color cpick", file=sys.stderr)
        print("Tip: if you are running without a TTY, use `cpick list`.", file=sys.stderr)
        return 2
    except TerminalLostError as e:
        logger.error("terminal lost: %s", e)
        print(f"Error: the terminal stopped responding during the session: {e}", file=sys.stderr)
        return 1
    except (RenderError, ChannelClosedError) as e:
        logger.error("picker aborted: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.info("picker finished: reason=%s launched=%s", result.reason, result.launched)
    if result.reason == "completed" and result.launched is not None:
        print(f"Transferred {len(result.launched)} entries:")
        for name in result.launched:
            print(f"- {name}")
    elif result.launched is not None:
        print(f"Quit while transferring {len(result.launched)} entries; transfer abandoned.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="cpick", description="Pick catalog entries to transfer (terminal-only)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--dir",
        dest="directory",
        default=None,
        help="Build the catalog from the files in this directory (default: random sample data).",
    )
    parser.add_argument("--count", type=int, default=20, help="Number of sample entries (default: 20).")
    parser.add_argument("--seed", type=int, default=None, help="Seed for sample data.")
    parser.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help=f"Write logs here (or set ${ENV_CPICK_LOG_FILE}).",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        help=f"Log level name or number (or set ${ENV_CPICK_LOG_LEVEL}; default INFO).",
    )

    sub = parser.add_subparsers(dest="command")

    p_tui = sub.add_parser("tui", help="Start the interactive picker (default).")
    p_tui.add_argument(
        "--delay",
        type=float,
        default=5.0,
        help="Seconds the stand-in transfer takes (default: 5).",
    )

    p_list = sub.add_parser("list", help="Print the catalog as JSON.")
    p_list.add_argument("--pretty", action="store_true", help="Pretty-print JSON.")

    args = parser.parse_args(argv)

    log_file = Path(args.log_file).expanduser() if args.log_file else default_log_file()
    try:
        setup_logger(log_file, resolve_log_level(args.log_level))
    except OSError as e:
        print(f"Warning: logging disabled ({e})", file=sys.stderr)
        setup_logger(None)

    directory = Path(args.directory).expanduser() if args.directory else None
    if directory is not None and not directory.is_dir():
        print(f"Error: not a directory: {directory}", file=sys.stderr)
        return 2
    try:
        entries = load_catalog(directory=directory, count=args.count, seed=args.seed)
    except OSError as e:
        print(f"Error: failed to read catalog: {e}", file=sys.stderr)
        return 1
    logger.debug("loaded %d catalog entries", len(entries))

    cmd = args.command or "tui"
    if cmd == "list":
        return cmd_list(entries, pretty=bool(args.pretty))
    if cmd == "tui":
        header = f"{len(entries)} entries available" + (f" in {directory}" if directory else "")
        return cmd_tui(entries, header=header, delay_s=float(getattr(args, "delay", 5.0)))

    parser.print_help()
    return 2
