"""CLI interface for aosp_probe."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import time

from . import __version__
from .config import SOURCES, load_config


def _cmd_watch(args: argparse.Namespace) -> None:
    """Run collectors and print every delivered snapshot."""
    cfg = load_config(args.config)

    from rich.console import Console

    from .collector.manager import CollectorManager
    from .console import print_snapshot

    console = Console()
    manager = CollectorManager(cfg)
    for source in args.sources:
        manager.subscribe(source, lambda snap, src=source: print_snapshot(src, snap, console))

    stop = False

    def _handle_signal(_sig: int, _frame: object) -> None:
        nonlocal stop
        stop = True

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    manager.start()
    print(f"aosp_probe watching {', '.join(args.sources)}")
    print("Press Ctrl+C to stop.\n")
    try:
        while not stop:
            time.sleep(0.5)
    finally:
        manager.stop()
    print("\nCollection stopped.")


def _cmd_once(args: argparse.Namespace) -> None:
    """Collect a single snapshot and print it."""
    cfg = load_config(args.config)

    from .collector.manager import CollectorManager
    from .console import print_snapshot

    manager = CollectorManager(cfg)
    print_snapshot(args.source, manager.collect_once(args.source))


def _cmd_sources(args: argparse.Namespace) -> None:
    cfg = load_config(args.config)
    for name in SOURCES:
        entry = cfg.collector(name)
        state = "enabled" if entry.enabled else "disabled"
        print(f"{name:<12} every {entry.interval_seconds:>4.1f}s  {state}")


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"aosp_probe {__version__}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the aosp-probe CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        prog="aosp-probe",
        description="Poll AOSP diagnostic sources and print structured snapshots",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to aosp_probe.yaml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # watch
    watch_p = sub.add_parser("watch", help="Poll sources and print each snapshot")
    watch_p.add_argument("sources", nargs="+", choices=SOURCES, help="Sources to watch")
    watch_p.set_defaults(func=_cmd_watch)

    # once
    once_p = sub.add_parser("once", help="Collect and print one snapshot")
    once_p.add_argument("source", choices=SOURCES, help="Source to collect")
    once_p.set_defaults(func=_cmd_once)

    # sources
    sources_p = sub.add_parser("sources", help="List sources and their schedule")
    sources_p.set_defaults(func=_cmd_sources)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
