"""Command-line interface for the revise scheduler.

Commands
--------
- ``scan FILE``       – schedule follow-ups in one note
- ``scan-all VAULT``  – schedule follow-ups in every note of a vault
- ``watch VAULT``     – keep running and react to notes as they are saved
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from revise_scheduler.config import TRIGGERS, ConfigError, SchedulerConfig, load_config
from revise_scheduler.host import FileSystemVault, LogNotifier
from revise_scheduler.revise import DEFAULT_DESCRIPTOR, RevisePlugin
from revise_scheduler.stages import LADDERS

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--ladder", choices=sorted(LADDERS), help="Ladder preset (default: spaced)")
    common.add_argument("--config", type=Path, help="Plugin descriptor TOML with a [plugin.settings] table")
    common.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    parser = argparse.ArgumentParser(prog="revise-scheduler")
    sub = parser.add_subparsers(dest="command", required=True)

    p_scan = sub.add_parser("scan", parents=[common], help="Scan & schedule in one note")
    p_scan.add_argument("file", type=Path)
    p_scan.add_argument("--vault", type=Path, help="Vault root (default: the note's directory)")
    p_scan.set_defaults(func=cmd_scan)

    p_all = sub.add_parser("scan-all", parents=[common], help="Scan & schedule across a vault")
    p_all.add_argument("vault", type=Path)
    p_all.set_defaults(func=cmd_scan_all)

    p_watch = sub.add_parser("watch", parents=[common], help="Process notes as they change")
    p_watch.add_argument("vault", type=Path)
    p_watch.add_argument("--trigger", choices=TRIGGERS, help="React to any save or only to ticked boxes")
    p_watch.add_argument("--interval", type=float, help="Polling interval in seconds")
    p_watch.set_defaults(func=cmd_watch)

    return parser


def _config(args: argparse.Namespace) -> SchedulerConfig:
    return load_config(
        args.config,
        ladder=args.ladder,
        trigger=getattr(args, "trigger", None),
        poll_interval=getattr(args, "interval", None),
    )


def _plugin(vault: FileSystemVault, config: SchedulerConfig) -> RevisePlugin:
    plugin = RevisePlugin(DEFAULT_DESCRIPTOR, config)
    plugin.on_load(vault, LogNotifier())
    return plugin


# ---------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------


def cmd_scan(args: argparse.Namespace) -> int:
    if not args.file.is_file():
        print(f"Error: no such file: {args.file}", file=sys.stderr)
        return 1
    vault = FileSystemVault(args.vault or args.file.parent)
    try:
        doc_id = vault.doc_id_for(args.file)
    except ValueError:
        print(f"Error: {args.file} is not inside {vault.vault_dir}", file=sys.stderr)
        return 1
    plugin = _plugin(vault, _config(args))
    result = asyncio.run(plugin.scan_current(doc_id))
    return 0 if result is not None else 1


def cmd_scan_all(args: argparse.Namespace) -> int:
    if not args.vault.is_dir():
        print(f"Error: no such directory: {args.vault}", file=sys.stderr)
        return 1
    plugin = _plugin(FileSystemVault(args.vault), _config(args))
    asyncio.run(plugin.scan_all())
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    if not args.vault.is_dir():
        print(f"Error: no such directory: {args.vault}", file=sys.stderr)
        return 1
    vault = FileSystemVault(args.vault)
    plugin = _plugin(vault, _config(args))
    try:
        asyncio.run(watch_vault(plugin, vault))
    except KeyboardInterrupt:
        logger.info("Stopped watching %s", vault.vault_dir)
    return 0


async def watch_vault(plugin: RevisePlugin, vault: FileSystemVault, *, max_polls: int | None = None) -> None:
    """Poll *vault* for saved notes and forward them to *plugin*'s hooks."""
    config = plugin.config
    vault.poll_changes(config.extension)
    if config.trigger == "checkbox":
        for doc_id in vault.list_documents(config.extension):
            plugin.on_document_opened(doc_id, vault.checkbox_items(doc_id))

    logger.info("Watching %s (%s trigger)", vault.vault_dir, config.trigger)
    polls = 0
    try:
        while max_polls is None or polls < max_polls:
            await asyncio.sleep(config.poll_interval)
            polls += 1
            for doc_id in vault.poll_changes(config.extension):
                if config.trigger == "checkbox":
                    try:
                        items = vault.checkbox_items(doc_id)
                    except (OSError, UnicodeError):
                        logger.warning("Cannot read %s", doc_id, exc_info=True)
                        continue
                    plugin.on_checkbox_metadata_changed(doc_id, items)
                else:
                    plugin.on_document_changed(doc_id)
        if plugin.scheduler is not None:
            await plugin.scheduler.drain()
    finally:
        await plugin.on_unload()


# ---------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
