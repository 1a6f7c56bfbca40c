"""
Tubemusic CLI - Entry point and interactive host.

Wires configuration, logging, queue persistence, the playlist store, the
catalog client, the mpv device and the playback controller, then reads
commands until the user quits.
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger
from rich.table import Table

from tubemusic.core.config import (
    Config,
    ensure_directories,
    get_data_dir,
    get_storage_dir,
    load_config,
)
from tubemusic.core.output import get_console, log, safe_print, setup_loguru
from tubemusic.domain.catalog import CatalogService, HttpCatalogService
from tubemusic.domain.playback import (
    IDLE_LABEL,
    MpvPlaybackDevice,
    PlaybackController,
    check_mpv_available,
)
from tubemusic.domain.playlist import (
    AddTrack,
    JsonFileStorage,
    Next,
    Pause,
    PersistencePolicy,
    PlaylistStore,
    Previous,
    RemoveTrack,
    Resume,
    SelectRandom,
    SelectTrack,
    Track,
)
from tubemusic.exceptions import CatalogUnavailable
from tubemusic.utils import format_duration, parse_command, parse_position

HELP_TEXT = """Commands:
  search <query>   Search the catalog
  add <n>          Queue search result n
  list             Show the queue
  play [n]         Play queue entry n (or resume)
  pause | resume   Pause or resume playback
  toggle           Toggle play/pause
  next | prev      Skip forward / back
  random           Play a random queued track
  remove <n>       Remove queue entry n
  vol+ | vol-      Change volume
  status           Show what is playing
  help             Show this help
  quit             Exit"""


@dataclass
class HostContext:
    """Everything command handlers need."""

    config: Config
    store: PlaylistStore
    catalog: CatalogService
    controller: PlaybackController
    search_results: List[Track] = field(default_factory=list)


def _track_table(title: str, tracks: List[Track], current: int = -1, queued=None) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title")
    table.add_column("Uploader", style="cyan")
    table.add_column("Duration", justify="right")

    for i, track in enumerate(tracks):
        marker = f"{i + 1}"
        style = None
        if i == current:
            marker = f"▶ {i + 1}"
            style = "green"
        elif queued is not None and queued(track.id):
            marker = f"✓ {i + 1}"
            style = "dim"
        table.add_row(
            marker, track.title, track.uploader, format_duration(track.duration), style=style
        )
    return table


async def handle_search(ctx: HostContext, args: List[str]) -> None:
    query = " ".join(args).strip()
    if not query:
        log("Usage: search <query>", level="warning")
        return

    try:
        results = await ctx.catalog.search(query, ctx.config.catalog.search_limit)
    except CatalogUnavailable as e:
        log(f"❌ Search failed: {e}", level="error")
        return

    ctx.search_results = results
    if not results:
        log(f"No results for '{query}'", level="warning")
        return
    get_console().print(
        _track_table(f"Results for '{query}'", results, queued=ctx.store.state.contains)
    )


def handle_add(ctx: HostContext, args: List[str]) -> None:
    if not args:
        log("Usage: add <n>", level="warning")
        return
    index = parse_position(args[0], len(ctx.search_results))
    if index is None:
        log(f"No search result {args[0]}", level="warning")
        return

    track = ctx.search_results[index]
    if ctx.store.state.contains(track.id):
        log(f"'{track.title}' is already queued", level="warning")
        return
    ctx.store.dispatch(AddTrack(track))
    log(f"➕ Queued: {track.title}", level="success")


def handle_list(ctx: HostContext) -> None:
    state = ctx.store.state
    if not state.queue:
        safe_print("Queue is empty. Use 'search' and 'add' to queue tracks.")
        return
    total = sum(track.duration for track in state.queue)
    get_console().print(
        _track_table(
            f"Queue ({len(state.queue)} tracks, {format_duration(total)})",
            list(state.queue),
            current=state.position.current_index,
        )
    )


def handle_play(ctx: HostContext, args: List[str]) -> None:
    if not args:
        ctx.store.dispatch(Resume())
        return
    index = parse_position(args[0], len(ctx.store.state.queue))
    if index is None:
        log(f"No queue entry {args[0]}", level="warning")
        return
    ctx.store.dispatch(SelectTrack(index))


def handle_remove(ctx: HostContext, args: List[str]) -> None:
    if not args:
        log("Usage: remove <n>", level="warning")
        return
    queue = ctx.store.state.queue
    index = parse_position(args[0], len(queue))
    if index is None:
        log(f"No queue entry {args[0]}", level="warning")
        return
    track = queue[index]
    ctx.store.dispatch(RemoveTrack(track.id))
    log(f"🗑 Removed: {track.title}")


def handle_status(ctx: HostContext) -> None:
    state = ctx.store.state
    track = state.current_track
    if track is None:
        safe_print("Nothing selected")
        return
    progress = ctx.controller.progress
    status = "▶ Playing" if state.position.is_playing else "⏸ Paused"
    if ctx.controller.is_loading:
        status = "… Loading"
    safe_print(f"{status}: {track.title} - {track.uploader}")
    safe_print(f"   {progress.display()} ({progress.percent}%)", style="dim")


async def handle_command(ctx: HostContext, command: str, args: List[str]) -> bool:
    """
    Run one interactive command.

    Returns:
        False when the session should end
    """
    state = ctx.store.state

    match command:
        case "":
            pass
        case "quit" | "exit":
            return False
        case "help":
            safe_print(HELP_TEXT)
        case "search":
            await handle_search(ctx, args)
        case "add":
            handle_add(ctx, args)
        case "list" | "ls":
            handle_list(ctx)
        case "play":
            handle_play(ctx, args)
        case "pause":
            ctx.store.dispatch(Pause())
        case "resume":
            ctx.store.dispatch(Resume())
        case "toggle":
            ctx.store.dispatch(Pause() if state.position.is_playing else Resume())
        case "next" | "skip":
            ctx.store.dispatch(Next())
        case "prev" | "previous":
            ctx.store.dispatch(Previous())
        case "random" | "shuffle":
            ctx.store.dispatch(SelectRandom())
        case "remove" | "rm":
            handle_remove(ctx, args)
        case "vol+":
            safe_print(f"🔊 Volume {ctx.controller.increase_volume():.0%}")
        case "vol-":
            safe_print(f"🔉 Volume {ctx.controller.decrease_volume():.0%}")
        case "status":
            handle_status(ctx)
        case _:
            log(f"Unknown command: {command} (type 'help')", level="warning")

    return True


def _announce(label: str) -> None:
    if label != IDLE_LABEL:
        safe_print(f"♪ Now playing: {label}", style="green")


async def run_interactive(config: Config) -> int:
    """Run the interactive session until quit/EOF."""
    persistence = PersistencePolicy(
        JsonFileStorage(get_storage_dir(config)), key=config.storage.state_key
    )
    store = PlaylistStore(persistence.restore())
    persistence.attach(store)

    if not check_mpv_available():
        log("❌ mpv not found. Install mpv to play audio.", level="error")
        return 1

    device = MpvPlaybackDevice(config.player)
    if not device.start():
        log("❌ Could not start mpv", level="error")
        return 1

    catalog = HttpCatalogService(
        config.catalog.base_url, timeout=config.catalog.timeout_seconds
    )
    controller = PlaybackController(
        store,
        catalog,
        device,
        on_now_playing=_announce,
        on_error=lambda failure: safe_print(f"❌ {failure.message}", style="red"),
        resolve_timeout=config.catalog.timeout_seconds,
        volume_step=config.player.volume_step,
    )
    controller.attach()

    ctx = HostContext(config=config, store=store, catalog=catalog, controller=controller)
    safe_print(
        f"Tubemusic - {len(store.state.queue)} queued tracks. Type 'help' for commands.",
        style="bold",
    )

    try:
        while True:
            try:
                line = await asyncio.to_thread(input, "tubemusic> ")
            except EOFError:
                break
            command, args = parse_command(line)
            if not await handle_command(ctx, command, args):
                break
    finally:
        await controller.aclose()
        await device.aclose()
        catalog.close()
        logger.info("Session ended")

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tubemusic", description="Queue and play tracks from a remote catalog"
    )
    parser.add_argument("--config", type=Path, help="Path to config.toml")
    parser.add_argument("--catalog-url", help="Override catalog base URL")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    if args.catalog_url:
        config.catalog.base_url = args.catalog_url.rstrip("/")
    if args.log_level:
        config.logging.level = args.log_level

    ensure_directories(config)
    log_file = (
        Path(config.logging.log_file)
        if config.logging.log_file
        else get_data_dir() / "tubemusic.log"
    )
    setup_loguru(
        log_file,
        level=config.logging.level,
        console_output=config.logging.console_output,
    )

    try:
        return asyncio.run(run_interactive(config))
    except KeyboardInterrupt:
        safe_print("\nGoodbye!")
        return 0


if __name__ == "__main__":
    sys.exit(main())
