"""CLI entry point for vaultrag."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from vaultrag.configs import Settings, get_settings
from vaultrag.coordinator import IndexCoordinator
from vaultrag.errors import ConfigError, ProviderError
from vaultrag.sources import FolderWatcher

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def _coordinator(settings: Settings) -> IndexCoordinator:
    try:
        return IndexCoordinator.from_settings(settings)
    except ConfigError as exc:
        logger.error(f"Configuration error: {exc}")
        sys.exit(1)


async def _build(coordinator: IndexCoordinator, force: bool) -> None:
    try:
        await coordinator.build_index(force_rebuild=force)
    except ProviderError as exc:
        logger.error(f"Failed to build RAG index: {exc}")
        await coordinator.aclose()
        sys.exit(1)


async def build(settings: Settings, force: bool = False) -> None:
    """Build the index, from cache unless forced.

    Args:
        settings: Loaded settings
        force: Ignore any cache and re-embed every document
    """
    coordinator = _coordinator(settings)
    await _build(coordinator, force)
    stats = coordinator.stats()
    logger.info(f"RAG index ready: {stats.total_chunks} chunks from {stats.total_files} files")
    await coordinator.aclose()


async def query(settings: Settings, text: str, k: int | None = None) -> None:
    """Print the context the index retrieves for a piece of text."""
    coordinator = _coordinator(settings)
    contexts = await coordinator.retrieve_context(text, k)
    await coordinator.aclose()

    if not contexts:
        print("No related notes found.")
        return
    for i, context in enumerate(contexts, 1):
        print(f"[{i}] {context}")
        print("-" * 80)


async def stats(settings: Settings) -> None:
    """Show information about the index."""
    coordinator = _coordinator(settings)
    await _build(coordinator, force=False)
    info = coordinator.stats()
    await coordinator.aclose()

    print(f"Vault: {Path(settings.documents_dir).absolute()}")
    print(f"  Cache: {settings.cache_path}")
    print(f"  Provider: {info.provider}")
    print(f"  Built: {info.is_built}")
    print(f"  Files: {info.total_files}")
    print(f"  Chunks: {info.total_chunks}")


async def style(settings: Settings) -> None:
    """Print the detected note style of the vault."""
    coordinator = _coordinator(settings)
    await _build(coordinator, force=False)
    description = coordinator.analyze_style()
    await coordinator.aclose()
    print(description or "No distinctive note style detected.")


async def clear(settings: Settings) -> None:
    """Delete the index cache."""
    coordinator = _coordinator(settings)
    await coordinator.clear_index()
    await coordinator.aclose()


async def watch(settings: Settings) -> None:
    """Build the index, then keep it in sync with the vault until interrupted."""
    coordinator = _coordinator(settings)
    await _build(coordinator, force=False)

    watcher = FolderWatcher(coordinator.source, settings.watch_interval_seconds)
    logger.info(f"Watching {settings.documents_dir} for changes (Ctrl+C to stop)")
    try:
        await watcher.watch(coordinator.apply_change)
    finally:
        await coordinator.aclose()


def serve(settings: Settings, transport: str = "stdio") -> None:
    """Start an MCP server over the vault.

    Args:
        settings: Loaded settings
        transport: Transport protocol (stdio or sse)
    """
    # Import here to avoid loading MCP unless needed
    from vaultrag.server import create_mcp_server

    from typing import cast, Literal

    coordinator = _coordinator(settings)
    logger.info(f"Serving {settings.documents_dir} via {transport}")
    mcp = create_mcp_server(coordinator)
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="vaultrag",
        description="vaultrag - semantic retrieval over a vault of notes",
    )
    parser.add_argument(
        "--vault",
        help="Vault folder to index (default: VAULTRAG_DOCUMENTS_DIR or .)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # build command
    build_parser = subparsers.add_parser("build", help="Build the index (from cache if fresh)")
    build_parser.add_argument(
        "--force",
        action="store_true",
        help="Ignore the cache and re-embed every note",
    )

    # query command
    query_parser = subparsers.add_parser("query", help="Retrieve context for a piece of text")
    query_parser.add_argument("text", help="Text to find related notes for")
    query_parser.add_argument("--k", type=int, default=None, help="Maximum notes to return")

    subparsers.add_parser("stats", help="Show index statistics")
    subparsers.add_parser("style", help="Describe the vault's note style")
    subparsers.add_parser("clear", help="Delete the index cache")
    subparsers.add_parser("watch", help="Keep the index in sync with the vault")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start an MCP server for the vault")
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )

    args = parser.parse_args()

    settings = get_settings()
    if args.vault:
        settings = settings.model_copy(update={"documents_dir": Path(args.vault)})
    logging.getLogger().setLevel(settings.log_level.upper())

    if args.command == "build":
        asyncio.run(build(settings, args.force))
    elif args.command == "query":
        asyncio.run(query(settings, args.text, args.k))
    elif args.command == "stats":
        asyncio.run(stats(settings))
    elif args.command == "style":
        asyncio.run(style(settings))
    elif args.command == "clear":
        asyncio.run(clear(settings))
    elif args.command == "watch":
        try:
            asyncio.run(watch(settings))
        except KeyboardInterrupt:
            logger.info("Stopped watching")
    elif args.command == "serve":
        serve(settings, args.transport)


if __name__ == "__main__":
    main()
