"""FastMCP server exposing the retrieval index to a host workflow."""

from mcp.server.fastmcp import FastMCP

from vaultrag.coordinator import IndexCoordinator
from vaultrag.errors import ProviderError


def create_mcp_server(coordinator: IndexCoordinator) -> FastMCP:
    """Create an MCP server over one index coordinator.

    Design: 1 process = 1 vault. The coordinator is the only owner of the
    index, so every tool goes through it.

    Args:
        coordinator: Coordinator serving the vault

    Returns:
        Configured FastMCP server instance
    """
    mcp = FastMCP(
        name="vaultrag",
    )

    @mcp.tool()
    async def retrieve_context(query: str, top_k: int = 0) -> str:
        """Find notes related to a piece of text.

        Use this before rewriting or refining text so the result can stay
        consistent with what the user has already written.

        Args:
            query: The text to find related material for
            top_k: Maximum number of notes to return (0 uses the configured default)

        Returns:
            Matching excerpts, one per note, separated by blank lines
        """
        contexts = await coordinator.retrieve_context(query, top_k or None)
        if not contexts:
            return f"No related notes found for: {query}"
        return "\n\n".join(contexts)

    @mcp.tool()
    def index_stats() -> str:
        """Report how many notes and chunks are indexed and which model embeds them."""
        stats = coordinator.stats()
        return (
            f"Built: {'yes' if stats.is_built else 'no'}\n"
            f"Files: {stats.total_files}\n"
            f"Chunks: {stats.total_chunks}\n"
            f"Provider: {stats.provider}"
        )

    @mcp.tool()
    async def rebuild_index() -> str:
        """Re-embed every note, ignoring the on-disk cache."""
        try:
            await coordinator.build_index(force_rebuild=True)
        except ProviderError as exc:
            return f"Error: index rebuild failed: {exc}"
        stats = coordinator.stats()
        return f"Indexed {stats.total_chunks} chunks from {stats.total_files} files"

    @mcp.tool()
    def note_style() -> str:
        """Summarize the user's typical note style (length, lists, headings)."""
        return coordinator.analyze_style() or "No distinctive note style detected"

    return mcp
