"""MCP server for vaultrag."""

from vaultrag.server.mcp_server import create_mcp_server

__all__ = ["create_mcp_server"]
