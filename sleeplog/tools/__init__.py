"""Tool definitions for MCP exposure."""

from .database import run as run_database_mcp_server, server as database_mcp_server

__all__ = ["database_mcp_server", "run_database_mcp_server"]
