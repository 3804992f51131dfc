"""MCP tools backed by the snippet services."""

from .server import mcp

__all__ = ["mcp"]
