"""MCP stdio tool server."""

from .server import serve

__all__ = ["serve"]
