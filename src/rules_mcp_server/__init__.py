"""Rules MCP Server package.

This package provides a read-only MCP server exposing markdown "rules"
as resources. Rules come from exactly one source per instance:

Sources:
- Local directory (default): every read rebuilds the snapshot from disk;
  a watchdog observer logs changes as they happen.
- GitHub repository: a background poller refreshes the snapshot using
  ETag conditional requests to avoid re-downloading unchanged listings.

Usage example:
    from rules_mcp_server.server import main
    if __name__ == "__main__":
        main()
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
