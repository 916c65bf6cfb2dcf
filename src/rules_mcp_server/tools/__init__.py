"""MCP tools for inspecting and refreshing the rule snapshot.

Each tool is exposed as a plain Python function to facilitate testing.
The server (see `server.py`) registers these with the MCP runtime. The
tool functions return Pydantic models.
"""

from .refresh import refresh_rules
from .status import rules_status

__all__ = [
    "refresh_rules",
    "rules_status",
]
