"""Pydantic schemas for resource entries and tool inputs/outputs.

These models define the stable JSON contracts the MCP server returns.
The server converts them into MCP SDK types at the protocol edge.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

MARKDOWN_MIME_TYPE = "text/markdown"


class RuleResource(BaseModel):
    """Listing view of one rule.

    Attributes:
        uri: Resource identifier, e.g. ``rule:///style.md``.
        name: Display name (the rule title).
        description: Human-readable description embedding title and filename.
        mime_type: Always markdown.
    """

    uri: str
    name: str
    description: str
    mime_type: str = MARKDOWN_MIME_TYPE


class RuleResourceContent(BaseModel):
    uri: str
    mime_type: str = MARKDOWN_MIME_TYPE
    text: str


class FetchFailure(BaseModel):
    name: str
    error: Optional[str] = None


# Inputs


class RulesStatusInput(BaseModel):
    """The status tool takes no arguments."""


class RefreshRulesInput(BaseModel):
    """The refresh tool takes no arguments."""


# Outputs


class RulesStatusOutput(BaseModel):
    source: Literal["local", "github"]
    location: str
    source_info: Dict[str, Any] = Field(default_factory=dict)
    document_count: int
    generation: int
    published_at: Optional[str] = None
    last_refresh_status: Optional[str] = None
    last_refresh_ts: Optional[str] = None
    last_error: Optional[str] = None
    failures: List[FetchFailure] = Field(default_factory=list)


class RefreshRulesOutput(BaseModel):
    success: bool
    status: str
    message: str
    document_count: int
    generation: int
    added: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    changed: List[str] = Field(default_factory=list)
    failures: List[FetchFailure] = Field(default_factory=list)
