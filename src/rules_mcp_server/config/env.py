"""Environment configuration for the Rules MCP Server.

Exactly one rule source is active per running instance. Select it and
point it at the rules with environment variables:

```bash
# local directory (default)
export RULES_SOURCE=local
export RULES_RULES_DIR="~/.roo/rules"

# or a GitHub repository, polled every RULES_POLL_INTERVAL_SECONDS
export RULES_SOURCE=github
export RULES_GITHUB_OWNER=acme
export RULES_GITHUB_REPO=team-rules
export RULES_GITHUB_BRANCH=main
export RULES_GITHUB_PATH=rules
export RULES_GITHUB_TOKEN=ghp_...   # optional, raises the rate limit
```

these are rendered to the AppConfig class and can be accessed like this:
```python
from rules_mcp_server.config import load_config
cfg = load_config()
print(cfg.rules_dir)
```
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SourceKind = Literal["local", "github"]


def _expand_path(p: str | Path | None) -> Path | None:
    """Expand ~ and environment variables in a path-like value."""
    if p is None:
        return None
    if isinstance(p, Path):
        s = str(p)
    else:
        s = p
    return Path(os.path.expanduser(os.path.expandvars(s)))


class AppConfig(BaseSettings):
    """Application configuration settings loaded from environment variables.

    All environment variables are prefixed with RULES_ (e.g., RULES_RULES_DIR).
    Paths are automatically expanded to resolve ~ and environment variables.
    """

    # ---- source selection ----
    source: SourceKind = Field(
        default="local",
        description="Which rule source is active: 'local' directory or 'github' repository",
    )

    # ---- local directory source ----
    rules_dir: Path = Field(
        default="~/.roo/rules",
        description="Directory containing the .md rule files",
    )
    reload_min_interval_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Reuse the last local rebuild if it is younger than this; 0 rebuilds on every read",
    )

    # ---- github repository source ----
    github_owner: Optional[str] = Field(
        default=None, description="Owner (user or organization) of the rules repository"
    )
    github_repo: Optional[str] = Field(
        default=None, description="Name of the rules repository"
    )
    github_branch: str = Field(default="main", description="Branch to read rules from")
    github_path: str = Field(
        default="rules", description="Subdirectory of the repository holding the rules"
    )
    github_token: Optional[str] = Field(
        default=None, description="Optional token sent as a bearer Authorization header"
    )
    github_api_base: str = Field(
        default="https://api.github.com", description="Base URL of the contents API"
    )
    poll_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Seconds between background refreshes of the github source",
    )

    # ---- network tuning ----
    timeout_seconds: int = Field(
        default=15, description="Network request timeout in seconds"
    )

    # ---- resource surface ----
    uri_scheme: str = Field(
        default="rule", description="Scheme of the resource URIs, e.g. rule:///style.md"
    )
    server_name: str = Field(
        default="roo-rules-server", description="Name reported to MCP clients"
    )
    log_level: str = Field(default="INFO", description="Logging level for stderr output")

    # pydantic-settings v2 config
    model_config = SettingsConfigDict(
        env_prefix="RULES_",
        case_sensitive=False,
        env_file=(".env",),  # will read if present
        env_file_encoding="utf-8",
        frozen=True,  # make settings immutable
    )

    # ---- validators ----
    @field_validator("rules_dir", mode="before")
    @classmethod
    def _expand_all_paths(cls, v):
        return _expand_path(v)

    @field_validator("github_path", mode="before")
    @classmethod
    def _strip_slashes(cls, v):
        return v.strip("/") if isinstance(v, str) else v

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    # ---- derived conveniences (no mutation) ----
    @property
    def source_location(self) -> str:
        """Human-readable location of the active source."""
        if self.source == "github":
            path = f"/{self.github_path}" if self.github_path else ""
            return (
                f"github:{self.github_owner}/{self.github_repo}@{self.github_branch}{path}"
            )
        return str(self.rules_dir)


def load_config() -> AppConfig:
    """Load and validate application configuration from environment variables.

    • All variables are prefixed with RULES_ (e.g., RULES_SOURCE).
    • Missing values fall back to the documented defaults.
    • Paths expand ~ and ${VARS}.
    """
    return AppConfig()
