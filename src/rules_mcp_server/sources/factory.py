"""Factory for creating rule sources based on configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..document_source import RuleSource
from .github_repo import GitHubRepositorySource
from .local_dir import LocalDirectorySource

if TYPE_CHECKING:
    from ..config import AppConfig


def create_rule_source(config: AppConfig) -> RuleSource:
    """Create a rule source based on configuration.

    Args:
        config: Application configuration.

    Returns:
        RuleSource implementation (local directory or GitHub repository).

    Raises:
        ValueError: If source is invalid or required config is missing.
    """
    source_type = config.source.lower()

    if source_type == "local":
        return LocalDirectorySource(config.rules_dir)

    elif source_type == "github":
        if not config.github_owner or not config.github_repo:
            raise ValueError(
                "RULES_GITHUB_OWNER and RULES_GITHUB_REPO are required when using "
                "the github rule source. Set them in your environment or .env file."
            )

        return GitHubRepositorySource(
            config.github_owner,
            config.github_repo,
            branch=config.github_branch,
            path=config.github_path,
            token=config.github_token,
            api_base=config.github_api_base,
            timeout_seconds=config.timeout_seconds,
        )

    else:
        raise ValueError(
            f"Invalid source: {source_type}. Must be 'local' or 'github'."
        )
