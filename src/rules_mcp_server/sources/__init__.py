"""Rule source implementations."""

from .factory import create_rule_source
from .github_repo import GitHubRepositorySource
from .local_dir import LocalDirectorySource

__all__ = ["GitHubRepositorySource", "LocalDirectorySource", "create_rule_source"]
