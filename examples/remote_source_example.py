"""Example: Using the GitHub Repository Rule Source

This script demonstrates how to build a snapshot from a GitHub
repository without starting the MCP server, then run a second refresh
to show the ETag short-circuit.
"""

import os
from pathlib import Path

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rules_mcp_server.config import AppConfig
from rules_mcp_server.sources import create_rule_source
from rules_mcp_server.store import SnapshotStore
from rules_mcp_server.synchronizer import SnapshotSynchronizer


def main():
    """Example usage of the github rule source."""

    owner = os.getenv("RULES_GITHUB_OWNER")
    repo = os.getenv("RULES_GITHUB_REPO")
    if not owner or not repo:
        print("❌ Error: RULES_GITHUB_OWNER / RULES_GITHUB_REPO not set")
        print("\nTo use github mode:")
        print("  export RULES_GITHUB_OWNER=acme RULES_GITHUB_REPO=team-rules")
        print("  python examples/remote_source_example.py")
        sys.exit(1)

    print("🚀 Rules GitHub Source Example")
    print("=" * 50)

    config = AppConfig(source="github", github_owner=owner, github_repo=repo)
    print(f"✓ Configuration loaded")
    print(f"  Source: {config.source_location}")
    print()

    try:
        source = create_rule_source(config)
    except ValueError as e:
        print(f"❌ Failed to create rule source: {e}")
        sys.exit(1)

    store = SnapshotStore()
    synchronizer = SnapshotSynchronizer(source, store)

    print("📥 Fetching rules...")
    report = synchronizer.refresh()
    print(f"✓ Refresh {report.status}, {len(store.read())} rules")
    for failure in report.failures:
        print(f"  ⚠️  {failure.name}: {failure.error}")
    for name, rule in store.read().items():
        print(f"  - {rule.title} ({name}) [{rule.fingerprint}]")

    print("\n🔄 Refreshing again (expect not_modified)...")
    report = synchronizer.refresh()
    print(f"✓ Refresh {report.status}, generation {store.snapshot().generation}")

    source.close()


if __name__ == "__main__":
    main()
