"""Equity research tools."""

from research_mcp.tools.sections import research_section
from research_mcp.tools.snapshot import research_snapshot

__all__ = [
    "research_section",
    "research_snapshot",
]
