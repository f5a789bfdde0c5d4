"""Equity Research MCP Server."""

import os
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _dist_version

DISTRIBUTION = "research-mcp"


def get_server_version() -> str:
    """SERVER_VERSION from the environment, else the installed version, else "dev"."""
    override = os.environ.get("SERVER_VERSION")
    if override:
        return override
    try:
        return _dist_version(DISTRIBUTION)
    except PackageNotFoundError:
        return "dev"


SERVER_VERSION = get_server_version()
# Bump when the response layout changes (fields added, renamed or moved)
# 1: snapshot header and single-section responses
# 2: per-section data_provenance, sections attached to the snapshot
SCHEMA_VERSION = "2"
