"""Response envelopes: meta, data provenance and errors."""

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Any

from research_mcp import SCHEMA_VERSION, SERVER_VERSION

# Error types returned by the tools
INVALID_INPUT = "invalid_input"
NO_DATA = "no_data"
DATA_UNAVAILABLE = "data_unavailable"


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string ending in Z."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_meta(tool: str, duration_ms: float | None = None) -> dict[str, Any]:
    """
    Meta block identifying the server, schema and tool behind a response.

    Args:
        tool: Tool name
        duration_ms: Wall time spent, rounded to 0.1 ms (omitted when None)
    """
    meta: dict[str, Any] = {
        "server_version": SERVER_VERSION,
        "schema_version": SCHEMA_VERSION,
        "tool": tool,
    }
    if duration_ms is not None:
        meta["duration_ms"] = round(duration_ms, 1)
    return meta


def build_provenance(
    source: str | None,
    as_of: datetime | str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """
    Provenance for one block of a response.

    `source` is None when nothing could be obtained. A `warnings` list is
    always present so clients never need to test for it.
    """
    provenance: dict[str, Any] = {"source": source}
    if isinstance(as_of, datetime):
        provenance["as_of"] = as_of.isoformat()
    elif as_of is not None:
        provenance["as_of"] = as_of
    provenance.update(extra)
    provenance.setdefault("warnings", [])
    return provenance


def build_section_provenance(
    sources_used: Sequence[str],
    attempts: Iterable[dict[str, Any]],
    missing: Iterable[str],
    insight_source: str,
) -> dict[str, Any]:
    """
    Provenance for a scraped section.

    The first source that supplied any field is the section's source; every
    attempt is listed in order, and each field no source could supply
    becomes a warning.
    """
    return build_provenance(
        source=sources_used[0] if sources_used else None,
        as_of=utc_timestamp(),
        sources=list(sources_used),
        attempts=list(attempts),
        insight=insight_source,
        warnings=[f"{name} not available" for name in missing],
    )


def build_error_response(
    error_type: str,
    message: str,
    symbol: str | None = None,
) -> dict[str, Any]:
    """
    Error envelope returned by tools instead of raising.

    Args:
        error_type: INVALID_INPUT, NO_DATA or DATA_UNAVAILABLE
        message: What went wrong, for the caller
        symbol: Symbol the request was about, when known
    """
    response: dict[str, Any] = {
        "error": True,
        "error_type": error_type,
        "message": message,
        "meta": build_meta("error"),
    }
    if symbol is not None:
        response["symbol"] = symbol
    return response
