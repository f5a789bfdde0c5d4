"""Primary-then-fallback source resolution for section fields."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from research_mcp.data.extractors import extract_fields, is_empty
from research_mcp.data.sources import Source
from research_mcp.errors import FetchError
from research_mcp.models import SectionFields

logger = logging.getLogger(__name__)


class TextFetcher(Protocol):
    async def get_text(self, url: str) -> str: ...


@dataclass
class SourceAttempt:
    """Record of one source consulted during resolution."""

    source: str
    ok: bool
    fields_found: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        attempt: dict[str, Any] = {
            "source": self.source,
            "ok": self.ok,
            "fields_found": self.fields_found,
        }
        if self.error:
            attempt["error"] = self.error
        return attempt


@dataclass
class Resolution:
    """Merged fields for one section plus which sources supplied them."""

    fields: SectionFields
    attempts: list[SourceAttempt] = field(default_factory=list)

    @property
    def sources_used(self) -> list[str]:
        return [a.source for a in self.attempts if a.fields_found]

    @property
    def missing(self) -> list[str]:
        return [name for name, value in self.fields.items() if is_empty(value)]


def empty_fields(sources: Sequence[Source]) -> SectionFields:
    """Every field any source can supply, set to its empty value."""
    fields: SectionFields = {}
    for source in sources:
        for spec in source.fields:
            fields.setdefault(spec.name, spec.empty_value())
    return fields


class SourceFallbackResolver:
    """
    Fill a section's fields from an ordered list of sources.

    Sources are consulted in order. A source is fetched only if it can
    supply a field that is still empty, and it fills only empty fields, so
    the first non-empty value per field wins. Fetch failures, non-2xx
    answers and empty extractions all just move on to the next source; the
    result may be partial or entirely empty.
    """

    def __init__(self, fetcher: TextFetcher):
        self._fetcher = fetcher

    async def resolve(self, symbol: str, sources: Sequence[Source]) -> Resolution:
        fields = empty_fields(sources)
        resolution = Resolution(fields=fields)

        for source in sources:
            wanted = [spec for spec in source.fields if is_empty(fields[spec.name])]
            if not wanted:
                continue

            url = source.url(symbol)
            try:
                html = await self._fetcher.get_text(url)
            except FetchError as e:
                logger.info(f"resolve({symbol}): {source.name} unavailable ({e}), trying next source")
                resolution.attempts.append(SourceAttempt(source=source.name, ok=False, error=str(e)))
                continue

            extracted = extract_fields(html, wanted)
            found = [name for name, value in extracted.items() if not is_empty(value)]
            for name in found:
                fields[name] = extracted[name]

            if not found:
                logger.info(f"resolve({symbol}): {source.name} returned no usable fields")
            resolution.attempts.append(SourceAttempt(source=source.name, ok=True, fields_found=found))

        if resolution.missing:
            logger.debug(f"resolve({symbol}): still missing {resolution.missing}")
        return resolution
