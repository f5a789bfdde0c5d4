"""Section insight text: generative service with a deterministic fallback."""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from anthropic import AsyncAnthropic

from research_mcp.config import DEFAULT_MODEL, ResearchConfig
from research_mcp.models import SectionFields
from research_mcp.prompts.templates import (
    STRUCTURED_SECTIONS,
    build_prompt,
    fallback_detail,
    fallback_insight,
    max_tokens_for,
)

logger = logging.getLogger(__name__)

AI = "ai"
TEMPLATE = "template"

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


@dataclass(frozen=True)
class Insight:
    text: str
    source: str
    # Raw category breakdown for sections in STRUCTURED_SECTIONS
    detail: dict[str, Any] | None = None


def first_text_block(message: Any) -> str | None:
    """Text of the first text block in a messages API response."""
    for block in getattr(message, "content", None) or []:
        text = getattr(block, "text", None)
        if isinstance(text, str) and text.strip():
            return text.strip()
    return None


def parse_detail(text: str) -> dict[str, Any] | None:
    """
    The JSON object embedded in a model reply, or None.

    Replies may wrap the object in prose or a code fence; everything from
    the first "{" to the last "}" is decoded.
    """
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        return None
    try:
        detail = json.loads(match.group(0))
    except ValueError:
        return None
    return detail if isinstance(detail, dict) else None


class InsightGenerator:
    """
    Produce a short analysis per section.

    With a client, one generation request is made per insight under a
    token budget and a timeout. Without a client, or on any failure, the
    templated fallback is returned instead.

    Company and developments replies must be a JSON breakdown; a reply that
    is not one counts as a failure.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
    ):
        self._client = client
        self._model = model
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: ResearchConfig) -> "InsightGenerator":
        client = (
            AsyncAnthropic(api_key=config.anthropic_api_key)
            if config.has_generation_credential
            else None
        )
        return cls(client, model=config.model, timeout=config.insight_timeout)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def generate(self, symbol: str, section: str, fields: SectionFields) -> Insight:
        fallback = Insight(
            fallback_insight(symbol, section, fields),
            TEMPLATE,
            fallback_detail(symbol, section, fields),
        )
        if self._client is None:
            logger.debug(f"insight({symbol}, {section}): no generation credential, using template")
            return fallback

        try:
            message = await asyncio.wait_for(
                self._client.messages.create(
                    model=self._model,
                    max_tokens=max_tokens_for(section),
                    messages=[{"role": "user", "content": build_prompt(symbol, section, fields)}],
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"insight({symbol}, {section}): generation timed out, using template")
            return fallback
        except Exception as e:
            # Any API, transport or client error degrades to the template
            logger.warning(f"insight({symbol}, {section}): generation failed ({e}), using template")
            return fallback

        text = first_text_block(message)
        if text is None:
            logger.warning(f"insight({symbol}, {section}): empty generation response, using template")
            return fallback
        if section not in STRUCTURED_SECTIONS:
            return Insight(text, AI)

        detail = parse_detail(text)
        if detail is None:
            logger.warning(f"insight({symbol}, {section}): reply is not a JSON breakdown, using template")
            return fallback
        summary = detail.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            summary = fallback.text
        return Insight(summary.strip(), AI, detail)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
