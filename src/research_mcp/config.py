"""Runtime configuration read from the environment."""

import os
from dataclasses import dataclass

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
DEFAULT_MODEL = "claude-sonnet-4-20250514"
MARKET_FALLBACKS = {"yfinance", "none"}


@dataclass(frozen=True)
class ResearchConfig:
    """
    Immutable engine settings.

    Built once per request (or once per server) and handed to the
    collaborators that need it. Nothing in the engine reads the
    environment directly.
    """

    http_timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    max_workers: int = 4
    anthropic_api_key: str | None = None
    model: str = DEFAULT_MODEL
    insight_timeout: float = 30.0
    market_fallback: str = "yfinance"

    def __post_init__(self) -> None:
        fallback = self.market_fallback.lower().strip()
        if fallback not in MARKET_FALLBACKS:
            raise ValueError(
                f"Invalid market fallback '{self.market_fallback}'. Must be one of: {MARKET_FALLBACKS}"
            )
        object.__setattr__(self, "market_fallback", fallback)

        # Blank keys count as missing
        key = self.anthropic_api_key
        if key is not None and key.strip() == "":
            object.__setattr__(self, "anthropic_api_key", None)

    @property
    def has_generation_credential(self) -> bool:
        return self.anthropic_api_key is not None

    @classmethod
    def from_env(cls) -> "ResearchConfig":
        """Build config from environment variables with defaults."""
        return cls(
            http_timeout=float(os.environ.get("RESEARCH_HTTP_TIMEOUT", "10")),
            user_agent=os.environ.get("RESEARCH_USER_AGENT", DEFAULT_USER_AGENT),
            max_workers=int(os.environ.get("RESEARCH_MAX_WORKERS", "4")),
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY"),
            model=os.environ.get("RESEARCH_MODEL", DEFAULT_MODEL),
            insight_timeout=float(os.environ.get("RESEARCH_INSIGHT_TIMEOUT", "30")),
            market_fallback=os.environ.get("RESEARCH_MARKET_FALLBACK", "yfinance"),
        )
