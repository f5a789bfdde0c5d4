"""Exception types raised by the research engine."""


class ResearchError(Exception):
    """Base class for research engine errors."""

    pass


class InvalidSymbolError(ResearchError, ValueError):
    """Raised when a ticker symbol is missing or malformed."""

    pass


class UnsupportedSectionError(ResearchError, ValueError):
    """Raised when a section name is outside the supported set."""

    pass


class FetchError(ResearchError):
    """Raised when an upstream source cannot be reached or answers non-2xx."""

    def __init__(self, message: str, url: str | None = None, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class NoMarketDataError(ResearchError):
    """Raised when no chart data can be obtained for a symbol."""

    def __init__(self, symbol: str, last_error: Exception | None = None):
        super().__init__(f"No data found for symbol {symbol}")
        self.symbol = symbol
        self.last_error = last_error
