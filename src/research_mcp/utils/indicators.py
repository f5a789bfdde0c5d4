"""Technical indicator calculations."""

import math

import numpy as np
import pandas as pd

from research_mcp.models import Indicators, PriceSeries, QuoteMeta

TRADING_DAYS_PER_YEAR = 252
MIN_VOLATILITY_POINTS = 5
MA_PERIODS = (10, 20)


def calculate_sma(prices: pd.Series, period: int) -> pd.Series:
    """
    Calculate Simple Moving Average.

    Args:
        prices: Price series (typically close prices)
        period: Number of periods for the average

    Returns:
        SMA series
    """
    return prices.rolling(window=period, min_periods=period).mean()


def moving_average(prices: pd.Series, period: int) -> float | None:
    """
    Mean of the last `period` non-null closes.

    Args:
        prices: Close prices, most recent last (nulls allowed)
        period: Number of closes to average

    Returns:
        The average, or None if fewer than `period` valid closes exist
    """
    valid = prices.dropna()
    if period <= 0 or len(valid) < period:
        return None
    sma = calculate_sma(valid.reset_index(drop=True), period)
    value = sma.iloc[-1]
    if pd.isna(value):
        return None
    return float(value)


def calculate_returns(prices: pd.Series) -> pd.Series:
    """
    Simple period-over-period returns over adjacent valid closes.

    A pair is skipped when either close is zero or negative, so one bad
    tick cannot register as a -100% move.
    """
    valid = prices.dropna().reset_index(drop=True)
    previous = valid.shift(1)
    usable = (valid > 0) & (previous > 0)
    returns = ((valid - previous) / previous).where(usable)
    returns = returns.replace([np.inf, -np.inf], np.nan)
    return returns.dropna()


def calculate_volatility(prices: pd.Series) -> float | None:
    """
    Annualized volatility of simple returns, as a percentage.

    Population standard deviation of daily returns scaled by sqrt(252).
    The scaling assumes daily bars regardless of the series' real cadence.

    Args:
        prices: Close prices, most recent last (nulls allowed)

    Returns:
        Volatility percentage (25.0 = 25%), or None with fewer than 5 valid closes
    """
    valid = prices.dropna()
    if len(valid) < MIN_VOLATILITY_POINTS:
        return None

    returns = calculate_returns(valid)
    if len(returns) == 0:
        return None

    std = returns.std(ddof=0)
    if pd.isna(std):
        return None

    return float(std * math.sqrt(TRADING_DAYS_PER_YEAR) * 100)


def price_change(
    current: float | None,
    previous: float | None,
) -> tuple[float | None, float | None]:
    """
    Absolute and percentage change between two prices.

    Returns:
        Tuple of (change, change_pct). change_pct is None when previous is
        missing or zero; change is None when either price is missing.
    """
    if current is None or previous is None:
        return None, None

    change = current - previous
    if previous == 0:
        return change, None
    return change, change / previous * 100


def compute_indicators(series: PriceSeries, quote: QuoteMeta) -> Indicators:
    """Derive every indicator the snapshot needs from one price history."""
    closes = series.valid_closes()
    ma10, ma20 = (moving_average(closes, period) for period in MA_PERIODS)
    change, change_pct = price_change(quote.current_price, quote.previous_close)

    return Indicators(
        ma10=ma10,
        ma20=ma20,
        price_change=change,
        price_change_pct=change_pct,
        volatility_pct=calculate_volatility(closes),
    )
