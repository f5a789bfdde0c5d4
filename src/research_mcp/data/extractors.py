"""Field extraction from scraped HTML.

A field is described by an ordered chain of strategies. Each strategy
looks at the parsed document and returns a value or None; the first
non-empty value wins. Fields are extracted independently, so one document
can supply some fields while others stay empty.
"""

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup, Tag

from research_mcp.models import SectionFields
from research_mcp.utils.sanitize import parse_number, sanitize_text

logger = logging.getLogger(__name__)

Strategy = Callable[[BeautifulSoup], Any]

TEXT = "text"
NUMBER = "number"
LIST = "list"


@dataclass(frozen=True)
class FieldSpec:
    """How to extract one named field from one source's document."""

    name: str
    strategies: tuple[Strategy, ...]
    kind: str = TEXT

    def empty_value(self) -> Any:
        return [] if self.kind == LIST else None


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def _clean(text: str | None) -> str | None:
    cleaned = sanitize_text(text)
    return cleaned or None


def _coerce(spec: FieldSpec, raw: Any) -> Any:
    """Normalize a strategy's raw result; empty or unparseable becomes None."""
    if is_empty(raw):
        return None
    if spec.kind == NUMBER:
        return parse_number(raw)
    if spec.kind == TEXT:
        return _clean(str(raw))
    return raw


# ============================================================================
# STRATEGIES
# ============================================================================


def css_text(selector: str) -> Strategy:
    """Text of the first element matching selector."""

    def strategy(soup: BeautifulSoup) -> str | None:
        element = soup.select_one(selector)
        return element.get_text(" ", strip=True) if element else None

    return strategy


def css_attr(selector: str, attr: str) -> Strategy:
    """Attribute of the first element matching selector."""

    def strategy(soup: BeautifulSoup) -> str | None:
        element = soup.select_one(selector)
        if element is None:
            return None
        value = element.get(attr)
        return value if isinstance(value, str) else None

    return strategy


def labelled_value(
    label: str,
    tags: str = "span, td, th, dt, div",
    contains: bool = False,
) -> Strategy:
    """
    Text of the element following the one whose own text equals label.

    Handles both `<span>Sector</span><span>Technology</span>` and
    table cells (`<td>PE Ratio</td><td>31.2</td>`). With `contains`, any
    label holding the word matches, so "Revenue (TTM)" counts as Revenue.
    """
    wanted = label.strip().lower()

    def matches(text: str) -> bool:
        text = text.lower().rstrip(":")
        return wanted in text if contains else text == wanted

    def strategy(soup: BeautifulSoup) -> str | None:
        for element in soup.select(tags):
            if not matches(element.get_text(" ", strip=True)):
                continue
            sibling = element.find_next_sibling()
            if isinstance(sibling, Tag):
                text = sibling.get_text(" ", strip=True)
                if text:
                    return text
        return None

    return strategy


def regex_text(pattern: str, selector: str = "div, span") -> Strategy:
    """Full text of the first element whose text matches pattern exactly."""
    compiled = re.compile(pattern)

    def strategy(soup: BeautifulSoup) -> str | None:
        for element in soup.select(selector):
            text = element.get_text(strip=True)
            if compiled.match(text):
                return text
        return None

    return strategy


def regex_near(keywords: Sequence[str], pattern: str, selector: str = "div, span") -> Strategy:
    """First pattern match inside the text of an element mentioning any keyword."""
    compiled = re.compile(pattern)

    def strategy(soup: BeautifulSoup) -> str | None:
        for element in soup.select(selector):
            text = element.get_text(" ", strip=True)
            if any(keyword in text for keyword in keywords):
                match = compiled.search(text)
                if match:
                    return match.group(0)
        return None

    return strategy


def table_rows(
    keywords: Iterable[str] | None = None,
    limit: int | None = None,
    row_selector: str = "table tr",
) -> Strategy:
    """
    (label, value) pairs from the first two cells of table rows.

    Args:
        keywords: Keep only rows whose label contains one of these (case-insensitive)
        limit: Stop after this many rows are read (before keyword filtering)
        row_selector: CSS selector for rows

    Returns:
        Strategy producing a list of {"label", "value"} dicts
    """
    wanted = tuple(k.lower() for k in keywords) if keywords else None

    def strategy(soup: BeautifulSoup) -> list[dict[str, str]]:
        rows = soup.select(row_selector)
        if limit is not None:
            rows = rows[:limit]
        items: list[dict[str, str]] = []
        for row in rows:
            cells = row.find_all("td")
            if len(cells) < 2:
                continue
            label = _clean(cells[0].get_text(" ", strip=True))
            value = _clean(cells[1].get_text(" ", strip=True))
            if not label or not value:
                continue
            if wanted and not any(k in label.lower() for k in wanted):
                continue
            items.append({"label": label, "value": value})
        return items

    return strategy


def div_rows(
    row_selector: str,
    label_selector: str,
    value_selector: str,
    keywords: Iterable[str] | None = None,
) -> Strategy:
    """(label, value) pairs from div-based grids (label cell + first value cell)."""
    wanted = tuple(k.lower() for k in keywords) if keywords else None

    def strategy(soup: BeautifulSoup) -> list[dict[str, str]]:
        items: list[dict[str, str]] = []
        for row in soup.select(row_selector):
            label_el = row.select_one(label_selector)
            value_el = row.select_one(value_selector)
            if label_el is None or value_el is None:
                continue
            label = _clean(label_el.get_text(" ", strip=True))
            value = _clean(value_el.get_text(" ", strip=True))
            if not label or not value:
                continue
            if wanted and not any(k in label.lower() for k in wanted):
                continue
            items.append({"label": label, "value": value})
        return items

    return strategy


def news_items(
    item_selector: str,
    title_selector: str,
    time_selector: str,
    limit: int = 5,
) -> Strategy:
    """Headlines as {"title", "time"} dicts; missing times read "Recent"."""

    def strategy(soup: BeautifulSoup) -> list[dict[str, str]]:
        items: list[dict[str, str]] = []
        for item in soup.select(item_selector)[:limit]:
            title_el = item.select_one(title_selector)
            title = _clean(title_el.get_text(" ", strip=True)) if title_el else None
            if not title:
                continue
            time_el = item.select_one(time_selector)
            time = _clean(time_el.get_text(" ", strip=True)) if time_el else None
            items.append({"title": sanitize_text(title, max_length=200), "time": time or "Recent"})
        return items

    return strategy


# ============================================================================
# EXTRACTION
# ============================================================================


def first_non_empty(spec: FieldSpec, soup: BeautifulSoup) -> Any:
    """Run the field's strategies in order and return the first usable value."""
    for strategy in spec.strategies:
        try:
            value = _coerce(spec, strategy(soup))
        except (AttributeError, TypeError, ValueError) as e:
            # Malformed markup for this strategy; the next one may still match
            logger.debug(f"extract({spec.name}): strategy failed ({e})")
            continue
        if not is_empty(value):
            return value
    return spec.empty_value()


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def extract_fields(html: str, specs: Sequence[FieldSpec]) -> SectionFields:
    """
    Extract every field in specs from one document.

    Returns:
        Mapping with one entry per spec; fields not found hold None (or [])
    """
    soup = parse_document(html)
    return {spec.name: first_non_empty(spec, soup) for spec in specs}
