"""Price extraction from fetched pages.

A page is handed to an ordered list of strategies and the first strategy
that produces any candidate wins:

1. StructuredDataStrategy -- schema.org JSON-LD (Product, Offer, Menu, ItemList)
2. AppStateStrategy -- embedded framework state (__NEXT_DATA__ and friends)
3. VisibleTextStrategy -- "<number> KWD" text with a nearby heading
"""

import json
import re
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urljoin

import structlog
from bs4 import BeautifulSoup, Tag

from pricecompare.scrapers.base import ExtractedItem
from pricecompare.scrapers.utils.normalizer import (
    CURRENCY_UNIT_PATTERN,
    normalize_text,
    parse_currency_amount,
    to_ascii_digits,
)


logger = structlog.get_logger(__name__)

NAME_KEYS = ("name", "title")
PRICE_KEYS = ("price", "amount", "priceString")
URL_KEYS = ("url", "link", "href")

# Walk bounds for untrusted JSON trees
MAX_TREE_DEPTH = 40
MAX_TREE_NODES = 20_000

# Visible-text bounds
MAX_PRICE_NODES = 200
MAX_VISIBLE_ITEMS = 20
MAX_PRICE_TEXT_LENGTH = 160
MAX_SCANNED_ELEMENTS = 5000

_PRICE_TEXT_RE = re.compile(
    r"(\d+(?:[.,]\d+)?)\s*(" + CURRENCY_UNIT_PATTERN + r")", re.IGNORECASE
)
_STATE_ASSIGNMENT_RE = re.compile(
    r"window\.(?:__INITIAL_STATE__|__PRELOADED_STATE__)\s*=\s*(\{.*?\})\s*;?\s*(?:</script>|$)",
    re.DOTALL,
)
_CONTAINER_CLASS_RE = re.compile(r"item|row|card", re.IGNORECASE)
_TITLE_SEPARATOR_RE = re.compile(r"\s*\|\s*.*$")

_PRICE_NODE_SELECTOR = '[class*="price"], [id*="price"], [data-test*="price"], span, div'
_HEADINGS = ["h3", "h4", "h2"]

_PRODUCT_TYPES = {"Product", "ProductGroup", "IndividualProduct", "MenuItem"}
_CHILD_KEYS = (
    "@graph",
    "hasMenuSection",
    "hasMenuItem",
    "menuItems",
    "itemListElement",
    "item",
    "hasVariant",
    "mainEntity",
)


def parse_html(body: str) -> BeautifulSoup:
    return BeautifulSoup(body or "", "html.parser")


def _clean_name(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    name = re.sub(r"\s+", " ", value).strip()
    return name or None


def _types_of(node: dict) -> set:
    raw = node.get("@type")
    if isinstance(raw, str):
        return {raw}
    if isinstance(raw, list):
        return {t for t in raw if isinstance(t, str)}
    return set()


def iter_tree(root: Any, max_depth: int = MAX_TREE_DEPTH, max_nodes: int = MAX_TREE_NODES):
    """Yield every mapping in a JSON tree, depth-first.

    The walk is iterative and stops descending past ``max_depth`` and
    altogether after ``max_nodes`` visited values.
    """
    stack: List[Tuple[Any, int]] = [(root, 0)]
    visited = 0
    while stack and visited < max_nodes:
        node, depth = stack.pop()
        visited += 1
        if isinstance(node, dict):
            yield node
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            continue
        if depth >= max_depth:
            continue
        # Reversed so document order is preserved when popping
        for child in reversed(list(children)):
            if isinstance(child, (dict, list)):
                stack.append((child, depth + 1))


def scan_priced_nodes(tree: Any, base_url: Optional[str] = None) -> List[ExtractedItem]:
    """Collect (name, price) pairs from any node exposing both kinds of key.

    Args:
        tree: Parsed JSON value
        base_url: Used to absolutize relative product links

    Returns:
        Complete candidates in walk order
    """
    items: List[ExtractedItem] = []
    for node in iter_tree(tree):
        if not any(k in node for k in NAME_KEYS):
            continue
        if not any(k in node for k in PRICE_KEYS):
            continue

        name = _clean_name(node.get("name") or node.get("title"))
        raw_price = node.get("price") or node.get("amount") or node.get("priceString")
        if isinstance(raw_price, dict):
            # {"price": {"amount": "1.250", "currency": "KWD"}}
            raw_price = raw_price.get("amount") or raw_price.get("value")
        price = parse_currency_amount(raw_price)
        if not name or price is None or price <= 0:
            continue

        url = None
        for key in URL_KEYS:
            value = node.get(key)
            if isinstance(value, str) and value.strip():
                url = urljoin(base_url, value.strip()) if base_url else value.strip()
                break

        currency = node.get("currency") or node.get("currencyCode")
        items.append(
            ExtractedItem(
                name=name,
                price=price,
                currency=currency if isinstance(currency, str) else None,
                url=url,
            )
        )
    return items


class ExtractionStrategy(ABC):
    """One way of turning a page into priced candidates."""

    name: str = ""

    @abstractmethod
    def extract(self, soup: BeautifulSoup, body: str, url: Optional[str] = None) -> List[ExtractedItem]:
        """Return candidates, or an empty list when nothing was recognized."""
        pass


class StructuredDataStrategy(ExtractionStrategy):
    """schema.org JSON-LD blocks."""

    name = "structured_data"

    def extract(self, soup: BeautifulSoup, body: str, url: Optional[str] = None) -> List[ExtractedItem]:
        items: List[ExtractedItem] = []
        for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
            raw = (script.string or script.get_text() or "").strip()
            if not raw:
                continue
            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, ValueError) as e:
                logger.debug("ld_json_block_skipped", url=url, error=str(e))
                continue
            items.extend(self._walk(data, url))
        return items

    def _walk(self, data: Any, url: Optional[str]) -> List[ExtractedItem]:
        found: List[ExtractedItem] = []
        roots = data if isinstance(data, list) else [data]
        stack: List[Tuple[Any, int]] = [(root, 0) for root in reversed(roots)]
        visited = 0

        while stack and visited < MAX_TREE_NODES:
            node, depth = stack.pop()
            visited += 1
            if isinstance(node, list):
                stack.extend((child, depth + 1) for child in reversed(node))
                continue
            if not isinstance(node, dict):
                continue

            types = _types_of(node)
            if types & _PRODUCT_TYPES or ("offers" in node and "name" in node):
                item = self._item_from_node(node, url)
                if item:
                    found.append(item)

            if depth >= MAX_TREE_DEPTH:
                continue
            for key in _CHILD_KEYS:
                child = node.get(key)
                if isinstance(child, (dict, list)):
                    stack.append((child, depth + 1))

        return found

    def _item_from_node(self, node: dict, url: Optional[str]) -> Optional[ExtractedItem]:
        name = _clean_name(node.get("name") or node.get("title"))
        if not name:
            return None

        offers = node.get("offers")
        if isinstance(offers, list):
            offers = next((o for o in offers if isinstance(o, dict)), None)

        raw_price = None
        currency = None
        if isinstance(offers, dict):
            raw_price = offers.get("price")
            if raw_price in (None, ""):
                raw_price = offers.get("lowPrice")
            currency = offers.get("priceCurrency")
        if raw_price in (None, ""):
            raw_price = node.get("price")

        price = parse_currency_amount(raw_price)
        if price is None or price <= 0:
            return None

        link = node.get("url")
        return ExtractedItem(
            name=name,
            price=price,
            currency=currency if isinstance(currency, str) else None,
            url=urljoin(url, link) if isinstance(link, str) and url else None,
        )


class AppStateStrategy(ExtractionStrategy):
    """Framework hydration payloads embedded in the page."""

    name = "app_state"

    def extract(self, soup: BeautifulSoup, body: str, url: Optional[str] = None) -> List[ExtractedItem]:
        state = self._load_state(soup, body)
        if state is None:
            return []
        return scan_priced_nodes(state, base_url=url)

    def _load_state(self, soup: BeautifulSoup, body: str) -> Optional[Any]:
        script = soup.find("script", id="__NEXT_DATA__")
        raw = None
        if script is not None:
            raw = script.string or script.get_text()
        else:
            match = _STATE_ASSIGNMENT_RE.search(body or "")
            if match:
                raw = match.group(1)

        if not raw or not raw.strip():
            return None

        try:
            return json.loads(raw)
        except (json.JSONDecodeError, ValueError) as e:
            logger.debug("app_state_unparseable", error=str(e))
            return None


class VisibleTextStrategy(ExtractionStrategy):
    """Last resort: rendered "<amount> KWD" text next to a heading."""

    name = "visible_text"

    def extract(self, soup: BeautifulSoup, body: str, url: Optional[str] = None) -> List[ExtractedItem]:
        for tag in soup(["script", "style", "noscript", "template"]):
            tag.decompose()

        candidates: List[Tuple[Tag, Decimal]] = []
        for visited, element in enumerate(soup.select(_PRICE_NODE_SELECTOR)):
            if visited >= MAX_SCANNED_ELEMENTS or len(candidates) >= MAX_PRICE_NODES:
                break
            text = self._short_text(element)
            if not text:
                continue
            match = _PRICE_TEXT_RE.search(to_ascii_digits(text))
            if not match:
                continue
            # Only the "<amount> <unit>" span; other numbers in the node are names or promos
            price = parse_currency_amount(match.group(0))
            if price is not None and price > 0:
                candidates.append((element, price))

        items: List[ExtractedItem] = []
        for element, price in candidates:
            name = self._nearby_name(element)
            if name:
                items.append(ExtractedItem(name=name, price=price, currency="KWD"))
            if len(items) >= MAX_VISIBLE_ITEMS:
                break
        return items

    @staticmethod
    def _short_text(element: Tag) -> Optional[str]:
        """Collapsed text of ``element``, or None once it exceeds MAX_PRICE_TEXT_LENGTH."""
        parts: List[str] = []
        size = 0
        for piece in element.strings:
            piece = piece.strip()
            if not piece:
                continue
            size += len(piece) + 1
            if size > MAX_PRICE_TEXT_LENGTH + 1:
                return None
            parts.append(piece)
        text = re.sub(r"\s+", " ", " ".join(parts)).strip()
        return text or None

    def _nearby_name(self, element: Tag) -> Optional[str]:
        container = self._closest_container(element)
        if container is not None:
            name = self._heading_text(container.find(_HEADINGS))
            if name:
                return name

        if isinstance(element.parent, Tag):
            name = self._heading_text(element.parent.find(_HEADINGS))
            if name:
                return name

        return self._heading_text(element.find_previous_sibling(["h3", "h4"]))

    @staticmethod
    def _closest_container(element: Tag) -> Optional[Tag]:
        node: Optional[Tag] = element
        while isinstance(node, Tag) and node.name != "[document]":
            classes = " ".join(node.get("class") or [])
            data_test = node.get("data-test") or ""
            if _CONTAINER_CLASS_RE.search(classes) or "item" in data_test:
                return node
            node = node.parent
        return None

    @staticmethod
    def _heading_text(heading: Optional[Tag]) -> Optional[str]:
        if heading is None:
            return None
        return _clean_name(heading.get_text(" "))


DEFAULT_STRATEGIES: Tuple[ExtractionStrategy, ...] = (
    StructuredDataStrategy(),
    AppStateStrategy(),
    VisibleTextStrategy(),
)


class PriceExtractor:
    """Run extraction strategies in priority order until one yields items."""

    def __init__(self, strategies: Optional[Sequence[ExtractionStrategy]] = None):
        self.strategies: Sequence[ExtractionStrategy] = strategies or DEFAULT_STRATEGIES

    def extract(self, body: str, url: Optional[str] = None) -> List[ExtractedItem]:
        """Extract priced candidates from one page body.

        Args:
            body: Raw HTML (or text) payload
            url: Final page URL, used for relative links and logging

        Returns:
            Complete, de-duplicated candidates from the first productive strategy
        """
        if not body:
            return []

        for strategy in self.strategies:
            # Fresh soup per strategy; visible-text mutates the tree
            soup = parse_html(body)
            try:
                found = strategy.extract(soup, body, url)
            except Exception as e:
                logger.warning(
                    "extraction_strategy_failed",
                    strategy=strategy.name,
                    url=url,
                    error=str(e),
                )
                continue

            items = _dedupe(item for item in found if item.is_complete)
            if items:
                logger.debug(
                    "extraction_succeeded",
                    strategy=strategy.name,
                    url=url,
                    count=len(items),
                )
                return items

        return []

    @staticmethod
    def page_title(body: str) -> Optional[str]:
        """Group label for a page: og:title or <title>, cut at the first ``|``."""
        soup = parse_html(body)
        title = None
        og_title = soup.find("meta", attrs={"property": "og:title"})
        if og_title is not None and og_title.get("content"):
            title = og_title["content"]
        elif soup.title is not None:
            title = soup.title.get_text()

        title = _clean_name(title)
        if not title:
            return None
        return _TITLE_SEPARATOR_RE.sub("", title) or None


def _dedupe(items: Iterable[ExtractedItem]) -> List[ExtractedItem]:
    seen = set()
    unique: List[ExtractedItem] = []
    for item in items:
        key = (normalize_text(item.name), item.price)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique
