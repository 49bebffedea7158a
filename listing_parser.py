"""
Listing Parser - Listing Extraction System
==========================================
Parses a saved marketplace listing page ("Webpage, Complete") into a
structured ParsedListing record.

Page templates drift between versions, so every field is resolved through an
ordered strategy chain (first valid candidate wins):
1. Template selectors - newest layouts first, legacy layouts after
2. Document-wide fallback - page title, labeled text, largest content block
3. Sentinel - "N/A" when nothing qualifies

The parsed document is never modified; the parser holds only static
configuration, so one instance can be shared between threads.
"""

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Tuple
import re
import logging

from config import NOT_FOUND
from listing_models import AttributePair, ParsedListing, ParserConfig
from text_normalizer import (
    bound_length,
    clean_text,
    digits_only,
    normalize_price,
    strip_title_boilerplate,
)

logger = logging.getLogger(__name__)

HIDDEN_TAGS = {'script', 'style', 'noscript', 'template'}
# Text inside these continues the surrounding word; every other tag breaks it
INLINE_TAGS = {
    'a', 'abbr', 'b', 'bdi', 'bdo', 'cite', 'code', 'data', 'dfn', 'em', 'font',
    'i', 'kbd', 'mark', 'q', 's', 'samp', 'small', 'span', 'strike', 'strong',
    'sub', 'sup', 'time', 'u', 'var',
}
_NON_TEXT_NODES = (Comment, Declaration, Doctype, ProcessingInstruction)
BREADCRUMB_GLYPHS = {'>', '›', '»', '/', '|'}


class ExtractionStrategy(NamedTuple):
    """One step of a strategy chain: find a candidate, check it, turn it into the field value."""

    name: str
    locate: Callable[[BeautifulSoup], Any]
    is_valid: Callable[[Any], bool]
    transform: Callable[[Any], str]


def resolve(chain: Sequence[ExtractionStrategy], soup: BeautifulSoup) -> str:
    """
    Evaluate a strategy chain in priority order.

    Args:
        chain: Strategies, highest priority first
        soup: Parsed listing document

    Returns:
        The first accepted, transformed candidate, or NOT_FOUND
    """
    for strategy in chain:
        candidate = strategy.locate(soup)
        if not candidate:
            logger.debug(f"Strategy '{strategy.name}' found nothing")
            continue

        if not strategy.is_valid(candidate):
            logger.debug(f"Strategy '{strategy.name}' rejected its candidate")
            continue

        value = strategy.transform(candidate)
        if value:
            logger.debug(f"[OK] Strategy '{strategy.name}' accepted")
            return value
        logger.debug(f"Strategy '{strategy.name}' produced an empty value")

    return NOT_FOUND


def visible_text(root: Tag) -> str:
    """Whitespace-collapsed text of `root`, skipping scripts, styles and comments."""
    parts: List[str] = []
    _collect_text(root, parts)
    return clean_text(''.join(parts))


def _collect_text(node: Tag, parts: List[str]):
    for child in node.children:
        if isinstance(child, NavigableString):
            if not isinstance(child, _NON_TEXT_NODES):
                parts.append(str(child))
            continue
        if child.name in HIDDEN_TAGS:
            continue
        if child.name in INLINE_TAGS:
            _collect_text(child, parts)
        else:
            parts.append(' ')
            _collect_text(child, parts)
            parts.append(' ')


def inner_html(elem: Tag) -> str:
    return elem.decode_contents().strip()


def _select_text(selector: str) -> Callable[[BeautifulSoup], Optional[str]]:
    def locate(soup):
        elem = soup.select_one(selector)
        return clean_text(elem.get_text()) if elem is not None else None
    return locate


def _select_text_or_content(selector: str) -> Callable[[BeautifulSoup], Optional[str]]:
    # Microdata prices sometimes carry the amount only in a content="..." attribute
    def locate(soup):
        elem = soup.select_one(selector)
        if elem is None:
            return None
        return clean_text(elem.get_text()) or clean_text(elem.get('content', ''))
    return locate


def _select_inner_html(selector: str) -> Callable[[BeautifulSoup], Optional[str]]:
    def locate(soup):
        elem = soup.select_one(selector)
        return inner_html(elem) if elem is not None else None
    return locate


class ListingHTMLParser:
    """Parses saved listing pages into ParsedListing records."""

    def __init__(self, config: Optional[ParserConfig] = None):
        """Initialize parser with thresholds, selector sets and strategy chains."""
        self.logger = logging.getLogger(__name__)
        self.config = config or ParserConfig()
        self._build_selector_sets()
        self._build_strategy_chains()

    def _build_selector_sets(self):
        """Build the CSS selector library for every known listing template."""
        self.selector_sets = {
            # Titles
            'titles': (
                'h1.x-item-title__mainTitle',      # Current layout
                'span.l-title-text',               # Some newer layouts
                'h1#itemTitle',                    # Legacy item page
                'h1.product-title',
                '.vi-title h1',
                '#itemTitle_feature_div span',
                '#item-title',
                'h1[itemprop="name"]',             # Schema.org
            ),

            # Prices
            'prices': (
                '.x-price-primary span[itemprop="price"]',
                '.x-price-primary',
                '[itemprop="price"]',
                '.item-price',
                '#prcIsum',                        # Legacy item page
            ),

            # Item numbers
            'item_ids': (
                '#descItemNumber',
                'div.ux-layout-section--item-details span.ux-textspans--item-information-value',
                'span[data-testid="item-information-value"]',
                'div.item-information__item-id span',
                '#vi-itm-num',
                '.item-number-value',
            ),

            # Breadcrumb containers (category path)
            'breadcrumbs': (
                'nav.breadcrumbs',
                '.seo-breadcrumbs-container',
                'nav[aria-label="Breadcrumb"]',
                'ol[itemtype*="BreadcrumbList"]',
                '#vi-VR-brumb-lnkLst',
                'ul.breadcrumbs',
                '.breadcrumb',
            ),

            # Embedded description documents
            'description_iframes': (
                'iframe#desc_ifr',
                'iframe[id*="desc"]',
            ),

            # Description containers
            'descriptions': (
                'div[itemprop="description"]',
                'div.section-description',
                'div#description_content',
                'div#desc_div',
                'div#fullItemDesc',
                'div.item-description',
                'div.item-description-wrapper',
                'div.description-text',
                'div[data-testid="description-content"]',
                '.ui-pdp-description__content',
                'div[role="tabpanel"][aria-labelledby="desc-tab"]',
                '#Body #tg_pbox #content',
            ),

            # Large page regions searched when no description container exists
            'page_containers': (
                'div.product-description-container',
                'div.main-content',
                '#mainContent',
                '#Body',
            ),

            # Item specifics sections
            'specifics_containers': (
                '.ux-layout-section--item-details',
                '.ux-layout-section-evo__item--table-view',
                '#viTabs_0_is',
                '.item-specifics',
                '#details_list',
                '.section-details',
                'dl.item-details__list',
                'div[data-testid="item-specifics-section"]',
                '.spec-group',
            ),
        }

    def _build_strategy_chains(self):
        """Compose the ordered strategy chains for every field."""
        cfg = self.config
        sets = self.selector_sets

        # Length counts only what survives boilerplate stripping
        def title_is_valid(raw):
            return len(strip_title_boilerplate(raw)) > cfg.title_min_length

        self.title_chain = tuple(
            ExtractionStrategy(
                f'title:{selector}',
                _select_text(selector),
                title_is_valid,
                strip_title_boilerplate,
            )
            for selector in sets['titles']
        )
        self.title_fallback_chain = (
            ExtractionStrategy(
                'title:document',
                self._locate_document_title,
                title_is_valid,
                strip_title_boilerplate,
            ),
            ExtractionStrategy(
                'title:og_meta',
                self._locate_meta_title,
                title_is_valid,
                strip_title_boilerplate,
            ),
        )

        self.price_chain = tuple(
            ExtractionStrategy(
                f'price:{selector}',
                _select_text_or_content(selector),
                lambda raw: bool(normalize_price(raw)),
                normalize_price,
            )
            for selector in sets['prices']
        )

        self.item_id_chain = tuple(
            ExtractionStrategy(
                f'item_id:{selector}',
                _select_text(selector),
                lambda raw: len(digits_only(raw)) > cfg.item_id_min_digits,
                digits_only,
            )
            for selector in sets['item_ids']
        )
        self._item_number_pattern = re.compile(
            r'item\s+number\s*:?\s*([0-9]{%d,})' % cfg.item_id_fallback_digits, re.I
        )
        self.item_id_fallback_chain = (
            ExtractionStrategy(
                'item_id:labeled_text',
                self._locate_labeled_item_number,
                lambda raw: len(raw) > cfg.item_id_min_digits,
                digits_only,
            ),
        )

        self.category_chain = tuple(
            ExtractionStrategy(
                f'category:{selector}',
                self._breadcrumb_locator(selector),
                lambda entries: len(entries) > 0,
                lambda entries: cfg.category_separator.join(entries[-2:]),
            )
            for selector in sets['breadcrumbs']
        )

        description_chain: List[ExtractionStrategy] = [
            ExtractionStrategy(
                'description:embedded',
                self._locate_embedded_description,
                lambda raw: bool(raw.strip()),
                lambda raw: raw,
            ),
        ]
        description_chain.extend(
            ExtractionStrategy(
                f'description:{selector}',
                _select_inner_html(selector),
                lambda raw: len(raw) > cfg.description_min_length,
                lambda raw: raw,
            )
            for selector in sets['descriptions']
        )
        description_chain.extend([
            ExtractionStrategy(
                'description:page_container',
                self._locate_largest_container,
                lambda raw: len(raw) > cfg.fallback_min_length,
                lambda raw: cfg.page_disclaimer + bound_length(
                    raw, cfg.fallback_max_length, cfg.fallback_truncation_marker),
            ),
            ExtractionStrategy(
                'description:page_body',
                self._locate_body_text,
                lambda raw: len(raw) > cfg.fallback_min_length,
                lambda raw: cfg.body_disclaimer + bound_length(
                    raw, cfg.fallback_max_length, cfg.fallback_truncation_marker),
            ),
        ])
        self.description_chain = tuple(description_chain)

    # ============ Public Interface ============

    def parse_html(self, html_content: str) -> ParsedListing:
        """
        Parse raw page markup and extract the listing.

        Args:
            html_content: Raw HTML string of a saved listing page

        Returns:
            ParsedListing with the sentinel in every field that was not found
        """
        soup = BeautifulSoup(html_content or '', 'html.parser')
        return self.parse_document(soup)

    def parse_document(self, soup: BeautifulSoup) -> ParsedListing:
        """Extract every field from an already parsed document."""
        listing = ParsedListing(
            title=self._extract_title(soup),
            price=self._extract_price(soup),
            description_html=self._extract_description(soup),
            item_specifics=self._extract_item_specifics(soup),
            item_id=self._extract_item_id(soup),
            category=self._extract_category(soup),
        )
        self.logger.debug(
            f"Parsed listing item_id={listing.item_id} title={listing.title[:60]!r} "
            f"specifics={len(listing.item_specifics)}"
        )
        return listing

    # ============ Scalar Fields ============

    def _extract_title(self, soup: BeautifulSoup) -> str:
        title = resolve(self.title_chain, soup)
        if title == NOT_FOUND:
            title = resolve(self.title_fallback_chain, soup)
        return title

    def _extract_price(self, soup: BeautifulSoup) -> str:
        return resolve(self.price_chain, soup)

    def _extract_item_id(self, soup: BeautifulSoup) -> str:
        item_id = resolve(self.item_id_chain, soup)
        if item_id == NOT_FOUND:
            item_id = resolve(self.item_id_fallback_chain, soup)
        return item_id

    def _extract_category(self, soup: BeautifulSoup) -> str:
        return resolve(self.category_chain, soup)

    def _locate_document_title(self, soup: BeautifulSoup) -> Optional[str]:
        if soup.title is None:
            return None
        return clean_text(soup.title.get_text())

    def _locate_meta_title(self, soup: BeautifulSoup) -> Optional[str]:
        meta = soup.find('meta', attrs={'property': 'og:title'})
        if meta is None:
            return None
        return clean_text(meta.get('content', ''))

    def _locate_labeled_item_number(self, soup: BeautifulSoup) -> Optional[str]:
        root = soup.body or soup
        match = self._item_number_pattern.search(visible_text(root))
        return match.group(1) if match else None

    def _breadcrumb_locator(self, selector: str) -> Callable[[BeautifulSoup], List[str]]:
        def locate(soup):
            for container in soup.select(selector):
                entries = self._breadcrumb_entries(container)
                if entries:
                    return entries
            return []
        return locate

    def _breadcrumb_entries(self, container: Tag) -> List[str]:
        """Ordered, non-empty breadcrumb texts inside one container."""
        items = container.find_all('li') or container.find_all('a')
        entries = []
        for item in items:
            text = clean_text(item.get_text())
            if text and text not in BREADCRUMB_GLYPHS:
                entries.append(text)
        return entries

    # ============ Description ============

    def _extract_description(self, soup: BeautifulSoup) -> str:
        """
        Resolve the description: embedded document, then known containers,
        then the disclaimer-marked whole-page fallbacks, bounded in length.
        """
        description = resolve(self.description_chain, soup)
        if description == NOT_FOUND:
            return NOT_FOUND

        bounded = bound_length(
            description, self.config.description_max_length, self.config.truncation_marker
        )
        if len(bounded) < len(description):
            self.logger.debug(
                f"Description truncated from {len(description)} to {len(bounded)} characters"
            )
        return bounded

    def _locate_embedded_description(self, soup: BeautifulSoup) -> Optional[str]:
        iframe = None
        for selector in self.selector_sets['description_iframes']:
            iframe = soup.select_one(selector)
            if iframe is not None:
                break
        if iframe is None:
            return None

        srcdoc = iframe.get('srcdoc')
        if not srcdoc:
            if iframe.get('src'):
                self.logger.warning(
                    f"Description iframe references external content ({iframe.get('src')}). "
                    "It cannot be read from a saved page; relying on other description elements."
                )
            return None

        fragment = BeautifulSoup(srcdoc, 'html.parser')
        return inner_html(fragment.body or fragment)

    def _locate_largest_container(self, soup: BeautifulSoup) -> Optional[str]:
        best = None
        for selector in self.selector_sets['page_containers']:
            for elem in soup.select(selector):
                html = inner_html(elem)
                if best is None or len(html) > len(best):
                    best = html
        return best

    def _locate_body_text(self, soup: BeautifulSoup) -> str:
        return visible_text(soup.body or soup)

    # ============ Item Specifics ============

    def _extract_item_specifics(self, soup: BeautifulSoup) -> Tuple[AttributePair, ...]:
        """Pool label/value pairs from every specifics section, then dedupe."""
        matchers = (
            self._match_label_value_rows,
            self._match_definition_list,
            self._match_label_siblings,
            self._match_table_rows,
        )
        pool: List[AttributePair] = []
        for selector in self.selector_sets['specifics_containers']:
            for container in soup.select(selector):
                for matcher in matchers:
                    pool.extend(matcher(container))
        return self._dedupe_specifics(pool)

    def _make_pair(self, label: Optional[str], value: Optional[str]) -> Optional[AttributePair]:
        label = re.sub(r'\s*:+\s*$', '', clean_text(label))
        value = clean_text(value)
        if not label or not value:
            return None
        return AttributePair(label=label, value=value)

    def _match_label_value_rows(self, container: Tag) -> List[AttributePair]:
        """Label and value elements of each row, paired by position."""
        pairs = []
        for row in container.select('.ux-labels-values, .ux-labels-values__item'):
            labels = row.select('.ux-labels-values__labels') or row.select('.ux-textspans--bold')
            values = row.select('.ux-labels-values__values') or row.select('.ux-textspans--light')
            for label_el, value_el in zip(labels, values):
                pair = self._make_pair(label_el.get_text(), value_el.get_text())
                if pair:
                    pairs.append(pair)
        return pairs

    def _match_definition_list(self, container: Tag) -> List[AttributePair]:
        pairs = []
        for dt in container.find_all('dt'):
            dd = dt.find_next_sibling()
            if dd is None or dd.name != 'dd':
                continue
            pair = self._make_pair(dt.get_text(), dd.get_text())
            if pair:
                pairs.append(pair)
        return pairs

    def _match_label_siblings(self, container: Tag) -> List[AttributePair]:
        pairs = []
        for label_el in container.find_all('label'):
            value_el = label_el.find_next_sibling()
            if value_el is None or value_el.name not in ('span', 'div'):
                continue
            pair = self._make_pair(label_el.get_text(), value_el.get_text())
            if pair:
                pairs.append(pair)
        return pairs

    def _match_table_rows(self, container: Tag) -> List[AttributePair]:
        """Label/value cells of table rows; legacy four-cell rows hold two pairs."""
        pairs = []
        for row in container.find_all('tr'):
            cells = row.find_all('td', recursive=False)
            for i in range(0, len(cells) - 1, 2):
                pair = self._make_pair(cells[i].get_text(), cells[i + 1].get_text())
                if pair:
                    pairs.append(pair)
        return pairs

    def _dedupe_specifics(self, pool: List[AttributePair]) -> Tuple[AttributePair, ...]:
        """Keep the first of each case-insensitive label/value pair, drop condition."""
        seen = set()
        unique = []
        for pair in pool:
            if pair.label.lower() == 'condition':
                continue
            key = pair.identity_key
            if key in seen:
                continue
            seen.add(key)
            unique.append(pair)
        return tuple(unique)


def parse_listing_html(html_content: str, config: Optional[ParserConfig] = None) -> ParsedListing:
    """Parse one saved listing page with a fresh parser."""
    return ListingHTMLParser(config).parse_html(html_content)
