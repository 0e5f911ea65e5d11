"""Extraction of the current events portal into a flat feed."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from .errors import ExtractError, NoContentError
from .links import DEFAULT_ORIGIN, normalize
from .models import Entry, Feed, Header, Post, RawDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FixedSection:
    """A section located by its ARIA label rather than by date."""

    label: str
    title: str


FIXED_SECTIONS: Tuple[FixedSection, ...] = (
    FixedSection("Topics_in_the_news", "Topics in the News"),
    FixedSection("Ongoing_events", "Ongoing"),
    FixedSection("Recent_deaths", "Recent Deaths"),
)

DAY_HEADING_SELECTOR = "div.current-events-heading"
DAY_TITLE_SELECTOR = "span.summary"
DAY_CONTENT_CLASS = "current-events-content"
DAY_HEADING_CLASS = "current-events-heading"

_WEEKDAY_SUFFIX_RE = re.compile(
    r"\s*\((?:Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday)\)\s*$"
)


def strip_weekday(label: str) -> str:
    """Drop a trailing " (Weekday)" from a date label."""
    return _WEEKDAY_SUFFIX_RE.sub("", label.strip()).strip()


class SectionExtractor:
    """Turns the portal HTML into an ordered ``Feed``."""

    def __init__(
        self,
        origin: str = DEFAULT_ORIGIN,
        sections: Tuple[FixedSection, ...] = FIXED_SECTIONS,
    ):
        self.origin = origin
        self.sections = sections

    def extract(self, document) -> Feed:
        """Return the feed for ``document`` (text or ``RawDocument``).

        Raises ``NoContentError`` when no section produced a post and
        ``ExtractError`` when the markup could not be processed at all.
        """
        text = document.text if isinstance(document, RawDocument) else document
        if not text or not text.strip():
            logger.warning("Empty document provided to extractor")
            raise NoContentError()

        try:
            soup = BeautifulSoup(text, "html.parser")
        except Exception as exc:  # noqa: BLE001 - parser internals
            raise ExtractError(f"Could not parse document: {exc}") from exc

        entries: List[Entry] = []
        for section in self.sections:
            entries.extend(self._fixed_section(soup, section))
        entries.extend(self._dated_sections(soup))

        posts = sum(1 for entry in entries if isinstance(entry, Post))
        if not posts:
            logger.error("No data parsed from the fetched content")
            raise NoContentError()

        logger.info(
            "Extracted %d entries (%d posts) from document",
            len(entries),
            posts,
        )
        return Feed(entries)

    def _fixed_section(self, soup: BeautifulSoup, section: FixedSection) -> List[Entry]:
        try:
            container = soup.select_one(f'div[aria-labelledby="{section.label}"]')
            if container is None:
                logger.warning("Section '%s' not found", section.title)
                return []

            item_list = container.find("ul")
            if item_list is None:
                logger.warning("List items under '%s' not found", section.title)
                return []

            posts = self._posts(item_list, section.title)
        except Exception:  # noqa: BLE001 - one broken section must not sink the feed
            logger.exception("Error parsing '%s' section", section.title)
            return []

        if not posts:
            logger.warning("No articles found in section '%s'", section.title)
            return []

        logger.debug("Parsed section '%s' with %d posts", section.title, len(posts))
        return [Header(section.title), *posts]

    def _dated_sections(self, soup: BeautifulSoup) -> List[Entry]:
        headings = soup.select(DAY_HEADING_SELECTOR)
        if not headings:
            logger.warning("'Current events of' sections not found")
            return []

        entries: List[Entry] = []
        for heading in headings:
            try:
                title_element = heading.select_one(DAY_TITLE_SELECTOR)
                if title_element is None:
                    logger.warning("Title element not found in daily section")
                    continue

                label = strip_weekday(title_element.get_text())
                if not label:
                    logger.warning("Daily section has an empty title")
                    continue

                day_entries: List[Entry] = [Header(label)]
                item_list = _find_day_list(heading)
                if item_list is None:
                    logger.warning(
                        "List items under 'Current events of %s' not found", label
                    )
                else:
                    day_entries.extend(self._posts(item_list, label))
            except Exception:  # noqa: BLE001
                logger.exception("Error parsing 'Current events of' section")
                continue

            logger.debug(
                "Parsed daily section '%s' with %d posts", label, len(day_entries) - 1
            )
            entries.extend(day_entries)
        return entries

    def _posts(self, item_list: Tag, section_title: str) -> List[Post]:
        posts: List[Post] = []
        for item in item_list.find_all("li"):
            fragment = item.decode_contents().strip()
            if not fragment:
                logger.debug("Skipping empty item in '%s'", section_title)
                continue
            posts.append(Post(normalize(fragment, self.origin)))
        return posts


def _find_day_list(heading: Tag) -> Optional[Tag]:
    """Locate the list of the content block that belongs to ``heading``.

    The content block is a following sibling of the heading or of its
    parent; scanning stops at the next day heading.
    """
    for anchor in (heading, heading.parent):
        if anchor is None:
            continue
        for sibling in anchor.find_next_siblings():
            classes = sibling.get("class") or []
            if DAY_HEADING_CLASS in classes or sibling.select_one(DAY_HEADING_SELECTOR):
                break
            if DAY_CONTENT_CLASS in classes:
                return sibling.find("ul", recursive=False)
    return None


_DEFAULT_EXTRACTOR = SectionExtractor()


def extract(document) -> Feed:
    """Extract a feed using the default portal origin."""
    return _DEFAULT_EXTRACTOR.extract(document)
