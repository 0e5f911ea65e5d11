"""Shared data models for wikinews."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple, Union

from bs4 import BeautifulSoup

_HREF_RE = re.compile(r"""href=["']([^"']+)["']""")


@dataclass(frozen=True)
class Header:
    """Section header within a feed."""

    text: str
    kind: str = field(default="header", init=False)


@dataclass(frozen=True)
class Post:
    """Single news item; ``html`` keeps the inline markup of the list item."""

    html: str
    kind: str = field(default="post", init=False)

    @property
    def text(self) -> str:
        """Plain-text rendition of the fragment."""
        soup = BeautifulSoup(self.html, "html.parser")
        return soup.get_text(separator=" ", strip=True)

    @property
    def url(self) -> str:
        """First hyperlink in the fragment, or an empty string."""
        match = _HREF_RE.search(self.html)
        return match.group(1) if match else ""


Entry = Union[Header, Post]


class Feed:
    """Immutable, ordered sequence of entries in document order."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[Entry] = ()):
        self._entries: Tuple[Entry, ...] = tuple(entries)

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index):
        return self._entries[index]

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __eq__(self, other) -> bool:
        if isinstance(other, Feed):
            return self._entries == other._entries
        if isinstance(other, (list, tuple)):
            return self._entries == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"Feed({list(self._entries)!r})"

    @property
    def entries(self) -> Tuple[Entry, ...]:
        return self._entries

    @property
    def headers(self) -> List[Header]:
        return [entry for entry in self._entries if isinstance(entry, Header)]

    @property
    def posts(self) -> List[Post]:
        return [entry for entry in self._entries if isinstance(entry, Post)]

    def sections(self) -> List[Tuple[Optional[str], List[Post]]]:
        """Group posts under the header that precedes them."""
        grouped: List[Tuple[Optional[str], List[Post]]] = []
        for entry in self._entries:
            if isinstance(entry, Header):
                grouped.append((entry.text, []))
            else:
                if not grouped:
                    grouped.append((None, []))
                grouped[-1][1].append(entry)
        return grouped

    def to_list(self) -> List[dict]:
        """Serialisable form used for JSON output."""
        output = []
        for entry in self._entries:
            if isinstance(entry, Header):
                output.append({"kind": entry.kind, "text": entry.text})
            else:
                output.append({"kind": entry.kind, "html": entry.html})
        return output


@dataclass(frozen=True)
class RawDocument:
    """Body of a successful transport response."""

    url: str
    text: str
    status_code: int = 200


@dataclass(frozen=True)
class Loading:
    """A load attempt is in progress."""


@dataclass(frozen=True)
class Content:
    """A feed is available for display."""

    feed: Feed


@dataclass(frozen=True)
class Error:
    """The latest load attempt failed; the consumer should offer a retry."""

    message: str
    cause: Optional[BaseException] = field(default=None, compare=False)


ContentState = Union[Loading, Content, Error]
