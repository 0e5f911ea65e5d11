"""Rewriting of site-relative links inside extracted fragments."""

from __future__ import annotations

import re

DEFAULT_ORIGIN = "https://en.m.wikipedia.org"

# Root-relative only; protocol-relative "//host" links are left alone.
_RELATIVE_HREF_RE = re.compile(r"""(\bhref=)(["'])/(?!/)""")


def normalize(fragment: str, origin: str = DEFAULT_ORIGIN) -> str:
    """Return ``fragment`` with every ``href="/..."`` made absolute against ``origin``."""
    if not fragment:
        return fragment
    base = origin.rstrip("/")
    return _RELATIVE_HREF_RE.sub(
        lambda match: f"{match.group(1)}{match.group(2)}{base}/", fragment
    )
