from __future__ import annotations

import regex

DEFAULT_MAX_UNITS = 4

_GRAPHEME_RE = regex.compile(r"\X")


def grapheme_clusters(text: str) -> list[str]:
    """Split ``text`` into user-perceived characters (extended grapheme clusters)."""

    return _GRAPHEME_RE.findall(text)


def strip_whitespace(text: str) -> str:
    # str.isspace() covers U+3000 (ideographic space) as well.
    return "".join(ch for ch in text if not ch.isspace())


def segment(text: str | None, max_units: int = DEFAULT_MAX_UNITS) -> list[str]:
    """Return exactly ``max_units`` display units for ``text``, padded with ''."""

    if max_units <= 0:
        return []
    units = grapheme_clusters(strip_whitespace(text or ""))[:max_units]
    units.extend("" for _ in range(max_units - len(units)))
    return units
