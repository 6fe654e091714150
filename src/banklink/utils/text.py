"""Display text normalization."""

import re

_WORD = re.compile(r"[^\W_]+(?:'[^\W_]+)?")


def capital_case(value: str | None) -> str:
    """Title-case a vendor string word by word.

    Separators such as ``_`` and ``-`` become spaces, so
    ``"AMAZON_WEB-SERVICES"`` reads ``"Amazon Web Services"``.
    """
    if not value:
        return ""
    words = _WORD.findall(value.replace("_", " "))
    return " ".join(w[:1].upper() + w[1:].lower() for w in words)


def description_if_distinct(name: str, *candidates: str | None) -> str | None:
    """Return the first candidate that differs from the display name."""
    for candidate in candidates:
        text = (candidate or "").strip()
        if text and text.lower() != name.lower():
            return text
    return None
