"""Text helpers shared by the domain services.

Incoming documents and user input have BOM markers and replacement
characters stripped at the boundary; internal layers assume text is already
clean and work on exact character offsets.
"""

import unicodedata


def clean_text(text: str, *, normalize: bool = True, ascii_only: bool = False) -> str:
    """Strip byte-order marks, replacement characters and NUL bytes.

    NFKC normalization is applied unless ``normalize`` is false, so ligatures
    and full-width forms extracted from PDFs compare equal to their plain
    spellings. ``ascii_only`` drops every remaining non-ASCII character.
    """
    if not text:
        return ""

    cleaned = text.replace("\ufeff", "").replace("\ufffd", "").replace("\x00", " ")
    if normalize:
        cleaned = unicodedata.normalize("NFKC", cleaned)
    if ascii_only:
        cleaned = cleaned.encode("ascii", errors="ignore").decode("ascii")
    return cleaned


def query_terms(text: str) -> list[str]:
    """Lower-cased whitespace-separated terms of ``text``."""
    return [term for term in text.lower().split() if term]
