"""
Text Helpers

Cleaning extracted page text and composing the text that gets embedded.
"""

import re
from typing import Optional
from urllib.parse import urlparse

_WHITESPACE_RE = re.compile(r"\s+")
_HOST_RE = re.compile(r"(?:https?://)?(?:www\.)?([^/]+)", re.IGNORECASE)


def clean_text_content(text: Optional[str], max_length: int = 8000) -> str:
    """
    Collapse whitespace and cap the length.

    When the text is too long it is cut at the last sentence boundary,
    provided that boundary lies beyond 80% of `max_length`; otherwise it is
    hard-truncated and "..." appended.

    Args:
        text: Raw extracted text
        max_length: Maximum length before truncation

    Returns:
        Cleaned text ("" for empty input)
    """
    if not text:
        return ""

    cleaned = _WHITESPACE_RE.sub(" ", text).strip()
    if len(cleaned) <= max_length:
        return cleaned

    truncated = cleaned[:max_length]
    last_sentence = truncated.rfind(". ")
    if last_sentence > max_length * 0.8:
        return truncated[:last_sentence + 1]
    return truncated + "..."


def describe_url(url: Optional[str]) -> str:
    """
    Readable description of a URL for tabs with no other text.

    "https://github.com/docs/api" becomes "Github website docs api page".
    """
    if not url:
        return ""

    parsed = urlparse(url)
    if not parsed.hostname:
        match = _HOST_RE.match(url.strip())
        return f"{match.group(1)} website" if match else ""

    domain = parsed.hostname.replace("www.", "", 1)
    first_label = domain.split(".")[0]
    parts = [f"{first_label[:1].upper()}{first_label[1:]} website"]

    path = parsed.path or ""
    if len(path) > 1:
        readable = " ".join(
            re.sub(r"[-_]", " ", segment) for segment in path.split("/") if segment
        ).lower()
        if len(readable) > 2:
            parts.append(f"{readable} page")

    return " ".join(parts)


def generate_embedding_text(
    title: Optional[str],
    summary: Optional[str],
    content: Optional[str] = None,
    url: Optional[str] = None
) -> str:
    """
    Compose the text to embed: title, then summary, then page content.

    Falls back to `describe_url(url)` when all three are empty, so even a
    tab whose upstream stages failed still gets a (shallower) embedding.
    """
    parts = [part.strip() for part in (title, summary, content) if part and part.strip()]
    if not parts and url:
        described = describe_url(url)
        if described:
            parts.append(described)
    return " ".join(parts).strip()
