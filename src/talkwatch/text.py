"""Plain-text helpers for snippets and signature stripping."""

import html
import re

ELLIPSIS = "..."

_LINK_RE = re.compile(r"\[\[([^\[\]|]*)(?:\|([^\[\]]*))?\]\]")
_EXTERNAL_LINK_RE = re.compile(r"\[(?:https?:)?//[^\s\]]+(?:\s+([^\]]*))?\]")
_TEMPLATE_RE = re.compile(r"\{\{[^{}]*\}\}")
_QUOTES_RE = re.compile(r"'{2,}")
_TAG_RE = re.compile(r"<[^>]*>")
_PARTIAL_TAG_RE = re.compile(r"<[A-Za-z/!][^<>]*$")


def _collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def truncate_markup_safe(text: str, length: int) -> str:
    """Cut text at a character offset without leaving a partial tag behind."""
    if length >= len(text):
        return text
    head = text[: max(length, 0)]
    # Drop a tag that was opened but not closed before the cut
    partial_tag = _PARTIAL_TAG_RE.search(head)
    if partial_tag:
        head = head[: partial_tag.start()]
    return head


def truncate(text: str, length: int, ellipsis: str = ELLIPSIS) -> str:
    """Truncate to at most length characters, ellipsis included."""
    if len(text) <= length:
        return text
    cut = max(length - len(ellipsis), 0)
    return text[:cut].rstrip() + ellipsis


def html_to_text(markup: str) -> str:
    """Strip tags and decode entities."""
    return html.unescape(_TAG_RE.sub("", markup)).strip()


def wikitext_to_text(wikitext: str) -> str:
    """Reduce wikitext to readable plain text.

    Links are replaced by their display text, templates are dropped and
    bold/italic quote runs are removed before tags are stripped.
    """
    text = _TEMPLATE_RE.sub("", wikitext)
    text = _LINK_RE.sub(lambda m: m.group(2) if m.group(2) else m.group(1).lstrip(":"), text)
    text = _EXTERNAL_LINK_RE.sub(lambda m: m.group(1) or "", text)
    text = _QUOTES_RE.sub("", text)
    return _collapse_whitespace(html_to_text(text))


def get_text_snippet(text: str, length: int = 150) -> str:
    """Convert wikitext into a truncated plain-text snippet."""
    return truncate(wikitext_to_text(text), length)


def get_text_snippet_from_summary(summary: str, length: int = 150) -> str:
    """Convert an edit summary into a truncated plain-text snippet."""
    # Summaries are not full wikitext: only links are rendered
    text = _LINK_RE.sub(lambda m: m.group(2) if m.group(2) else m.group(1).lstrip(":"), summary)
    return truncate(_collapse_whitespace(html_to_text(text)), length)
