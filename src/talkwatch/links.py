"""User link extraction from wikitext."""

import hashlib
import logging
import re
from collections import OrderedDict
from typing import Callable, Dict, Optional, Tuple

from talkwatch.config import settings
from talkwatch.ports import LinkRenderer, LinkTable
from talkwatch.titles import Namespace, Title

logger = logging.getLogger(__name__)

WIKILINK_PATTERN = re.compile(r"\[\[([^\[\]|]+)(?:\|[^\[\]]*)?\]\]")
NOWIKI_PATTERN = re.compile(r"<nowiki>.*?</nowiki>|<!--.*?-->", re.DOTALL | re.IGNORECASE)


class WikitextLinkRenderer:
    """Link table builder that reads [[...]] links straight from wikitext.

    Templates are not expanded, so only literal links are reported. Page ids
    come from an optional lookup; links to unknown pages get id 0.
    """

    def __init__(self, page_id_lookup: Optional[Callable[[Title], int]] = None) -> None:
        self._page_id_lookup = page_id_lookup

    def render_links(self, content: str, context_title: Title) -> LinkTable:
        """Collect links by namespace, keyed by db key, in encounter order."""
        links: LinkTable = {}
        for match in WIKILINK_PATTERN.finditer(NOWIKI_PATTERN.sub("", content)):
            target = match.group(1).strip()
            # Subpage shorthand resolves against the context page
            if target.startswith("/"):
                target = context_title.prefixed_text + target
            title = Title.new_from_text(target)
            if title is None or title.namespace == Namespace.SPECIAL:
                continue
            page_id = self._page_id_lookup(title) if self._page_id_lookup else 0
            links.setdefault(title.namespace, {}).setdefault(title.db_key, page_id)
        return links


class LinkExtractor:
    """Memoizing adapter that pulls user namespace links out of content."""

    def __init__(self, renderer: LinkRenderer, max_size: Optional[int] = None) -> None:
        self._renderer = renderer
        self.max_size = settings.interpretation_cache_size if max_size is None else max_size
        self._cache: "OrderedDict[Tuple[str, str], LinkTable]" = OrderedDict()

    def render(self, content: str, title: Title) -> LinkTable:
        """Render content once per (content hash, title) pair."""
        key = (hashlib.md5(content.encode("utf-8")).hexdigest(), title.prefixed_text)
        if key in self._cache:
            logger.debug("Link table cache hit for %s", title.prefixed_text)
            self._cache.move_to_end(key)
            return self._cache[key]

        links = self._renderer.render_links(content, title)
        self._cache[key] = links
        if self.max_size and len(self._cache) > self.max_size:
            self._cache.popitem(last=False)
        return links

    def get_user_links(self, content: str, title: Title) -> Dict[str, int]:
        """Return user namespace links as db key -> page id."""
        return dict(self.render(content, title).get(Namespace.USER, {}))

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()
