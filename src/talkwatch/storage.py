"""In-memory revision and page store."""

from typing import Dict, Optional

from talkwatch.models import Revision
from talkwatch.titles import Title


class InMemoryRevisionStore:
    """Revision store with a primary and a lagging replica view of pages.

    Pages added with `replicated=False` are only visible to primary reads
    until `replicate()` is called, like a freshly created page.
    """

    def __init__(self) -> None:
        self._revisions: Dict[int, Revision] = {}
        self._primary_titles: Dict[int, Title] = {}
        self._replica_titles: Dict[int, Title] = {}

    def add_page(self, page_id: int, title: Title, replicated: bool = True) -> None:
        """Register a page title."""
        self._primary_titles[page_id] = title
        if replicated:
            self._replica_titles[page_id] = title

    def delete_page(self, page_id: int) -> None:
        self._primary_titles.pop(page_id, None)
        self._replica_titles.pop(page_id, None)

    def replicate(self) -> None:
        """Make every primary page visible to replica reads."""
        self._replica_titles = dict(self._primary_titles)

    def add_revision(self, revision: Revision) -> Revision:
        """Store a revision; it must carry an id."""
        if revision.id is None:
            raise ValueError("Stored revisions need an id")
        self._revisions[revision.id] = revision
        return revision

    def get_revision(self, revision_id: int) -> Optional[Revision]:
        return self._revisions.get(revision_id)

    def get_title(self, page_id: int, from_primary: bool = False) -> Optional[Title]:
        """Get the title of a page from the primary or the replica view."""
        titles = self._primary_titles if from_primary else self._replica_titles
        return titles.get(page_id)
