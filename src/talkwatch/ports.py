"""Ports (interfaces) for the collaborators of the discussion parser.

The parser only depends on these contracts; the in-memory adapters and a
real wiki backend both implement them.
"""

from typing import Any, Dict, Optional, Protocol

from talkwatch.models import EventType, LineDiff, Revision, User
from talkwatch.titles import Namespace, Title

# namespace -> (db key -> page id); page id 0 marks a link to a missing page
LinkTable = Dict[Namespace, Dict[str, int]]


class DiffEngine(Protocol):
    """Line-level diff computation."""

    def get_change_set(self, old_text: str, new_text: str) -> LineDiff:
        ...


class LinkRenderer(Protocol):
    """Wikitext rendering, reduced to the link table it produces."""

    def render_links(self, content: str, context_title: Title) -> LinkTable:
        ...


class SignatureEngine(Protocol):
    """Pre-save substitution of tilde signatures."""

    def substitute(self, template: str, context_title: Title, username: str) -> str:
        ...


class IdentityResolver(Protocol):
    """User account lookups."""

    def is_ip(self, name: str) -> bool:
        ...

    def get_canonical_name(self, name: str) -> Optional[str]:
        ...

    def get_user_id(self, name: str) -> int:
        ...

    def get_user(self, user_id: int) -> Optional[User]:
        ...

    def is_allowed(self, user: User, right: str) -> bool:
        ...


class RevisionStore(Protocol):
    """Revision and page lookups."""

    def get_revision(self, revision_id: int) -> Optional[Revision]:
        ...

    def get_title(self, page_id: int, from_primary: bool = False) -> Optional[Title]:
        ...


class EventSink(Protocol):
    """Receiver of notification requests."""

    def emit(self, event_type: EventType, title: Title, agent: User, extra: Dict[str, Any]) -> None:
        ...
