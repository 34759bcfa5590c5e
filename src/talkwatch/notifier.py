"""Per-revision discussion notifications.

For every saved revision the notifier interprets the diff against the
parent revision, scans discussion actions for user mentions and, on user
talk pages, notifies the page owner about the new message.
"""

import logging
from typing import List, Optional

from talkwatch.config import settings
from talkwatch.diff_engine import SequenceDiffEngine
from talkwatch.interpreter import DiscussionInterpreter, InterpretationCache
from talkwatch.links import LinkExtractor, WikitextLinkRenderer
from talkwatch.mentions import MentionClassifier, MentionNotifier
from talkwatch.models import (
    Action,
    AddComment,
    AddSectionMultiple,
    EventType,
    NewSectionWithComment,
    Revision,
    SectionSummary,
    UnknownSignedChange,
    User,
)
from talkwatch.ports import DiffEngine, EventSink, IdentityResolver, LinkRenderer, RevisionStore, SignatureEngine
from talkwatch.sections import extract_header, strip_header
from talkwatch.signatures import SignatureLocator, TildeSignatureEngine
from talkwatch.text import get_text_snippet, truncate
from talkwatch.titles import Namespace, Title

logger = logging.getLogger(__name__)

# Right exempting an agent from talk page notices for minor edits
NO_MINOR_NEW_TALK = "nominornewtalk"


class DiscussionNotifier:
    """Generates notification events for the discussion activity of revisions."""

    def __init__(
        self,
        store: RevisionStore,
        identity: IdentityResolver,
        sink: EventSink,
        signature_engine: Optional[SignatureEngine] = None,
        link_renderer: Optional[LinkRenderer] = None,
        diff_engine: Optional[DiffEngine] = None,
        cache: Optional[InterpretationCache] = None,
        max_mentions: Optional[int] = None,
        mention_success_notifications: Optional[bool] = None,
    ) -> None:
        """Wire the parser from its collaborators.

        Args:
            store: Revision and page lookups
            identity: User account lookups
            sink: Receiver of the generated notification events
            signature_engine: Tilde signature substitution (defaults to configured formats)
            link_renderer: Link table producer (defaults to literal wikitext links)
            diff_engine: Line diff computation (defaults to difflib)
            cache: Interpretation cache owned by the caller
        """
        self.store = store
        self.identity = identity
        self.sink = sink
        self.signatures = SignatureLocator(signature_engine or TildeSignatureEngine(), identity=identity)
        self.links = LinkExtractor(link_renderer or WikitextLinkRenderer())
        self.interpreter = DiscussionInterpreter(
            self.signatures, diff_engine or SequenceDiffEngine(), cache
        )
        self.mentions = MentionNotifier(
            MentionClassifier(identity, max_mentions),
            self.signatures,
            sink,
            mention_success_notifications,
        )

    def get_title(self, revision: Revision) -> Optional[Title]:
        """Resolve the page title, reading from the primary for new pages."""
        return self.store.get_title(revision.page_id, from_primary=not revision.parent_id)

    def get_agent(self, revision: Revision) -> User:
        """Return the user who made the revision."""
        if revision.user_id:
            user = self.identity.get_user(revision.user_id)
            if user is not None:
                return user
        return User(id=revision.user_id, name=revision.user_text)

    def get_change_interpretation(self, revision: Revision, title: Optional[Title] = None) -> List[Action]:
        return self.interpreter.get_change_interpretation_for_revision(revision, self.store, title)

    def generate_events_for_revision(self, revision: Revision) -> None:
        """Emit mention and talk page events for the discussion actions of a revision."""
        title = self.get_title(revision)
        if title is None:
            logger.debug("Page %s of revision %s not found, skipping", revision.page_id, revision.id)
            return

        actions = self.get_change_interpretation(revision, title)
        agent = self.get_agent(revision)

        for action in actions:
            self._generate_mention_events_for_action(action, revision, agent, title)

        if title.namespace == Namespace.USER_TALK:
            self._generate_talk_page_event(actions, revision, agent, title)

    def _generate_mention_events_for_action(
        self, action: Action, revision: Revision, agent: User, title: Title
    ) -> None:
        if isinstance(action, AddComment):
            header = extract_header(action.full_section)
            content = action.content
            user_links = self.links.get_user_links(content, title)
        elif isinstance(action, NewSectionWithComment):
            content = action.content
            header = extract_header(content)
            user_links = self.links.get_user_links(content, title)
        elif isinstance(action, AddSectionMultiple):
            if not settings.mentions_on_multiple_section_edits:
                return
            content = self.signatures.strip_signature(strip_header(action.content), title)
            header = action.header
            user_links = self.links.get_user_links(content, title)
        elif isinstance(action, UnknownSignedChange):
            if not settings.mention_on_changes:
                return
            # Only links that the change introduced
            old_links = self.links.get_user_links(action.old_content, title)
            user_links = {
                db_key: page_id
                for db_key, page_id in self.links.get_user_links(action.new_content, title).items()
                if db_key not in old_links
            }
            header = extract_header(action.full_section)
            content = action.new_content
        else:
            return

        self.mentions.generate_mention_events(header, user_links, content, revision, agent, title)

    def _generate_talk_page_event(
        self, actions: List[Action], revision: Revision, agent: User, title: Title
    ) -> None:
        """Notify the owner of a user talk page about a new message."""
        owner_id = self.identity.get_user_id(title.text)
        if not owner_id or owner_id == agent.id:
            return
        # Agents with the right may make minor edits without notifying the owner
        if revision.minor and self.identity.is_allowed(agent, NO_MINOR_NEW_TALK):
            return

        section = self.detect_section_title_and_text(actions, title)
        self.sink.emit(
            EventType.EDIT_USER_TALK,
            title,
            agent,
            {
                "revid": revision.id,
                "minoredit": revision.minor,
                "section-title": section.title,
                "section-text": section.text or revision.comment,
                "target-page": revision.page_id,
            },
        )

    def detect_section_title_and_text(
        self, actions: List[Action], title: Optional[Title] = None
    ) -> SectionSummary:
        """Determine the section an edit was made under, if it is unambiguous.

        Only comment actions are considered. When they name more than one
        distinct header the edit cannot be linked to a single section and
        an empty summary is returned.
        """
        found: Optional[SectionSummary] = None
        for action in actions:
            if isinstance(action, AddComment):
                header = extract_header(action.full_section)
            elif isinstance(action, NewSectionWithComment):
                header = extract_header(action.content)
            else:
                continue
            if not header:
                continue
            if found is not None:
                if header != found.title:
                    return SectionSummary()
                continue
            snippet = get_text_snippet(
                self.signatures.strip_signature(strip_header(action.content), title),
                settings.snippet_length,
            )
            found = SectionSummary(title=header, text=snippet)

        return found or SectionSummary()

    def get_edit_excerpt(self, revision: Revision, length: int = 150) -> str:
        """Return a short "section title + text" excerpt of a revision."""
        title = self.get_title(revision)
        actions = self.get_change_interpretation(revision, title)
        section = self.detect_section_title_and_text(actions, title)
        return truncate(f"{section.title} {section.text}".strip(), length)
