"""Classification of user links into mentions and mention notifications."""

import logging
from typing import Dict, List, Optional

from talkwatch.config import settings
from talkwatch.models import EventType, MentionFailureType, MentionResult, Revision, User
from talkwatch.ports import EventSink, IdentityResolver
from talkwatch.sections import strip_header
from talkwatch.signatures import SignatureLocator
from talkwatch.titles import Namespace, Title

logger = logging.getLogger(__name__)


class MentionClassifier:
    """Sorts the user links of new content into mention buckets."""

    def __init__(self, identity: IdentityResolver, max_mentions: Optional[int] = None) -> None:
        self.identity = identity
        self.max_mentions = settings.max_mentions_count if max_mentions is None else max_mentions

    def classify(self, title: Title, agent: User, user_links: Dict[str, int]) -> MentionResult:
        """Classify user links, in encounter order.

        Subpage links, self mentions and mentions of the talk page owner on
        their own talk page are skipped without being counted. Every other
        link counts toward the mention limit; processing stops once the
        limit is exceeded.
        """
        valid: Dict[int, int] = {}
        unknown_users: List[str] = []
        anonymous_users: List[str] = []
        count = 0

        for db_key in user_links:
            if count > self.max_mentions:
                logger.warning("Too many mentions on %s, ignoring remaining links", title.prefixed_text)
                break

            if "/" in db_key:
                logger.debug("Skipping subpage link %s", db_key)
                continue

            if self.identity.is_ip(db_key):
                anonymous_users.append(db_key)
                count += 1
                continue

            canonical = self.identity.get_canonical_name(db_key)
            if canonical is None:
                unknown_users.append(db_key.replace("_", " "))
                count += 1
                continue

            user_id = self.identity.get_user_id(canonical)
            if self._is_agent(agent, user_id, canonical):
                logger.debug("Skipping self mention by %s", agent.name)
                continue

            if title.namespace == Namespace.USER_TALK and title.db_key == db_key:
                logger.debug("Skipping mention of talk page owner %s", db_key)
                continue

            if user_id == 0:
                unknown_users.append(db_key.replace("_", " "))
                count += 1
                continue

            valid[user_id] = user_id
            count += 1

        return MentionResult(
            valid_mentions=set(valid),
            unknown_users=unknown_users,
            anonymous_users=anonymous_users,
        )

    def _is_agent(self, agent: User, user_id: int, canonical: str) -> bool:
        if agent.is_registered:
            return user_id == agent.id
        return canonical == agent.name


class MentionNotifier:
    """Emits mention notifications for one discussion action."""

    def __init__(
        self,
        classifier: MentionClassifier,
        signatures: SignatureLocator,
        sink: EventSink,
        success_notifications: Optional[bool] = None,
    ) -> None:
        self.classifier = classifier
        self.signatures = signatures
        self.sink = sink
        self.success_notifications = (
            settings.mention_success_notifications
            if success_notifications is None
            else success_notifications
        )

    def generate_mention_events(
        self,
        header: Optional[str],
        user_links: Dict[str, int],
        content: str,
        revision: Revision,
        agent: User,
        title: Title,
    ) -> Optional[MentionResult]:
        """Notify users linked from `content`, and tell the agent about failures.

        Returns the classification that was acted upon, an empty result when
        the mention limit was exceeded, or None when there was nothing to do.
        """
        content = self.signatures.strip_signature(strip_header(content), title)

        if not user_links:
            return None

        mentions = self.classifier.classify(title, agent, user_links)
        if mentions.overall_count == 0:
            return None

        max_mentions = self.classifier.max_mentions
        if mentions.overall_count > max_mentions:
            self.sink.emit(
                EventType.MENTION_FAILURE_TOO_MANY,
                title,
                agent,
                {
                    "max-mentions": max_mentions,
                    "section-title": header,
                    "notifyAgent": True,
                },
            )
            logger.warning(
                "Rejected %d mentions by %s on %s (limit %d)",
                mentions.overall_count,
                agent.name,
                title.prefixed_text,
                max_mentions,
            )
            return MentionResult()

        mentioned = sorted(mentions.valid_mentions)
        if mentioned:
            self.sink.emit(
                EventType.MENTION,
                title,
                agent,
                {
                    "content": content,
                    "section-title": header,
                    "revid": revision.id,
                    "mentioned-users": mentioned,
                },
            )

        if self.success_notifications:
            for user_id in mentioned:
                mentioned_user = self.classifier.identity.get_user(user_id)
                self.sink.emit(
                    EventType.MENTION_SUCCESS,
                    title,
                    agent,
                    {
                        "subject-name": mentioned_user.name if mentioned_user else str(user_id),
                        "section-title": header,
                        "revid": revision.id,
                        "notifyAgent": True,
                    },
                )

        for name in mentions.anonymous_users:
            self._emit_failure(MentionFailureType.USER_ANONYMOUS, name, header, revision, agent, title)
        for name in mentions.unknown_users:
            self._emit_failure(MentionFailureType.USER_UNKNOWN, name, header, revision, agent, title)

        return mentions

    def _emit_failure(
        self,
        failure_type: MentionFailureType,
        subject: str,
        header: Optional[str],
        revision: Revision,
        agent: User,
        title: Title,
    ) -> None:
        self.sink.emit(
            EventType.MENTION_FAILURE,
            title,
            agent,
            {
                "failure-type": failure_type.value,
                "subject-name": subject,
                "section-title": header,
                "revid": revision.id,
                "notifyAgent": True,
            },
        )
