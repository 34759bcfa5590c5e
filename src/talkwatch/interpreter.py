"""Interpretation of revision diffs as talk page actions."""

import logging
from collections import OrderedDict
from typing import List, Optional

from talkwatch.config import settings
from talkwatch.models import (
    Action,
    AddComment,
    AddSectionMultiple,
    DiffAction,
    DiffHunk,
    LineDiff,
    NewSectionWithComment,
    Revision,
    SignedSection,
    Unknown,
    UnknownChange,
    UnknownMultiSignedAddition,
    UnknownSubtraction,
    UnknownUnsignedAddition,
)
from talkwatch.ports import DiffEngine, RevisionStore
from talkwatch.sections import (
    extract_header,
    extract_sections,
    get_full_section,
    get_section_count,
    get_section_span,
    starts_with_header,
)
from talkwatch.signatures import SignatureLocator
from talkwatch.titles import Title

logger = logging.getLogger(__name__)


class InterpretationCache:
    """Interpretations keyed by revision id, optionally bounded (LRU)."""

    def __init__(self, max_size: Optional[int] = None) -> None:
        self.max_size = settings.interpretation_cache_size if max_size is None else max_size
        self._entries: "OrderedDict[int, List[Action]]" = OrderedDict()

    def get(self, revision_id: int) -> Optional[List[Action]]:
        actions = self._entries.get(revision_id)
        if actions is not None:
            self._entries.move_to_end(revision_id)
        return actions

    def set(self, revision_id: int, actions: List[Action]) -> None:
        self._entries[revision_id] = actions
        self._entries.move_to_end(revision_id)
        if self.max_size and len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def __contains__(self, revision_id: int) -> bool:
        return revision_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


def is_in_signed_section(line: int, signed_sections: List[SignedSection]) -> bool:
    """Check whether a line falls inside (start, end] of any signed section."""
    return any(start < line <= end for start, end in signed_sections)


def convert_to_unknown_signed_changes(
    signed_sections: List[SignedSection], actions: List[Action]
) -> List[Action]:
    """Re-tag changes that lie inside a signed section."""
    converted: List[Action] = []
    for action in actions:
        if isinstance(action, UnknownChange) and is_in_signed_section(action.right_pos, signed_sections):
            converted.append(action.signed())
        else:
            converted.append(action)
    return converted


class DiscussionInterpreter:
    """Turns line diffs into a talk-page-centric list of actions.

    Action types:
    - add-comment: a comment signed by the user is added to an existing section
    - new-section-with-comment: a new section with a single comment signed by the user
    - add-section-multiple: signed additions while editing several sections at once
    - unknown-multi-signed-addition: added content signed by someone else or by several users
    - unknown-unsigned-addition: added content without signature
    - unknown-subtraction: removed content, not analysed further
    - unknown-change: replaced content
    - unknown-signed-change: replaced content inside a section the user signed in this diff
    - unknown: unrecognised hunk, passed through in `details`
    """

    def __init__(
        self,
        signatures: SignatureLocator,
        diff_engine: DiffEngine,
        cache: Optional[InterpretationCache] = None,
    ) -> None:
        self.signatures = signatures
        self.diff_engine = diff_engine
        self.cache = cache if cache is not None else InterpretationCache()

    def interpret_diff(
        self, changes: LineDiff, username: str, title: Optional[Title] = None
    ) -> List[Action]:
        """Interpret a line diff made by `username` as discussion actions."""
        actions: List[Action] = []
        signed_sections: List[SignedSection] = []
        rhs = changes.rhs

        for hunk in changes.hunks:
            if hunk.action == DiffAction.ADD:
                actions.extend(self._interpret_addition(hunk, username, rhs, signed_sections, title))
            elif hunk.action == DiffAction.SUBTRACT:
                actions.append(UnknownSubtraction(content=hunk.content))
            elif hunk.action == DiffAction.CHANGE:
                old_content = hunk.old_content or ""
                new_content = hunk.new_content or ""
                actions.append(
                    UnknownChange(
                        old_content=old_content,
                        new_content=new_content,
                        right_pos=hunk.right_pos,
                        full_section=get_full_section(rhs, hunk.right_pos),
                    )
                )
                if self.signatures.has_new_signature(old_content, new_content, username, title):
                    signed_sections.append(get_section_span(hunk.right_pos, rhs))
            else:
                logger.debug("Unrecognised diff action %r", hunk.action)
                actions.append(Unknown(details=hunk.model_dump()))

        if signed_sections:
            actions = convert_to_unknown_signed_changes(signed_sections, actions)

        return actions

    def _interpret_addition(
        self,
        hunk: DiffHunk,
        username: str,
        rhs: List[str],
        signed_sections: List[SignedSection],
        title: Optional[Title],
    ) -> List[Action]:
        """Classify one added block, recording the sections it signs."""
        content = (hunk.content or "").strip()
        start_section = starts_with_header(content)
        section_count = get_section_count(content)
        signed_users = self.signatures.get_signed_users(content, title)

        if len(signed_users) == 1 and username in signed_users:
            if section_count == 0:
                signed_sections.append(get_section_span(hunk.right_pos, rhs))
                return [AddComment(content=content, full_section=get_full_section(rhs, hunk.right_pos))]

            if start_section and section_count == 1:
                signed_sections.append(get_section_span(hunk.right_pos, rhs))
                return [NewSectionWithComment(content=content)]

            actions: List[Action] = []
            next_section_start = hunk.right_pos
            for section in extract_sections(content):
                section_span = get_section_span(next_section_start, rhs)
                next_section_start = section_span[1] + 1
                if self.signatures.extract_signatures(section.content, title):
                    signed_sections.append(section_span)
                    header = section.header
                    if not header:
                        header = extract_header(get_full_section(rhs, hunk.right_pos))
                    actions.append(AddSectionMultiple(content=section.content, header=header))
                else:
                    actions.append(UnknownUnsignedAddition(content=section.content))
            return actions

        if signed_users:
            return [UnknownMultiSignedAddition(content=content)]
        return [UnknownUnsignedAddition(content=content)]

    def get_change_interpretation_for_revision(
        self, revision: Revision, store: RevisionStore, title: Optional[Title] = None
    ) -> List[Action]:
        """Interpret the diff between a revision and its parent, cached by revision id."""
        if revision.id is not None:
            cached = self.cache.get(revision.id)
            if cached is not None:
                logger.debug("Interpretation cache hit for revision %s", revision.id)
                return cached

        previous_text = ""
        if revision.parent_id:
            previous = store.get_revision(revision.parent_id)
            if previous is not None:
                previous_text = previous.content

        changes = self.diff_engine.get_change_set(previous_text, revision.content)
        actions = self.interpret_diff(changes, revision.user_text, title)

        if revision.id is not None:
            self.cache.set(revision.id, actions)
        return actions
