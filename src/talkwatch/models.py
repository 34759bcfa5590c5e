from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from talkwatch.titles import Title


class DiffAction(str, Enum):
    """Kind of a line-level diff hunk."""
    ADD = "add"
    SUBTRACT = "subtract"
    CHANGE = "change"


class DiffHunk(BaseModel):
    """One contiguous add, subtract or change entry of a line diff.

    Positions are 1-based line numbers, as in unified diff headers.
    """

    model_config = ConfigDict(frozen=True)

    action: str
    content: Optional[str] = None
    old_content: Optional[str] = None
    new_content: Optional[str] = None
    left_pos: int
    right_pos: int


class LineDiff(BaseModel):
    """Diff engine output: the hunks plus both line corpora."""
    hunks: List[DiffHunk]
    lhs: List[str]
    rhs: List[str]


# A (start, end) line span of a section that gained a signature in a diff.
SignedSection = Tuple[int, int]


class AddComment(BaseModel):
    """A comment signed by the acting user was added to an existing section."""
    type: Literal["add-comment"] = "add-comment"
    content: str
    full_section: str


class NewSectionWithComment(BaseModel):
    """A new section holding a single comment signed by the acting user."""
    type: Literal["new-section-with-comment"] = "new-section-with-comment"
    content: str


class AddSectionMultiple(BaseModel):
    """Signed content added while editing several sections at once."""
    type: Literal["add-section-multiple"] = "add-section-multiple"
    content: str
    header: Optional[str] = None


class UnknownMultiSignedAddition(BaseModel):
    type: Literal["unknown-multi-signed-addition"] = "unknown-multi-signed-addition"
    content: str


class UnknownUnsignedAddition(BaseModel):
    type: Literal["unknown-unsigned-addition"] = "unknown-unsigned-addition"
    content: str


class UnknownSubtraction(BaseModel):
    type: Literal["unknown-subtraction"] = "unknown-subtraction"
    content: Optional[str] = None


class UnknownChange(BaseModel):
    """Some content was replaced with other content."""
    type: Literal["unknown-change"] = "unknown-change"
    old_content: str
    new_content: str
    right_pos: int
    full_section: str

    def signed(self) -> "UnknownSignedChange":
        """Return the same change tagged as lying inside a signed section."""
        return UnknownSignedChange(**self.model_dump(exclude={"type"}))


class UnknownSignedChange(BaseModel):
    """A change inside a section that received a new signature in the same diff."""
    type: Literal["unknown-signed-change"] = "unknown-signed-change"
    old_content: str
    new_content: str
    right_pos: int
    full_section: str


class Unknown(BaseModel):
    """A hunk that could not be interpreted."""
    type: Literal["unknown"] = "unknown"
    details: Dict[str, Any]


Action = Annotated[
    Union[
        AddComment,
        NewSectionWithComment,
        AddSectionMultiple,
        UnknownMultiSignedAddition,
        UnknownUnsignedAddition,
        UnknownSubtraction,
        UnknownChange,
        UnknownSignedChange,
        Unknown,
    ],
    Field(discriminator="type"),
]


class Section(BaseModel):
    """A header-delimited piece of wikitext."""
    header: Optional[str] = None
    content: str


class User(BaseModel):
    """An account, or an anonymous editor when id is 0."""
    id: int = 0
    name: str
    rights: Set[str] = Field(default_factory=set)

    @property
    def is_registered(self) -> bool:
        return self.id != 0


class Revision(BaseModel):
    """A saved revision of a page."""
    id: Optional[int] = None
    page_id: int
    parent_id: Optional[int] = None
    user_id: int = 0
    user_text: str
    content: str
    minor: bool = False
    comment: str = ""


class MentionResult(BaseModel):
    """Mention candidates sorted into accepted and rejected buckets."""
    valid_mentions: Set[int] = Field(default_factory=set)
    unknown_users: List[str] = Field(default_factory=list)
    anonymous_users: List[str] = Field(default_factory=list)

    @property
    def overall_count(self) -> int:
        return len(self.valid_mentions) + len(self.unknown_users) + len(self.anonymous_users)


class EventType(str, Enum):
    """Notification types emitted by the discussion notifier."""
    MENTION = "mention"
    MENTION_SUCCESS = "mention-success"
    MENTION_FAILURE = "mention-failure"
    MENTION_FAILURE_TOO_MANY = "mention-failure-too-many"
    EDIT_USER_TALK = "edit-user-talk"


class MentionFailureType(str, Enum):
    """Reason a mention could not be delivered."""
    USER_ANONYMOUS = "user-anonymous"
    USER_UNKNOWN = "user-unknown"


class NotificationEvent(BaseModel):
    """A notification request handed to the event sink."""
    type: EventType
    title: Title
    agent: User
    extra: Dict[str, Any] = Field(default_factory=dict)


class SectionSummary(BaseModel):
    """Best-effort section title and text snippet of an edit."""
    title: str = ""
    text: str = ""
