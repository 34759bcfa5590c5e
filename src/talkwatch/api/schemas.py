from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field

from talkwatch.models import Action, NotificationEvent, Revision, Section


class InterpretRequest(BaseModel):
    """Request to interpret the diff between two page texts."""
    old_text: str = ""
    new_text: str
    username: str
    title: str = "Talk:Main Page"


class InterpretResponse(BaseModel):
    actions: List[Action]


class SignaturesRequest(BaseModel):
    text: str
    title: str = "Talk:Main Page"


class SignaturesResponse(BaseModel):
    """Signatures found in a text and the text with its signature stripped."""
    signatures: Dict[str, str]
    stripped: str
    timestamp_position: Optional[int] = None


class SectionsRequest(BaseModel):
    text: str


class SectionsResponse(BaseModel):
    count: int
    header: Optional[str] = None
    sections: List[Section]


class MentionsRequest(BaseModel):
    """Request to classify the user links of a piece of content."""
    content: str
    username: str
    title: str = "Talk:Main Page"


class UserRequest(BaseModel):
    id: int = Field(ge=1)
    name: str
    rights: Set[str] = Field(default_factory=set)


class RevisionRequest(BaseModel):
    """A revision to process, with the page it belongs to and its parent text."""
    revision: Revision
    title: str
    parent_content: Optional[str] = None


class RevisionResponse(BaseModel):
    events: List[NotificationEvent]
