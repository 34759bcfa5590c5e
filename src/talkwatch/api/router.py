from fastapi import APIRouter, HTTPException

from talkwatch.api.schemas import (
    InterpretRequest,
    InterpretResponse,
    MentionsRequest,
    RevisionRequest,
    RevisionResponse,
    SectionsRequest,
    SectionsResponse,
    SignaturesRequest,
    SignaturesResponse,
    UserRequest,
)
from talkwatch.errors import DiffParseError, TimestampFormatError
from talkwatch.events import InMemoryEventSink
from talkwatch.identity import UserDirectory
from talkwatch.models import MentionResult, Revision, User
from talkwatch.notifier import DiscussionNotifier
from talkwatch.sections import extract_header, extract_sections, get_section_count
from talkwatch.storage import InMemoryRevisionStore
from talkwatch.titles import Title


def _parse_title(text: str) -> Title:
    title = Title.new_from_text(text)
    if title is None:
        raise HTTPException(status_code=400, detail=f"Invalid title: {text}")
    return title


def create_api_router(
    notifier: DiscussionNotifier,
    store: InMemoryRevisionStore,
    directory: UserDirectory,
    sink: InMemoryEventSink,
) -> APIRouter:
    """Create the API router around one notifier and its in-memory backends."""
    router = APIRouter()

    @router.post("/api/interpret")
    async def interpret(request: InterpretRequest) -> InterpretResponse:
        """Interpret the diff between two texts as discussion actions."""
        title = _parse_title(request.title)
        try:
            changes = notifier.interpreter.diff_engine.get_change_set(request.old_text, request.new_text)
            actions = notifier.interpreter.interpret_diff(changes, request.username, title)
        except DiffParseError as e:
            raise HTTPException(status_code=422, detail=str(e))
        except TimestampFormatError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return InterpretResponse(actions=actions)

    @router.post("/api/signatures")
    async def signatures(request: SignaturesRequest) -> SignaturesResponse:
        """Find signatures in a text and strip the trailing one."""
        title = _parse_title(request.title)
        locator = notifier.signatures
        try:
            return SignaturesResponse(
                signatures=locator.extract_signatures(request.text, title),
                stripped=locator.strip_signature(request.text, title),
                timestamp_position=locator.get_timestamp_position(request.text),
            )
        except TimestampFormatError as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/api/sections")
    async def sections(request: SectionsRequest) -> SectionsResponse:
        """Split a text into its sections."""
        return SectionsResponse(
            count=get_section_count(request.text),
            header=extract_header(request.text),
            sections=extract_sections(request.text),
        )

    @router.post("/api/mentions")
    async def mentions(request: MentionsRequest) -> MentionResult:
        """Classify the user links of some content without notifying anyone."""
        title = _parse_title(request.title)
        agent = directory.get_user_by_name(request.username)
        user_links = notifier.links.get_user_links(request.content, title)
        return notifier.mentions.classifier.classify(title, agent, user_links)

    @router.post("/api/users")
    async def create_user(request: UserRequest) -> User:
        """Register an account."""
        try:
            return directory.create_user(request.id, request.name, request.rights)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @router.post("/api/revisions")
    async def process_revision(request: RevisionRequest) -> RevisionResponse:
        """Store a revision and return the notification events it generates."""
        revision = request.revision
        title = _parse_title(request.title)
        if request.parent_content is not None:
            if revision.parent_id is None:
                raise HTTPException(
                    status_code=400, detail="parent_content requires revision.parent_id"
                )
            store.add_revision(
                Revision(
                    id=revision.parent_id,
                    page_id=revision.page_id,
                    user_text="",
                    content=request.parent_content,
                )
            )
        store.add_page(revision.page_id, title)
        if revision.id is not None:
            store.add_revision(revision)

        first_event = len(sink.events)
        try:
            notifier.generate_events_for_revision(revision)
        except DiffParseError as e:
            raise HTTPException(status_code=422, detail=str(e))
        except TimestampFormatError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return RevisionResponse(events=sink.events[first_event:])

    return router
