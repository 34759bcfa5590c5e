"""Signature and timestamp recognition for talk page wikitext.

A line is considered signed by a user when one of the user links on it
regenerates, through the signature engine, a signature that actually
appears on the line. Timestamps are matched with a pattern generalized from
an exemplar timestamp produced by the same engine.
"""

import logging
import re
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from talkwatch.config import settings
from talkwatch.errors import TimestampFormatError
from talkwatch.identity import is_ip_address
from talkwatch.ports import IdentityResolver, SignatureEngine
from talkwatch.text import truncate_markup_safe
from talkwatch.titles import Namespace, Title

logger = logging.getLogger(__name__)

MAIN_PAGE = Title(namespace=Namespace.MAIN, text="Main Page")

LINK_LIKE_PATTERN = re.compile(r"\[\[([^\[]+)\]\]")
TILDE_PATTERN = re.compile(r"~{3,5}")

# Signature-only (dateless) and timestamp-only substitution tokens
SIGNATURE_TOKEN = "~~~"
TIMESTAMP_TOKEN = "~~~~~"


class TildeSignatureEngine:
    """Signature engine expanding ~~~, ~~~~ and ~~~~~ from configured formats."""

    def __init__(
        self,
        signature_format: Optional[str] = None,
        anon_signature_format: Optional[str] = None,
        timestamp_format: Optional[str] = None,
        timezone_label: Optional[str] = None,
        nicknames: Optional[Mapping[str, str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize from explicit formats, falling back to settings.

        Args:
            nicknames: Custom raw signatures keyed by user name
            clock: Source of the current time for timestamps
        """
        self.signature_format = signature_format or settings.signature_format
        self.anon_signature_format = anon_signature_format or settings.anon_signature_format
        self.timestamp_format = timestamp_format or settings.timestamp_format
        self.timezone_label = timezone_label if timezone_label is not None else settings.timezone_label
        self.nicknames: Dict[str, str] = dict(nicknames or {})
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def signature(self, username: str) -> str:
        """Return the dateless signature of a user."""
        if username in self.nicknames:
            return self.nicknames[username]
        if is_ip_address(username):
            return self.anon_signature_format.format(name=username)
        return self.signature_format.format(name=username)

    def timestamp(self) -> str:
        """Return the current timestamp as inserted by ~~~~~."""
        stamp = self._clock().strftime(self.timestamp_format)
        if self.timezone_label:
            stamp = f"{stamp} ({self.timezone_label})"
        return stamp

    def substitute(self, template: str, context_title: Title, username: str) -> str:
        """Expand tilde runs in a template for the given user."""

        def replace(match: "re.Match[str]") -> str:
            size = len(match.group(0))
            if size == 3:
                return self.signature(username)
            if size == 4:
                return f"{self.signature(username)} {self.timestamp()}"
            return self.timestamp()

        return TILDE_PATTERN.sub(replace, template)


def get_line_ending_regex() -> str:
    """Regex fragment for clutter that may follow a timestamp on a line."""
    ignored_endings = [
        r"\s",
        re.escape("}"),
        re.escape("{"),
        r"<[^>]+>",
        re.escape("{{") + r"[^}]+" + re.escape("}}"),
    ]
    return "(?:" + "|".join(ignored_endings) + ")*"


def generalize_timestamp(exemplar: str) -> str:
    r"""Turn an exemplar timestamp into a regex matching any timestamp of its format.

    Words become `[^\d\W]+`, numbers become `\d+` and a trailing
    parenthesized timezone is kept literally.
    """
    # Trim off the timezone to put it back literally at the end
    output = exemplar
    tz_match = re.search(r"\s*\(\w+\)\s*$", output)
    if tz_match:
        output = output[: tz_match.start()]

    output = re.escape(output)
    output = re.sub(r"[^\d\W]+", lambda m: r"[^\d\W]+", output)
    output = re.sub(r"\d+", lambda m: r"\d+", output)

    if tz_match:
        output += re.escape(tz_match.group(0))
    return output


class TimestampPatternBuilder:
    """Derives and memoizes the pattern matching this wiki's timestamps."""

    def __init__(self, engine: SignatureEngine) -> None:
        self._engine = engine
        self._lock = threading.Lock()
        self._regex: Optional[str] = None
        self._pattern: Optional["re.Pattern[str]"] = None

    def get_timestamp_regex(self) -> str:
        """Return the timestamp regex fragment, building it on first use.

        Raises:
            TimestampFormatError: If the generalized regex does not match
                the exemplar timestamp it was derived from.
        """
        if self._regex is None:
            with self._lock:
                if self._regex is None:
                    self._regex = self._build_regex()
        return self._regex

    def get_timestamp_pattern(self) -> "re.Pattern[str]":
        """Return the compiled timestamp + line ending pattern, anchored at line end."""
        if self._pattern is None:
            regex = self.get_timestamp_regex()
            with self._lock:
                if self._pattern is None:
                    self._pattern = re.compile(f"{regex}{get_line_ending_regex()}$", re.MULTILINE)
        return self._pattern

    def _build_regex(self) -> str:
        exemplar = self._engine.substitute(TIMESTAMP_TOKEN, MAIN_PAGE, "Test")
        output = generalize_timestamp(exemplar)
        if not re.search(output, exemplar):
            raise TimestampFormatError(exemplar, output)

        logger.debug("Timestamp regex %r built from exemplar %r", output, exemplar)
        return output


class SignatureLocator:
    """Finds who signed a line of wikitext and where the signature starts."""

    def __init__(
        self,
        engine: SignatureEngine,
        pattern_builder: Optional[TimestampPatternBuilder] = None,
        identity: Optional[IdentityResolver] = None,
    ) -> None:
        self.engine = engine
        self.pattern_builder = pattern_builder or TimestampPatternBuilder(engine)
        self.identity = identity
        # Fail on an unusable timestamp format before any text is processed
        self.pattern_builder.get_timestamp_pattern()

    def extract_users_from_line(self, line: str) -> List[str]:
        """Return the users linked from a line, left to right.

        User and user talk links yield the page title; contributions links
        yield the part after the first slash.
        """
        usernames: List[str] = []
        for match in LINK_LIKE_PATTERN.findall(line):
            # Drop the display text of piped links
            title = Title.new_from_text(match.split("|", 1)[0])
            if title is None:
                continue
            if title.namespace in (Namespace.USER, Namespace.USER_TALK):
                usernames.append(title.text)
            elif title.is_special("Contributions"):
                usernames.append(title.text.split("/", 1)[-1])
        return usernames

    def get_user_from_line(
        self, line: str, title: Optional[Title] = None
    ) -> Optional[Tuple[int, str]]:
        """Determine which user, if any, signed a line.

        Returns the position of the signature and the user name.
        """
        context = title or MAIN_PAGE
        for username in reversed(self.extract_users_from_line(line)):
            signature = self.engine.substitute(SIGNATURE_TOKEN, context, username)
            pos = line.rfind(signature)
            if pos != -1:
                return pos, username
        return None

    def get_timestamp_position(self, line: str) -> Optional[int]:
        """Return the start of the first trailing timestamp, if any."""
        match = self.pattern_builder.get_timestamp_pattern().search(line)
        return match.start() if match else None

    def extract_signatures(self, text: str, title: Optional[Title] = None) -> Dict[str, str]:
        """Map each signing user to the last signature found in the text."""
        output: Dict[str, str] = {}
        for line in text.split("\n"):
            user_data = self.get_user_from_line(line, title)
            if user_data is None:
                continue
            pos, username = user_data
            output[username] = line[pos:]
        return output

    def get_signed_users(self, text: str, title: Optional[Title] = None) -> List[str]:
        return list(self.extract_signatures(text, title))

    def has_new_signature(
        self, old_content: str, new_content: str, username: str, title: Optional[Title] = None
    ) -> bool:
        """Check whether the user signed the new content but not the old."""
        return (
            username not in self.get_signed_users(old_content, title)
            and username in self.get_signed_users(new_content, title)
        )

    def is_signed_comment(
        self, text: str, username: Optional[str] = None, title: Optional[Title] = None
    ) -> bool:
        """Check whether text is signed, optionally by a specific user."""
        user_data = self.get_user_from_line(text, title)
        if user_data is None:
            return False
        if username is None:
            return True
        return _normalize_name(user_data[1]) == _normalize_name(username)

    def strip_signature(self, text: str, title: Optional[Title] = None) -> str:
        """Cut the text at the signature, or at the timestamp if no signer is found."""
        user_data = self.get_user_from_line(text, title)
        if user_data is None:
            timestamp_pos = self.get_timestamp_position(text)
            if timestamp_pos is None:
                return text
            return text[:timestamp_pos]
        return truncate_markup_safe(text, user_data[0])

    def find_link_in_line(self, line: str, link_prefix: str) -> Optional[Tuple[int, str]]:
        """Find the last link with the given prefix that names a valid user.

        Candidates are tried right to left until one yields a user name or
        the start of the line is reached.
        """
        haystack = line.lower()
        needle = link_prefix.lower()
        end = len(line)
        while end > 0:
            pos = haystack.rfind(needle, 0, end)
            if pos == -1:
                return None
            username = self.extract_user_from_link(line, link_prefix, pos)
            if username is not None:
                return pos, username
            end = pos
        return None

    def extract_user_from_link(self, text: str, prefix: str, offset: int = 0) -> Optional[str]:
        """Return the user a link starting at `offset` refers to, if valid."""
        match = re.match(r"[^|\]#]+", text[offset + len(prefix):])
        if not match:
            return None
        name = match.group(0)
        if self.identity is not None:
            if self.identity.is_ip(name):
                return name
            return self.identity.get_canonical_name(name)
        if is_ip_address(name):
            return name
        return _normalize_name(name)


def strip_indents(text: str) -> str:
    """Strip comment indentation, and the list marker of a lone list item."""
    text = re.sub(r"^\s*:+", "", text, flags=re.MULTILINE)
    list_pattern = re.compile(r"^\s*(?:[:#*]\s*)*[#*]", re.MULTILINE)
    if len(list_pattern.findall(text)) == 1:
        text = list_pattern.sub("", text)
    return text


def _normalize_name(name: str) -> Optional[str]:
    title = Title.new_from_text(name, Namespace.USER)
    return title.text if title else None
