"""Tests for signature and timestamp recognition."""

import re
from typing import Callable, List

import pytest

from talkwatch import signatures as signatures_module
from talkwatch.errors import TimestampFormatError
from talkwatch.signatures import (
    MAIN_PAGE,
    SignatureLocator,
    TildeSignatureEngine,
    TimestampPatternBuilder,
    generalize_timestamp,
    strip_indents,
)
from talkwatch.titles import Title

from conftest import fixed_clock


class CountingEngine:
    """Signature engine stub that records substitution calls."""

    def __init__(self) -> None:
        self.calls: List[str] = []
        self._engine = TildeSignatureEngine(clock=fixed_clock)

    def substitute(self, template: str, context_title: Title, username: str) -> str:
        self.calls.append(template)
        return self._engine.substitute(template, context_title, username)


class TestSignatureEngine:
    """Test tilde substitution."""

    def test_three_tildes_is_signature(self, engine: TildeSignatureEngine) -> None:
        """Test that ~~~ expands to the dateless signature."""
        assert engine.substitute("~~~", MAIN_PAGE, "Carol") == (
            "[[User:Carol|Carol]] ([[User talk:Carol|talk]])"
        )

    def test_five_tildes_is_timestamp(self, engine: TildeSignatureEngine) -> None:
        """Test that ~~~~~ expands to the timestamp only."""
        assert engine.substitute("~~~~~", MAIN_PAGE, "Carol") == "14:05, 05 January 2024 (UTC)"

    def test_four_tildes_is_signature_and_timestamp(self, sign: Callable[[str], str]) -> None:
        """Test that ~~~~ expands to signature plus timestamp."""
        assert sign("Carol") == (
            "[[User:Carol|Carol]] ([[User talk:Carol|talk]]) 14:05, 05 January 2024 (UTC)"
        )

    def test_anonymous_signature(self, engine: TildeSignatureEngine) -> None:
        """Test that IP addresses get the contributions link signature."""
        assert engine.signature("192.0.2.1") == "[[Special:Contributions/192.0.2.1|192.0.2.1]]"

    def test_nickname_overrides_format(self) -> None:
        """Test that a custom signature replaces the default one."""
        engine = TildeSignatureEngine(nicknames={"Alice": "[[User:Alice|<b>Ally</b>]]"})
        assert engine.signature("Alice") == "[[User:Alice|<b>Ally</b>]]"


class TestTimestampPattern:
    """Test the generalized timestamp pattern."""

    def test_generalized_regex_matches_other_dates(self, engine: TildeSignatureEngine) -> None:
        """Test that the pattern matches timestamps with other values."""
        regex = TimestampPatternBuilder(engine).get_timestamp_regex()
        assert re.search(regex, "09:30, 17 March 2023 (UTC)")
        assert not re.search(regex, "09:30, 17 March 2023 (CET)")

    def test_generalize_keeps_timezone_literal(self) -> None:
        """Test that a trailing timezone stays literal while numbers are generalized."""
        regex = generalize_timestamp("14:05, 05 January 2024 (UTC)")
        assert regex.endswith(re.escape(" (UTC)"))
        assert r"\d+" in regex

    def test_pattern_is_memoized(self) -> None:
        """Test that the exemplar is generated only once."""
        engine = CountingEngine()
        builder = TimestampPatternBuilder(engine)
        first = builder.get_timestamp_pattern()
        second = builder.get_timestamp_pattern()
        assert first is second
        assert engine.calls == ["~~~~~"]

    def test_self_check_failure_is_fatal(
        self, engine: TildeSignatureEngine, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a regex that does not match its exemplar raises."""
        monkeypatch.setattr(signatures_module, "generalize_timestamp", lambda exemplar: r"\d{4}-never")
        builder = TimestampPatternBuilder(engine)
        with pytest.raises(TimestampFormatError) as exc_info:
            builder.get_timestamp_regex()
        assert exc_info.value.exemplar == "14:05, 05 January 2024 (UTC)"

    def test_self_check_failure_raised_by_locator(
        self, engine: TildeSignatureEngine, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that an unusable timestamp format fails when the locator is created."""
        monkeypatch.setattr(signatures_module, "generalize_timestamp", lambda exemplar: r"\d{4}-never")
        with pytest.raises(TimestampFormatError):
            SignatureLocator(engine)

    def test_timestamp_position(self, locator: SignatureLocator) -> None:
        """Test locating a trailing timestamp."""
        assert locator.get_timestamp_position("Hello 14:05, 05 January 2024 (UTC)") == 6

    def test_timestamp_followed_by_template(self, locator: SignatureLocator) -> None:
        """Test that templates after the timestamp are tolerated."""
        line = "Hello 14:05, 05 January 2024 (UTC) {{unsigned|Someone}}"
        assert locator.get_timestamp_position(line) == 6

    def test_timestamp_must_end_line(self, locator: SignatureLocator) -> None:
        """Test that a timestamp followed by prose is not a signature timestamp."""
        assert locator.get_timestamp_position("At 14:05, 05 January 2024 (UTC) we met") is None

    def test_trailing_spaces_before_text(self, locator: SignatureLocator) -> None:
        """Test that a long run of spaces after a timestamp is matched in linear time."""
        line = "Note 14:05, 5 January 2024 (UTC)" + " " * 60
        assert locator.get_timestamp_position(line) == 5
        assert locator.get_timestamp_position(line + "x") is None


class TestSignatureLocator:
    """Test finding the user who signed a line."""

    def test_extract_users_from_line(self, locator: SignatureLocator) -> None:
        """Test collecting user, user talk and contributions links in order."""
        line = "[[User:Alice|A]] [[Main Page]] [[User talk:Bob]] [[Special:Contributions/10.0.0.1|x]]"
        assert locator.extract_users_from_line(line) == ["Alice", "Bob", "10.0.0.1"]

    def test_get_user_from_line(self, locator: SignatureLocator, sign: Callable[[str], str]) -> None:
        """Test that the signer is found and not a user mentioned earlier."""
        line = f"Thanks [[User:Bob]]! {sign('Alice')}"
        pos, username = locator.get_user_from_line(line)
        assert username == "Alice"
        assert pos == line.index("[[User:Alice|Alice]]")

    def test_unsigned_line(self, locator: SignatureLocator) -> None:
        """Test that a mere link is not a signature."""
        assert locator.get_user_from_line("Ask [[User:Bob|Bob]] about it") is None

    def test_nickname_signature(self) -> None:
        """Test recognizing a custom signature."""
        engine = TildeSignatureEngine(nicknames={"Alice": "[[User:Alice|<b>Ally</b>]]"}, clock=fixed_clock)
        locator = SignatureLocator(engine)
        line = "Sounds good. " + engine.substitute("~~~~", MAIN_PAGE, "Alice")
        assert locator.get_user_from_line(line) == (13, "Alice")

    def test_extract_signatures(self, locator: SignatureLocator, sign: Callable[[str], str]) -> None:
        """Test mapping each signer to their last signature."""
        text = "\n".join([f"First {sign('Alice')}", f"Second {sign('Bob')}", f"Third {sign('Alice')}"])
        result = locator.extract_signatures(text)
        assert set(result) == {"Alice", "Bob"}
        assert result["Alice"] == sign("Alice")

    def test_has_new_signature(self, locator: SignatureLocator, sign: Callable[[str], str]) -> None:
        """Test detecting a signature added by a change."""
        assert locator.has_new_signature("Question.", f"Question. {sign('Carol')}", "Carol")
        assert not locator.has_new_signature(
            f"Question. {sign('Carol')}", f"Question? {sign('Carol')}", "Carol"
        )

    def test_is_signed_comment(self, locator: SignatureLocator, sign: Callable[[str], str]) -> None:
        """Test checking the signer of a comment."""
        comment = f"Hi {sign('Carol')}"
        assert locator.is_signed_comment(comment)
        assert locator.is_signed_comment(comment, "carol")
        assert not locator.is_signed_comment(comment, "Alice")
        assert not locator.is_signed_comment("Hi")


class TestStripSignature:
    """Test removing signatures from comments."""

    def test_strip_signature(self, locator: SignatureLocator, sign: Callable[[str], str]) -> None:
        """Test cutting at the signature."""
        assert locator.strip_signature(f"Hello there. {sign('Carol')}") == "Hello there. "

    def test_strip_anonymous_signature(self, locator: SignatureLocator, sign: Callable[[str], str]) -> None:
        """Test cutting at an IP signature."""
        assert locator.strip_signature(f"Hi {sign('192.0.2.1')}") == "Hi "

    def test_strip_keeps_literal_angle_bracket(
        self, locator: SignatureLocator, sign: Callable[[str], str]
    ) -> None:
        """Test that a less-than sign in prose is not taken for a tag."""
        assert locator.strip_signature(f"I think 3 < 5 holds here {sign('Carol')}") == "I think 3 < 5 holds here "

    def test_strip_bare_timestamp(self, locator: SignatureLocator) -> None:
        """Test cutting at a timestamp when no signer can be found."""
        text = "Comment by someone 14:05, 05 January 2024 (UTC)"
        assert locator.strip_signature(text) == "Comment by someone "

    def test_unsigned_text_unchanged(self, locator: SignatureLocator) -> None:
        """Test that text without signature or timestamp is returned as is."""
        assert locator.strip_signature("Just text") == "Just text"


class TestLinkSearch:
    """Test searching user links in a line."""

    def test_find_last_valid_link(self, locator: SignatureLocator) -> None:
        """Test that invalid candidates are skipped right to left."""
        line = "see [[User:|x]] and [[User:Alice|A]] then [[User:#bad]]"
        assert locator.find_link_in_line(line, "[[User:") == (line.index("[[User:Alice"), "Alice")

    def test_find_is_case_insensitive(self, locator: SignatureLocator) -> None:
        """Test that the link prefix is matched case-insensitively."""
        line = "ping [[user:bob|Bob]]"
        assert locator.find_link_in_line(line, "[[User:") == (5, "Bob")

    def test_find_no_link(self, locator: SignatureLocator) -> None:
        """Test a line without matching links."""
        assert locator.find_link_in_line("nothing to see", "[[User:") is None

    def test_extract_user_from_link_without_identity(self, engine: TildeSignatureEngine) -> None:
        """Test name normalization without a user directory."""
        locator = SignatureLocator(engine)
        assert locator.extract_user_from_link("[[User:some_user|x]]", "[[User:") == "Some user"
        assert locator.extract_user_from_link("[[User:10.0.0.1]]", "[[User:") == "10.0.0.1"


class TestStripIndents:
    """Test removing comment indentation."""

    def test_strip_colons(self) -> None:
        """Test removing colon indentation from every line."""
        assert strip_indents("::Hello\n:World") == "Hello\nWorld"

    def test_strip_single_list_marker(self) -> None:
        """Test removing the marker of a lone list item."""
        assert strip_indents("* Point") == " Point"

    def test_keep_real_lists(self) -> None:
        """Test that lists with several items are left alone."""
        assert strip_indents("* One\n* Two") == "* One\n* Two"
