"""Tests for the difflib-based line diff engine."""

from talkwatch.diff_engine import SequenceDiffEngine
from talkwatch.models import DiffAction


class TestSequenceDiffEngine:
    """Test hunk generation."""

    def test_insert(self) -> None:
        """Test that inserted lines become one add hunk with 1-based positions."""
        changes = SequenceDiffEngine().get_change_set("a\nb", "a\nb\nc\nd")
        assert len(changes.hunks) == 1
        hunk = changes.hunks[0]
        assert hunk.action == DiffAction.ADD
        assert hunk.content == "c\nd"
        assert hunk.right_pos == 3
        assert changes.rhs[hunk.right_pos - 1] == "c"

    def test_delete(self) -> None:
        """Test that removed lines become a subtract hunk."""
        changes = SequenceDiffEngine().get_change_set("a\nb\nc", "a\nc")
        assert [h.action for h in changes.hunks] == ["subtract"]
        assert changes.hunks[0].content == "b"
        assert changes.hunks[0].left_pos == 2

    def test_replace(self) -> None:
        """Test that replaced lines become a change hunk."""
        changes = SequenceDiffEngine().get_change_set("a\nb\nc", "a\nB\nc")
        hunk = changes.hunks[0]
        assert hunk.action == DiffAction.CHANGE
        assert hunk.old_content == "b"
        assert hunk.new_content == "B"
        assert hunk.right_pos == 2

    def test_empty_left_side(self) -> None:
        """Test that a new page is a single add of the whole text."""
        changes = SequenceDiffEngine().get_change_set("", "  first\nsecond  \n")
        assert changes.lhs == []
        assert changes.rhs == ["first", "second"]
        assert len(changes.hunks) == 1
        assert changes.hunks[0].content == "first\nsecond"
        assert changes.hunks[0].right_pos == 1

    def test_identical_texts(self) -> None:
        """Test that identical texts produce no hunks."""
        changes = SequenceDiffEngine().get_change_set("same\ntext", "same\ntext\n")
        assert changes.hunks == []
