"""Line diff engine producing discussion-parser hunks."""

from difflib import SequenceMatcher
from typing import List

from talkwatch.errors import DiffParseError
from talkwatch.models import DiffAction, DiffHunk, LineDiff


class SequenceDiffEngine:
    """Compute zero-context line hunks between two revisions."""

    def get_change_set(self, old_text: str, new_text: str) -> LineDiff:
        """Diff two texts into add, subtract and change hunks.

        Both texts are trimmed first. An empty left side yields a single add
        of the whole right side.
        """
        left_text = old_text.strip()
        right_text = new_text.strip()
        right = right_text.split("\n")

        if not left_text:
            return LineDiff(
                hunks=[DiffHunk(action=DiffAction.ADD.value, content=right_text, left_pos=1, right_pos=1)],
                lhs=[],
                rhs=right,
            )

        left = left_text.split("\n")
        matcher = SequenceMatcher(None, left, right, autojunk=False)
        hunks: List[DiffHunk] = []

        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "equal":
                continue
            hunks.append(self._build_hunk(tag, left[i1:i2], right[j1:j2], i1 + 1, j1 + 1))

        self._verify(hunks, left, right)
        return LineDiff(hunks=hunks, lhs=left, rhs=right)

    def _build_hunk(
        self, tag: str, old_lines: List[str], new_lines: List[str], left_pos: int, right_pos: int
    ) -> DiffHunk:
        """Convert one difflib opcode into a hunk."""
        if tag == "replace":
            return DiffHunk(
                action=DiffAction.CHANGE.value,
                old_content="\n".join(old_lines),
                new_content="\n".join(new_lines),
                left_pos=left_pos,
                right_pos=right_pos,
            )
        if tag == "delete":
            return DiffHunk(
                action=DiffAction.SUBTRACT.value,
                content="\n".join(old_lines),
                left_pos=left_pos,
                right_pos=right_pos,
            )
        if tag == "insert":
            return DiffHunk(
                action=DiffAction.ADD.value,
                content="\n".join(new_lines),
                left_pos=left_pos,
                right_pos=right_pos,
            )
        raise DiffParseError(f"Unexpected diff opcode: {tag}")

    def _verify(self, hunks: List[DiffHunk], left: List[str], right: List[str]) -> None:
        """Check that hunk positions point at the lines they claim to carry."""
        for hunk in hunks:
            if hunk.action == DiffAction.SUBTRACT:
                expected = left[hunk.left_pos - 1]
                actual = (hunk.content or "").split("\n")[0]
            elif hunk.action == DiffAction.ADD:
                expected = right[hunk.right_pos - 1]
                actual = (hunk.content or "").split("\n")[0]
            else:
                expected = right[hunk.right_pos - 1]
                actual = (hunk.new_content or "").split("\n")[0]
            if expected != actual:
                raise DiffParseError(
                    f"Hunk at {hunk.left_pos}/{hunk.right_pos} does not match its source line"
                )
