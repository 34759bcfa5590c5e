"""Section header detection and section boundary lookup.

Line offsets follow the diff engine: `offset` is the 1-based number of a
line, so `lines[offset - 1]` is the line itself and the backward scan for the
section start begins there.
"""

import re
from typing import List, Optional, Sequence, Tuple

from talkwatch.models import Section

HEADER_REGEX = r"^(==+)\s*([^=].*)\s*\1$"
HEADER_PATTERN = re.compile(HEADER_REGEX, re.MULTILINE)


def get_section_count(text: str) -> int:
    """Count the section headers in a block of text."""
    return len(HEADER_PATTERN.findall(text.strip()))


def starts_with_header(text: str) -> bool:
    """Check whether the text opens with a header line."""
    return HEADER_PATTERN.match(text) is not None


def extract_header(text: str) -> Optional[str]:
    """Return the title of the last header in the text, or None."""
    matches = HEADER_PATTERN.findall(text.strip())
    if not matches:
        return None
    return matches[-1][1].strip()


def strip_header(text: str) -> str:
    """Remove every header line from the text."""
    return HEADER_PATTERN.sub("", text)


def get_section_start_index(offset: int, lines: Sequence[str]) -> int:
    """Find the index of the header opening the section that holds `offset`.

    Returns -1 when no header precedes the line.
    """
    for i in range(min(offset - 1, len(lines) - 1), -1, -1):
        if get_section_count(lines[i]):
            return i
    return -1


def get_section_end_index(offset: int, lines: Sequence[str]) -> int:
    """Find the index of the next header after `offset`, or len(lines)."""
    for i in range(max(offset, 0), len(lines)):
        if get_section_count(lines[i]):
            return i
    return len(lines)


def get_section_span(offset: int, lines: Sequence[str]) -> Tuple[int, int]:
    """Return the (start, end) indexes of the section holding `offset`."""
    return get_section_start_index(offset, lines), get_section_end_index(offset, lines)


def get_full_section(lines: Sequence[str], offset: int) -> str:
    """Return the text of the section holding `offset`, header included."""
    start, end = get_section_span(offset, lines)
    return "\n".join(lines[max(start, 0):end]).strip("\n")


def extract_sections(text: str) -> List[Section]:
    """Split text into sections at every header line.

    Text before the first header becomes a section without header.
    """
    matches = list(HEADER_PATTERN.finditer(text))
    if not matches:
        return [Section(header=None, content=text)]

    sections: List[Section] = []
    leading = text[: matches[0].start()].strip()
    if leading:
        sections.append(Section(header=None, content=leading))

    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        sections.append(
            Section(
                header=extract_header(match.group(0)),
                content=text[match.start():end].strip(),
            )
        )
    return sections
