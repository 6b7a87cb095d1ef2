"""Split a Markdown manuscript into chapters and paragraphs.

Expected layout: an optional leading `---` front-matter block followed by chapter
headers of the form `## CHAPTER <token>: <title>`, where the token is a digit string or
a spelled-out number from "one" to "twenty". Other tokens continue the
previous chapter's numbering.
"""

from __future__ import annotations

import re
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict

WORD_TO_NUM = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
    "fourteen": 14,
    "fifteen": 15,
    "sixteen": 16,
    "seventeen": 17,
    "eighteen": 18,
    "nineteen": 19,
    "twenty": 20,
}

CHAPTER_HEADER_RE = re.compile(r"^##\s+CHAPTER\s+(\w+)(?::\s*|\s+)(.*)$", re.IGNORECASE | re.MULTILINE)
_FRONT_MATTER_DELIMITER = "---"
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


class Chapter(BaseModel):
    """One chapter of the manuscript."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    text: str


def parse_chapter_number(token: str) -> int:
    """Map `"7"` or `"seven"` to 7; unknown tokens map to 0."""
    token = token.strip().lower()
    if token.isdigit():
        return int(token)
    return WORD_TO_NUM.get(token, 0)


def resolve_chapter_number(token: str, previous: int) -> int:
    """Number a header token, falling back to `previous + 1` for `Prologue`, `IV` and the like."""
    number = parse_chapter_number(token)
    return number if number > 0 else previous + 1


def front_matter_end(lines: Sequence[str]) -> int:
    """Index of the first line after a leading `---` block, or 0 when there is none.

    Blank lines may precede the opening delimiter. An unclosed block runs to the end.
    """
    idx = 0
    while idx < len(lines) and not lines[idx].strip():
        idx += 1
    if idx >= len(lines) or lines[idx].strip() != _FRONT_MATTER_DELIMITER:
        return 0
    for end in range(idx + 1, len(lines)):
        if lines[end].strip() == _FRONT_MATTER_DELIMITER:
            return end + 1
    return len(lines)


def strip_front_matter(markdown: str) -> str:
    """Remove a leading `---` delimited block, if present."""
    lines = markdown.split("\n")
    start = front_matter_end(lines)
    if start == 0:
        return markdown
    return "\n".join(lines[start:])


def parse_chapters(markdown: str) -> List[Chapter]:
    """Parse the manuscript into chapters.

    Text before the first header is ignored. A manuscript without any chapter header
    becomes a single chapter numbered 0 with an empty title.
    """
    text = strip_front_matter(markdown)
    headers = list(CHAPTER_HEADER_RE.finditer(text))

    if not headers:
        body = text.strip()
        return [Chapter(number=0, title="", text=body)] if body else []

    chapters: List[Chapter] = []
    number = 0
    for idx, match in enumerate(headers):
        end = headers[idx + 1].start() if idx + 1 < len(headers) else len(text)
        number = resolve_chapter_number(match.group(1), number)
        chapters.append(
            Chapter(
                number=number,
                title=match.group(2).strip(),
                text=text[match.end():end].strip(),
            )
        )
    return chapters


def split_paragraphs(text: str) -> List[str]:
    """Split chapter text on blank lines; inner newlines become spaces."""
    paragraphs = (p.replace("\n", " ").strip() for p in _PARAGRAPH_SPLIT_RE.split(text))
    return [p for p in paragraphs if p]
