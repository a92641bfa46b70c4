"""Finds pattern occurrences in blob content and maps them to lines.

Offsets are reported in bytes of the UTF-8 encoded content. Newline bytes
never occur inside a multi-byte UTF-8 sequence, so counting ``\\n`` in the
decoded text gives the same line numbers as counting them in the raw buffer.
"""

from dataclasses import dataclass
from re import Pattern
from typing import Iterator


@dataclass(frozen=True)
class LineMatch:
    start: int
    end: int
    line_number: int
    line_text: str


def decode_text(content: bytes) -> str:
    """Decode content strictly as UTF-8.

    Raises:
        UnicodeDecodeError: If the content is not valid UTF-8
    """
    return content.decode("utf-8")


def iter_matches(content: bytes, pattern: Pattern[str]) -> Iterator[LineMatch]:
    """Yield every non-overlapping match of ``pattern`` in ``content``.

    Content that is not valid UTF-8 yields nothing at all. Matches are produced
    lazily in left-to-right order. A match spanning several lines is reported
    once, on the line containing its start.
    """
    try:
        text = decode_text(content)
    except UnicodeDecodeError:
        return
    yield from _iter_text_matches(text, pattern)


def _iter_text_matches(text: str, pattern: Pattern[str]) -> Iterator[LineMatch]:
    # Forward cursor over the text: (char position, byte position, line number)
    cursor_char = 0
    cursor_byte = 0
    line_number = 1
    line_start = 0
    # No newline lies between the previous match end and line_end
    line_end = -1

    for found in pattern.finditer(text):
        start, end = found.span()

        skipped = text[cursor_char:start]
        newlines = skipped.count("\n")
        if newlines:
            line_number += newlines
            line_start = cursor_char + skipped.rfind("\n") + 1
        cursor_byte += len(skipped.encode("utf-8"))
        cursor_char = start

        byte_start = cursor_byte
        byte_end = byte_start + len(found.group(0).encode("utf-8"))

        if end > line_end:
            line_end = text.find("\n", end)
            if line_end == -1:
                line_end = len(text)

        yield LineMatch(
            start=byte_start,
            end=byte_end,
            line_number=line_number,
            line_text=text[line_start:line_end],
        )
