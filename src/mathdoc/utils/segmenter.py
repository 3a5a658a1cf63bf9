"""
Math segmentation for mixed text/LaTeX input.

Splits a raw string into an ordered list of text and math segments.
Recognised delimiters, tried in this order at every position:

- ``$$...$$``  display
- ``\\[...\\]``  display
- ``\\(...\\)``  inline
- ``$...$``    inline (opening ``$`` not escaped, no ``$`` inside)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

class SegmentKind(Enum):
    """Kinds of segments."""
    TEXT = "text"
    MATH = "math"


# opener -> (closer, display_mode)
DELIMITERS: Dict[str, Tuple[str, bool]] = {
    "$$": ("$$", True),
    "\\[": ("\\]", True),
    "\\(": ("\\)", False),
    "$": ("$", False),
}


@dataclass(frozen=True)
class TextSegment:
    """A contiguous run of the input, either plain text or math."""
    kind: SegmentKind
    content: str
    display_mode: bool = False
    delimiter: Optional[str] = None  # opening delimiter, math only

    @property
    def is_math(self) -> bool:
        return self.kind is SegmentKind.MATH

    @property
    def is_text(self) -> bool:
        return self.kind is SegmentKind.TEXT

    def source(self) -> str:
        """Return the segment as it appeared in the input, delimiters included."""
        if not self.is_math:
            return self.content
        opener = self.delimiter or ("$$" if self.display_mode else "$")
        closer = DELIMITERS[opener][0]
        return f"{opener}{self.content}{closer}"

    def to_dict(self) -> Dict[str, object]:
        data = {"type": self.kind.value, "content": self.content}
        if self.is_math:
            data["displayMode"] = self.display_mode
        return data

    @classmethod
    def text(cls, content: str) -> 'TextSegment':
        return cls(SegmentKind.TEXT, content)

    @classmethod
    def math(cls, content: str, delimiter: str = "$") -> 'TextSegment':
        return cls(SegmentKind.MATH, content, DELIMITERS[delimiter][1], delimiter)


# ============================================================================
# Scanner
# ============================================================================

class _ClosingFinder:
    """
    Memoised ``str.find`` for one closing delimiter.

    A cached hit at index ``j`` found from ``p0`` is still the nearest hit
    for any later start ``p <= j``; a cached miss holds for every later start.
    """

    def __init__(self, text: str, needle: str):
        self.text = text
        self.needle = needle
        self._start = -1
        self._found = -1

    def find(self, start: int) -> int:
        if self._start != -1 and start >= self._start:
            if self._found == -1 or self._found >= start:
                return self._found
        self._start = start
        self._found = self.text.find(self.needle, start)
        return self._found


class MathScanner:
    """Single left-to-right scanner producing :class:`TextSegment` objects."""

    def __init__(self, text: str):
        self.text = text
        self._finders = {
            closer: _ClosingFinder(text, closer)
            for closer in {closer for closer, _ in DELIMITERS.values()}
        }

    def _match_at(self, pos: int) -> Optional[Tuple[str, int]]:
        """
        Try every delimiter pair at ``pos`` in priority order.

        Returns:
            (opener, end) where ``end`` is the index just past the closer,
            or None when nothing starts here
        """
        text = self.text

        for opener, (closer, _) in DELIMITERS.items():
            if not text.startswith(opener, pos):
                continue
            if opener == "$" and pos > 0 and text[pos - 1] == "\\":
                continue

            close_at = self._finders[closer].find(pos + len(opener))
            if close_at != -1:
                return opener, close_at + len(closer)

        return None

    def scan(self) -> List[TextSegment]:
        text = self.text
        segments: List[TextSegment] = []
        last = 0
        pos = 0

        while pos < len(text):
            if text[pos] not in "$\\":
                pos += 1
                continue

            match = self._match_at(pos)
            if match is None:
                pos += 1
                continue

            opener, end = match
            if pos > last:
                segments.append(TextSegment.text(text[last:pos]))

            closer = DELIMITERS[opener][0]
            content = text[pos + len(opener):end - len(closer)]
            segments.append(TextSegment.math(content, opener))

            last = pos = end

        if last < len(text):
            segments.append(TextSegment.text(text[last:]))

        return segments


# ============================================================================
# Public API
# ============================================================================

def segment(raw: str) -> List[TextSegment]:
    """
    Split raw text into text and math segments.

    Unterminated delimiters are left as literal text, so any string
    (including the empty string) is accepted.

    Args:
        raw: Mixed text/LaTeX input

    Returns:
        Ordered list of segments; empty for empty input
    """
    if not raw:
        return []

    segments = MathScanner(raw).scan()
    logger.debug(
        f"Segmented {len(raw)} chars into {len(segments)} segments "
        f"({sum(1 for s in segments if s.is_math)} math)"
    )
    return segments


def reconstruct(segments: Iterable[TextSegment]) -> str:
    """Join segments back into the original delimited text."""
    return "".join(s.source() for s in segments)


def count_equations(segments: Iterable[TextSegment]) -> Dict[str, int]:
    """Count inline and display math segments."""
    counts = {"inline": 0, "display": 0}
    for seg in segments:
        if seg.is_math:
            counts["display" if seg.display_mode else "inline"] += 1
    return counts
