"""Split reply text into plain-text and fenced-code segments."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List


FENCE = "```"

# Non-greedy so several fenced spans in one message stay separate.
_FENCED_SPAN = re.compile(r"```([\s\S]+?)```")


class SegmentKind(str, Enum):
    TEXT = "text"
    CODE = "code"


@dataclass(frozen=True)
class Segment:
    """A contiguous span of a message. Code content has its fences stripped."""

    kind: SegmentKind
    content: str

    @property
    def is_code(self) -> bool:
        return self.kind is SegmentKind.CODE


def split_message(text: str) -> List[Segment]:
    """
    Split text into ordered segments.

    Text between fenced spans becomes a TEXT segment when non-empty, each
    fenced span becomes a CODE segment. An unterminated fence stays plain
    text, and an empty string yields no segments.

    Args:
        text: Raw message text

    Returns:
        Segments in source order
    """
    segments: List[Segment] = []
    last_index = 0

    for match in _FENCED_SPAN.finditer(text):
        if match.start() > last_index:
            segments.append(Segment(SegmentKind.TEXT, text[last_index : match.start()]))
        segments.append(Segment(SegmentKind.CODE, match.group(1)))
        last_index = match.end()

    if last_index < len(text):
        segments.append(Segment(SegmentKind.TEXT, text[last_index:]))

    return segments


def reconstruct(segments: Iterable[Segment]) -> str:
    """Rebuild the original text from segments, re-adding the fences."""
    return "".join(
        f"{FENCE}{segment.content}{FENCE}" if segment.is_code else segment.content
        for segment in segments
    )


def code_segments(text: str) -> List[Segment]:
    """Only the CODE segments of a message, in order."""
    return [segment for segment in split_message(text) if segment.is_code]
