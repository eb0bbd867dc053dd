"""
Text edits over the original source bytes.

An ``Edit`` replaces ``source[start_byte:end_byte]`` with ``text``.  An
``EditScript`` is the set of edits belonging to one fix: it is validated for
non-overlap when built and is always applied as a whole.
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple


class OverlappingEditError(ValueError):
    """Two edits in one script claim the same source bytes."""


@dataclass(frozen=True)
class Edit:
    start_byte: int
    end_byte: int
    text: str

    def __post_init__(self):
        if self.start_byte < 0 or self.end_byte < self.start_byte:
            raise ValueError(
                f"Invalid edit span {self.start_byte}-{self.end_byte}"
            )

    @property
    def span(self) -> Tuple[int, int]:
        return self.start_byte, self.end_byte


def replace_text(node, text: str) -> Edit:
    return Edit(node.start_byte, node.end_byte, text)


def insert_text_before(node, text: str) -> Edit:
    return Edit(node.start_byte, node.start_byte, text)


def insert_text_after(node, text: str) -> Edit:
    return Edit(node.end_byte, node.end_byte, text)


class EditScript:
    """Ordered, non-overlapping edits applied atomically.

    Spans may touch (an insertion at N followed by a replacement starting
    at N), but no byte may be covered by two edits.
    """

    def __init__(self, edits: Iterable[Edit]):
        # Stable sort: insertions keep their generation order at equal offsets
        self.edits: Tuple[Edit, ...] = tuple(
            sorted(edits, key=lambda e: (e.start_byte, e.end_byte))
        )
        if not self.edits:
            raise ValueError("An edit script needs at least one edit")
        last_end = -1
        for edit in self.edits:
            if edit.start_byte < last_end:
                raise OverlappingEditError(
                    f"Edit at {edit.start_byte}-{edit.end_byte} overlaps "
                    f"a previous edit ending at {last_end}"
                )
            last_end = edit.end_byte

    def __iter__(self):
        return iter(self.edits)

    def __len__(self):
        return len(self.edits)

    def __repr__(self):
        return f"EditScript({list(self.edits)!r})"

    @property
    def start_byte(self) -> int:
        return self.edits[0].start_byte

    @property
    def end_byte(self) -> int:
        return max(e.end_byte for e in self.edits)

    def apply(self, source: bytes) -> bytes:
        """Return ``source`` with every edit applied."""
        if self.end_byte > len(source):
            raise ValueError(
                f"Edit script ends at {self.end_byte}, past the source "
                f"length {len(source)}"
            )
        content = bytearray(source)
        # Bottom-up so earlier offsets stay valid
        for edit in reversed(self.edits):
            content[edit.start_byte:edit.end_byte] = edit.text.encode("utf-8")
        return bytes(content)

    def merged(self, source: bytes) -> Edit:
        """Collapse the script into one edit covering all of its spans.

        Untouched source between sub-edits is carried over verbatim.
        """
        start = self.start_byte
        end = self.end_byte
        parts: List[str] = []
        cursor = start
        for edit in self.edits:
            parts.append(source[cursor:edit.start_byte].decode("utf-8", errors="replace"))
            parts.append(edit.text)
            cursor = edit.end_byte
        parts.append(source[cursor:end].decode("utf-8", errors="replace"))
        return Edit(start, end, "".join(parts))
