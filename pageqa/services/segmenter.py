"""Split long page text into overlapping fixed-size chunks."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Chunk:
    """A slice of page text handed to one synthesis call.

    ``core_start``/``core_end`` mark the non-overlapping part the chunk is
    responsible for; ``start``/``end`` include the context overlap.
    """

    index: int
    text: str
    start: int
    end: int
    core_start: int
    core_end: int

    @property
    def core(self) -> str:
        return self.text[self.core_start - self.start : self.core_end - self.start]


def chunk_count(length: int, chunk_size: int) -> int:
    """Number of chunks produced for content of ``length`` characters."""
    return math.ceil(length / chunk_size) if length > 0 else 0


def segment(content: str, chunk_size: int = 2000, overlap: int = 200) -> list[Chunk]:
    """Split ``content`` into ``ceil(len / chunk_size)`` overlapping windows.

    Chunk ``i`` covers ``[max(0, i*C - O), min(len, i*C + C + O))``, so every
    chunk is at most ``C + 2*O`` long and the cores ``[i*C, (i+1)*C)`` tile
    the content with no gaps.

    Raises:
        ValueError: If ``chunk_size`` is not positive or ``overlap`` is negative.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise ValueError(f"overlap must be non-negative, got {overlap}")

    length = len(content)
    chunks: list[Chunk] = []
    for index in range(chunk_count(length, chunk_size)):
        core_start = index * chunk_size
        core_end = min(length, core_start + chunk_size)
        start = max(0, core_start - overlap)
        end = min(length, core_end + overlap)
        chunks.append(
            Chunk(
                index=index,
                text=content[start:end],
                start=start,
                end=end,
                core_start=core_start,
                core_end=core_end,
            )
        )
    return chunks


def needs_segmentation(content: str, threshold: int = 4000) -> bool:
    """True when content is long enough to be split before synthesis."""
    return len(content) > threshold
