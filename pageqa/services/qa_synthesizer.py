"""Generate QA items from page text with the selected AI provider."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from pageqa.services.providers.base import Provider, ProviderOptions
from pageqa.services.providers.selector import ProviderSelector
from pageqa.services.response_repair import QAItem, parse_qa_response
from pageqa.services.segmenter import Chunk, needs_segmentation, segment

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """Generate {count} interview-style questions and answers from the content below.

Title: {title}
Content:
{content}

Requirements:
1. Cover the core knowledge points of this content.
2. "type" must be one of: concept, implementation, application, tradeoffs, comparison, experience, other.
3. "difficulty" must be one of: basic, intermediate, advanced.
4. Answers must be complete and accurate.
5. Write questions and answers in the same language as the content.

Return only a JSON array in exactly this shape, with no other text:
[{{"question": "...", "answer": "...", "type": "concept", "difficulty": "intermediate", "tags": ["..."], "score": 4}}]"""

SINGLE_CHUNK_COUNT = "5-8"
MULTI_CHUNK_COUNT = "3-5"


@dataclass
class ChunkOutcome:
    """What one chunk contributed: its items, or the error that emptied it."""

    index: int
    items: list[QAItem] = field(default_factory=list)
    error: str | None = None


@dataclass
class SynthesisResult:
    """Per-chunk outcomes in chunk order plus run metadata."""

    provider: str
    outcomes: list[ChunkOutcome]
    elapsed_ms: float = 0.0

    @property
    def item_lists(self) -> list[list[QAItem]]:
        return [outcome.items for outcome in self.outcomes]

    @property
    def item_count(self) -> int:
        return sum(len(outcome.items) for outcome in self.outcomes)

    @property
    def failed_chunks(self) -> list[ChunkOutcome]:
        return [outcome for outcome in self.outcomes if outcome.error]


class QASynthesizer:
    """Builds prompts per chunk and fans provider calls out concurrently.

    Usage:
        synthesizer = QASynthesizer(selector)
        result = await synthesizer.synthesize(page.title, page.content)
        for outcome in result.outcomes:
            print(outcome.index, len(outcome.items))
    """

    # Upper bound on items kept from a single reply
    MAX_ITEMS_PER_CHUNK = 8

    def __init__(
        self,
        selector: ProviderSelector,
        options: ProviderOptions | None = None,
        segment_threshold: int = 4000,
        chunk_size: int = 2000,
        chunk_overlap: int = 200,
    ) -> None:
        self.selector = selector
        self.options = options or ProviderOptions()
        self.segment_threshold = segment_threshold
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def split(self, content: str) -> list[Chunk]:
        """Chunks to synthesize: one whole-content chunk unless it is long."""
        if needs_segmentation(content, self.segment_threshold):
            return segment(content, self.chunk_size, self.chunk_overlap)
        return [
            Chunk(
                index=0,
                text=content,
                start=0,
                end=len(content),
                core_start=0,
                core_end=len(content),
            )
        ]

    def build_prompt(self, title: str, chunk: Chunk, total: int) -> str:
        if total > 1:
            chunk_title = f"{title} (part {chunk.index + 1}/{total})"
            count = MULTI_CHUNK_COUNT
        else:
            chunk_title = title
            count = SINGLE_CHUNK_COUNT
        return PROMPT_TEMPLATE.format(count=count, title=chunk_title, content=chunk.text)

    async def synthesize(self, title: str, content: str) -> SynthesisResult:
        """Generate QA items for every chunk and join once all have settled.

        Raises:
            ProviderUnavailable: If no backend can be selected. Per-chunk
                provider and parse failures are recorded on the outcome.
        """
        provider = await self.selector.get()
        chunks = self.split(content)
        start_time = time.perf_counter()

        logger.info(
            "Synthesizing QA for %r: %d chunk(s), %d chars, provider=%s",
            title,
            len(chunks),
            len(content),
            provider.name,
        )

        results = await asyncio.gather(
            *(self._synthesize_chunk(provider, title, chunk, len(chunks)) for chunk in chunks),
            return_exceptions=True,
        )

        outcomes: list[ChunkOutcome] = []
        for chunk, result in zip(chunks, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Chunk %d/%d produced no QA items: %s",
                    chunk.index + 1,
                    len(chunks),
                    result,
                )
                outcomes.append(ChunkOutcome(index=chunk.index, error=str(result)))
            elif isinstance(result, BaseException):
                raise result
            else:
                outcomes.append(ChunkOutcome(index=chunk.index, items=result))

        outcomes.sort(key=lambda outcome: outcome.index)
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        synthesis = SynthesisResult(
            provider=provider.name, outcomes=outcomes, elapsed_ms=elapsed_ms
        )
        logger.info(
            "Synthesis finished: %d item(s), %d failed chunk(s) in %.0fms",
            synthesis.item_count,
            len(synthesis.failed_chunks),
            elapsed_ms,
        )
        return synthesis

    async def _synthesize_chunk(
        self, provider: Provider, title: str, chunk: Chunk, total: int
    ) -> list[QAItem]:
        prompt = self.build_prompt(title, chunk, total)
        raw = await provider.invoke(prompt, self.options)
        items = parse_qa_response(raw)
        logger.debug("Chunk %d/%d parsed %d item(s)", chunk.index + 1, total, len(items))
        return items[: self.MAX_ITEMS_PER_CHUNK]
