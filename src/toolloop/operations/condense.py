"""Condensing separated tool output before it enters the transcript.

Tools that return several independent parts (one per search hit, say)
mark the boundaries with :data:`RESULT_SEPARATOR`.  Such output is split
into chunks, tiny chunks are dropped as noise, each remaining chunk is
summarized by its own model call, and the summaries are joined back with
the same separator in their original order.

Output without the separator is passed through untouched and costs no
API call.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from toolloop.exceptions import CondenseError
from toolloop.llm.errors import LLMClientError
from toolloop.prompts.summarize import CHUNK_SUMMARIZE_SYSTEM, build_chunk_messages

if TYPE_CHECKING:
    from toolloop.llm.protocols import LLMClient
    from toolloop.models.usage import UsageAccumulator
    from toolloop.protocols import TokenUsage

logger = logging.getLogger(__name__)

#: Segment boundary marker of the tool program protocol.  Tools print it on
#: its own line; the exact byte sequence is part of the protocol.
RESULT_SEPARATOR = "---...---RESULT_SEPARATOR_8723c3b3---...---"

#: Chunks shorter than this many UTF-8 bytes are treated as empty.
MIN_CHUNK_BYTES = 100


def split_chunks(raw: str, separator: str = RESULT_SEPARATOR) -> list[str]:
    """Split ``raw`` on ``separator``, keeping authored order.

    One newline directly before and after each separator is removed, so a
    separator printed on its own line does not leak blank lines into the
    neighbouring chunks.
    """
    parts = raw.split(separator)
    chunks: list[str] = []
    last = len(parts) - 1
    for i, part in enumerate(parts):
        if i > 0:
            part = part.removeprefix("\r\n").removeprefix("\n")
        if i < last:
            part = part.removesuffix("\n").removesuffix("\r")
        chunks.append(part)
    return chunks


def chunk_size(chunk: str) -> int:
    """Size of ``chunk`` in UTF-8 bytes."""
    return len(chunk.encode("utf-8"))


@dataclass(frozen=True)
class ChunkOutcome:
    """What happened to one surviving chunk.

    Attributes:
        index: Position of the chunk in the split output.
        size: Raw chunk size in bytes.
        text: Summary, or the raw chunk when summarization failed.
        summarized: False when the raw chunk was kept.
        usage: Token usage of the summarization call, if reported.
        error: Why summarization failed ("" on success).
    """

    index: int
    size: int
    text: str
    summarized: bool
    usage: TokenUsage | None = None
    error: str = ""


class Condenser:
    """Summarizes separated tool output chunk by chunk.

    Usage::

        condenser = Condenser(client, usage=accumulator)
        content = condenser.condense(result.content)

    Args:
        client: Chat client used for the summarization calls.
        usage: Accumulator that receives the token usage of every
            summarization call.  Updated from the calling thread only.
        model: Optional model override for summarization calls.
        temperature: Optional temperature override.
        system_prompt: System instruction for every chunk.
        min_chunk_bytes: Chunks below this size are dropped.
        max_workers: Summarize up to this many chunks concurrently.
    """

    def __init__(
        self,
        client: LLMClient,
        *,
        usage: UsageAccumulator | None = None,
        model: str | None = None,
        temperature: float | None = None,
        system_prompt: str = CHUNK_SUMMARIZE_SYSTEM,
        min_chunk_bytes: int = MIN_CHUNK_BYTES,
        max_workers: int = 1,
        separator: str = RESULT_SEPARATOR,
    ) -> None:
        self._client = client
        self._usage = usage
        self._model = model
        self._temperature = temperature
        self._system_prompt = system_prompt
        self._min_chunk_bytes = min_chunk_bytes
        self._max_workers = max(1, max_workers)
        self._separator = separator
        self.last_outcomes: list[ChunkOutcome] = []

    def needs_condensing(self, raw: str) -> bool:
        return self._separator in raw

    def condense(self, raw: str) -> str:
        """Return the condensed form of ``raw``.

        Never raises for a chunk failure: the failing chunk's raw text is
        kept in its slot and a warning is logged.
        """
        self.last_outcomes = []
        if not self.needs_condensing(raw):
            return raw

        chunks = split_chunks(raw, self._separator)
        survivors = [
            (i, chunk) for i, chunk in enumerate(chunks)
            if chunk_size(chunk) >= self._min_chunk_bytes
        ]
        logger.debug(
            "Created %d chunks, %d above %d bytes",
            len(chunks), len(survivors), self._min_chunk_bytes,
        )
        if not survivors:
            logger.warning(
                "All %d chunks of tool output were below %d bytes; nothing to keep",
                len(chunks), self._min_chunk_bytes,
            )
            return ""

        if self._max_workers > 1 and len(survivors) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                outcomes = list(pool.map(lambda item: self._condense_chunk(*item), survivors))
        else:
            outcomes = [self._condense_chunk(i, chunk) for i, chunk in survivors]

        # reassemble by chunk index, not completion order
        outcomes.sort(key=lambda o: o.index)
        if self._usage is not None:
            for outcome in outcomes:
                self._usage.add(outcome.usage)
        self.last_outcomes = outcomes
        return self._separator.join(o.text for o in outcomes)

    def _condense_chunk(self, index: int, chunk: str) -> ChunkOutcome:
        size = chunk_size(chunk)
        logger.debug("Processing chunk %d (%d bytes)", index + 1, size)
        try:
            text, usage = self._summarize(chunk)
        except (CondenseError, LLMClientError, httpx.HTTPError) as exc:
            logger.warning("Keeping chunk %d unsummarized: %s", index + 1, exc)
            return ChunkOutcome(
                index=index,
                size=size,
                text=chunk,
                summarized=False,
                usage=getattr(exc, "usage", None),
                error=str(exc),
            )
        return ChunkOutcome(index=index, size=size, text=text, summarized=True, usage=usage)

    def _summarize(self, chunk: str) -> tuple[str, TokenUsage | None]:
        """One summarization call.

        Raises:
            CondenseError: If the API answers with an error object or an
                empty summary.
        """
        response = self._client.send(
            build_chunk_messages(chunk, system_prompt=self._system_prompt),
            None,
            include_tools=False,
            model=self._model,
            temperature=self._temperature,
        )
        if response.is_error:
            raise CondenseError(f"API error: {response.error}", usage=response.usage)
        if not response.content.strip():
            raise CondenseError("LLM returned empty summary", usage=response.usage)
        return response.content, response.usage


def condense(raw: str, client: LLMClient, **kwargs: object) -> str:
    """Condense ``raw`` with a one-off :class:`Condenser`."""
    return Condenser(client, **kwargs).condense(raw)  # type: ignore[arg-type]
