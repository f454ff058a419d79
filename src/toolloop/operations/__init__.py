"""Operations applied to tool output."""

from toolloop.operations.condense import (
    MIN_CHUNK_BYTES,
    RESULT_SEPARATOR,
    ChunkOutcome,
    Condenser,
    condense,
    split_chunks,
)

__all__ = [
    "MIN_CHUNK_BYTES",
    "RESULT_SEPARATOR",
    "ChunkOutcome",
    "Condenser",
    "condense",
    "split_chunks",
]
