"""Summarization prompts for condensing multi-part tool output.

Each chunk of a separated tool result is sent on its own with
**CHUNK_SUMMARIZE_SYSTEM** as the system message and the raw chunk as the
user message.  No tool definitions are attached to these calls.
"""

from __future__ import annotations

CHUNK_SUMMARIZE_SYSTEM: str = (
    "Summarize the following content, keeping all relevant information. "
    "Extract key facts, data, and important details. "
    "Be comprehensive but organized."
)


def build_chunk_messages(chunk: str, *, system_prompt: str = CHUNK_SUMMARIZE_SYSTEM) -> list[dict]:
    """Build the two-message request for summarizing one chunk."""
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": chunk},
    ]
