"""Shared test fixtures for toolloop.

Provides a factory for throwaway tool programs (small /bin/sh scripts that
speak the --name/--description/--parameters protocol) and a scripted chat
client that replays canned responses and records every request.
"""

from __future__ import annotations

import json
import shlex
import stat
from pathlib import Path

import pytest

from toolloop.protocols import ChatResponse

CALCULATOR_PARAMS = {
    "type": "object",
    "properties": {
        "expression": {
            "type": "string",
            "description": "Mathematical expression to evaluate",
        }
    },
    "required": ["expression"],
}

CALCULATOR_BODY = """\
if [ "$1" != "--expression" ]; then
  echo "Error: Expression is required. Use --expression EXPR"
  exit 1
fi
echo "$2 = $(( $2 ))"
"""

ECHO_ARGS_BODY = """\
for arg in "$@"; do
  printf '[%s]\\n' "$arg"
done
"""


def write_tool(
    directory: Path,
    filename: str,
    *,
    name: str,
    description: str = "A test tool",
    parameters: dict | str | None = None,
    body: str = ECHO_ARGS_BODY,
    executable: bool = True,
) -> Path:
    """Write a tool program into ``directory`` and return its path."""
    if parameters is None:
        parameters = {"type": "object", "properties": {}}
    params = parameters if isinstance(parameters, str) else json.dumps(parameters)
    script = (
        "#!/bin/sh\n"
        'case "$1" in\n'
        f"  --name) printf '%s\\n' {shlex.quote(name)}; exit 0 ;;\n"
        f"  --description) printf '%s\\n' {shlex.quote(description)}; exit 0 ;;\n"
        f"  --parameters) printf '%s\\n' {shlex.quote(params)}; exit 0 ;;\n"
        "esac\n"
        f"{body}"
    )
    path = directory / filename
    path.write_text(script)
    mode = path.stat().st_mode
    if executable:
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    else:
        path.chmod(mode & ~(stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))
    return path


# ---------------------------------------------------------------------------
# Canned chat-completions bodies
# ---------------------------------------------------------------------------


def content_response(text: str, *, prompt_tokens: int = 10, completion_tokens: int = 5) -> dict:
    """Response body with assistant text only."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": text},
                "finish_reason": "stop",
            }
        ],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }


def tool_calls_response(
    calls: list[tuple[str, dict, str]],
    *,
    text: str | None = None,
    prompt_tokens: int = 20,
    completion_tokens: int = 8,
) -> dict:
    """Response body requesting tool calls.

    Args:
        calls: List of (tool_name, arguments, call_id) tuples.
    """
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": text,
                    "tool_calls": [
                        {
                            "id": cid,
                            "type": "function",
                            "function": {"name": name, "arguments": json.dumps(args)},
                        }
                        for name, args, cid in calls
                    ],
                },
                "finish_reason": "tool_calls",
            }
        ],
        "usage": {"prompt_tokens": prompt_tokens, "completion_tokens": completion_tokens},
    }


def error_response(message: str) -> dict:
    return {"error": {"message": message, "type": "invalid_request_error"}}


class ScriptedClient:
    """LLMClient fake that replays bodies in order and records each request.

    Once the script runs out, the last body is repeated.  A body may also
    be an exception instance, which is raised instead.
    """

    def __init__(self, bodies: list[dict | Exception]) -> None:
        self._bodies = list(bodies)
        self.requests: list[dict] = []
        self.closed = False

    def send(self, messages, tools=None, *, include_tools=True, model=None, temperature=None):
        self.requests.append({
            "messages": [m.to_openai() if hasattr(m, "to_openai") else dict(m) for m in messages],
            "tools": [t.name for t in tools] if (include_tools and tools) else None,
            "include_tools": include_tools,
            "model": model,
            "temperature": temperature,
        })
        idx = min(len(self.requests) - 1, len(self._bodies) - 1)
        body = self._bodies[idx]
        if isinstance(body, Exception):
            raise body
        return ChatResponse.from_openai(body)

    def close(self) -> None:
        self.closed = True

    @property
    def tool_requests(self) -> list[dict]:
        """Requests that carried tool definitions (main loop calls)."""
        return [r for r in self.requests if r["include_tools"]]

    @property
    def summary_requests(self) -> list[dict]:
        """Requests sent without tools (chunk summarization calls)."""
        return [r for r in self.requests if not r["include_tools"]]


@pytest.fixture
def tools_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "tools"
    directory.mkdir()
    return directory


@pytest.fixture
def calculator(tools_dir: Path) -> Path:
    return write_tool(
        tools_dir,
        "calculator.sh",
        name="calculate",
        description="Perform mathematical calculations",
        parameters=CALCULATOR_PARAMS,
        body=CALCULATOR_BODY,
    )
