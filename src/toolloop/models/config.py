"""Configuration models for toolloop.

SessionConfig holds everything one CLI invocation needs: where the API
lives, which model to ask, where the tools are and how to run them.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from toolloop.exceptions import ConfigurationError, ToolsFolderNotFoundError

DEFAULT_API_URL = "https://ai.jos.li/v1/chat/completions"
DEFAULT_MODEL = "model-name"
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_ITERATIONS = 10
DEFAULT_TOOL_TIMEOUT = 60.0
DEFAULT_TOOL_PATTERN = "*.sh"
API_KEY_ENV_VAR = "OPENAI_API_KEY"


class SessionConfig(BaseModel):
    """Per-session configuration, validated on construction."""

    api_url: str = DEFAULT_API_URL
    api_key: str = Field(default="", validate_default=True)
    model: str = DEFAULT_MODEL
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    max_iterations: int = Field(default=DEFAULT_MAX_ITERATIONS, ge=1)
    tools_folder: Path = Path("./tools")
    tool_pattern: str = DEFAULT_TOOL_PATTERN
    tool_timeout: float = Field(default=DEFAULT_TOOL_TIMEOUT, gt=0)
    request_timeout: float = Field(default=120.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    sandbox_image: Optional[str] = None
    summary_workers: int = Field(default=1, ge=1)
    verbose: bool = False

    @field_validator("api_key", mode="before")
    @classmethod
    def _default_api_key(cls, v: object) -> object:
        if v is None or v == "":
            return os.environ.get(API_KEY_ENV_VAR, "")
        return v

    def validate_for_run(self) -> None:
        """Check the things that must hold before any network activity.

        Raises:
            ConfigurationError: If no API key is available.
            ToolsFolderNotFoundError: If the tools folder does not exist.
        """
        if not self.api_key:
            raise ConfigurationError(
                f"No API key provided. Set {API_KEY_ENV_VAR} or use -k option."
            )
        if not self.tools_folder.is_dir():
            raise ToolsFolderNotFoundError(str(self.tools_folder))
