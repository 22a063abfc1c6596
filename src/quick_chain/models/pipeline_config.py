"""Pydantic models for pipeline configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

DEFAULT_MODEL = "gpt-4o-2024-08-06"
DEFAULT_LOG_LEVEL = 5


class Example(BaseModel):
    model_config = ConfigDict(frozen=True)

    input: str
    output: Any


class PipelineConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    log_level: int = DEFAULT_LOG_LEVEL  # minimum severity, 0 (silly) .. 6 (fatal)
    model: str = DEFAULT_MODEL
    description: str = ""
    instruction: str = ""
    examples: tuple[Example, ...] = ()
