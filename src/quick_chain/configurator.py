"""Per-step configuration builder."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from quick_chain.models.pipeline_config import Example

T = TypeVar("T")


class Configurator(Generic[T]):
    """
    Collects the settings for a single pipeline step or for a new pipeline.
    Every setter returns the configurator so calls can be chained.
    """

    def __init__(self) -> None:
        self._description: str | None = None
        self._model: str | None = None
        self._log_level: int | None = None
        self._instruction: str | None = None
        self._examples: list[Example] = []

    def set_description(self, description: str) -> "Configurator[T]":
        self._description = description
        return self

    def set_model(self, model: str) -> "Configurator[T]":
        self._model = model
        return self

    def set_log_level(self, level: int) -> "Configurator[T]":
        """
        Minimum severity to log, on the scale 0 silly, 1 trace, 2 debug,
        3 info, 4 warn, 5 error, 6 fatal. Higher numbers log less.
        """
        self._log_level = level
        return self

    def add_instruction(self, instruction: str) -> "Configurator[T]":
        # Replaces any earlier instruction on this configurator.
        self._instruction = instruction
        return self

    def add_example(self, input: str, output: T) -> "Configurator[T]":
        self._examples.append(Example(input=input, output=output))
        return self

    @property
    def description(self) -> str | None:
        return self._description

    @property
    def model(self) -> str | None:
        return self._model

    @property
    def log_level(self) -> int | None:
        return self._log_level

    @property
    def instruction(self) -> str:
        return self._instruction or ""

    @property
    def examples(self) -> tuple[Example, ...]:
        return tuple(self._examples)

    def overrides(self) -> dict[str, Any]:
        """Fields explicitly set on this configurator, keyed like PipelineConfig."""
        out: dict[str, Any] = {}
        if self._description is not None:
            out["description"] = self._description
        if self._model is not None:
            out["model"] = self._model
        if self._log_level is not None:
            out["log_level"] = self._log_level
        if self._instruction is not None:
            out["instruction"] = self._instruction
        if self._examples:
            out["examples"] = tuple(self._examples)
        return out
