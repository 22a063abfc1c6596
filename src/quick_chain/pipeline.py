"""Immutable pipeline builder and execution engine."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, Type, TypeVar, cast

import anyio
from pydantic import BaseModel

from quick_chain.configurator import Configurator
from quick_chain.json_utils import to_text
from quick_chain.models.default_input import DefaultInput
from quick_chain.models.pipeline_config import PipelineConfig
from quick_chain.operations import (
    ClassifyStep,
    GenerateStep,
    HandlerStep,
    LogStep,
    Operation,
    SchemaStep,
    StepContext,
    UsesStep,
)
from quick_chain.pipeline_logging import PipelineLogger
from quick_chain.provider import ModelClient, default_client
from quick_chain.resolver import process_input
from quick_chain.tool_bridge import FALLBACK_TOOL_NAME

I = TypeVar("I")
O = TypeVar("O")
NewO = TypeVar("NewO")
ItemT = TypeVar("ItemT", bound=BaseModel)
SchemaT = TypeVar("SchemaT", bound=BaseModel)

DEFAULT_OPERATION_GUIDANCE = "Process the following input."

ConfigureFn = Callable[[Configurator[Any]], Any]


def _configure(configure: Optional[ConfigureFn]) -> Configurator[Any]:
    config: Configurator[Any] = Configurator()
    if configure is not None:
        configure(config)
    return config


@dataclass(frozen=True)
class Pipeline(Generic[I, O]):
    """
    A named, immutable chain of steps. Builder methods never touch the
    pipeline they are called on; each returns a new pipeline with one more
    step, so one pipeline can be the base of several independent chains.
    """

    config: PipelineConfig
    input_schema: Optional[Type[BaseModel]] = None
    output_schema: Any = None
    operations: tuple[Operation, ...] = ()
    client: Optional[ModelClient] = field(default=None, compare=False)

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def logger(self) -> PipelineLogger:
        return PipelineLogger(self.config.name, self.config.log_level)

    def get_input_schema(self) -> Type[BaseModel]:
        return self.input_schema or DefaultInput

    def _append(
        self,
        operation: Operation,
        output_schema: Any,
        step_config: Optional[Configurator[Any]] = None,
    ) -> "Pipeline[I, Any]":
        config = self.config
        if step_config is not None:
            config = config.model_copy(
                update={"instruction": step_config.instruction, "examples": step_config.examples}
            )
        return dataclasses.replace(
            self,
            config=config,
            output_schema=output_schema,
            operations=self.operations + (operation,),
        )

    def schema(
        self,
        schema: Type[SchemaT],
        configure: Optional[ConfigureFn] = None,
    ) -> "Pipeline[I, SchemaT]":
        """Ask the model to restate the current value as an instance of `schema`."""
        step_config = _configure(configure)
        operation = SchemaStep(
            schema=schema,
            model=step_config.model or self.config.model,
            instruction=step_config.instruction,
            examples=step_config.examples,
        )
        return cast("Pipeline[I, SchemaT]", self._append(operation, schema, step_config))

    def generate(
        self,
        schema: Type[ItemT],
        count: int,
        configure: Optional[ConfigureFn] = None,
    ) -> "Pipeline[I, list[ItemT]]":
        """Generate exactly `count` items matching `schema` from the current value."""
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValueError(f"count must be a positive integer, got {count!r}.")
        step_config = _configure(configure)
        operation = GenerateStep(
            item_schema=schema,
            count=count,
            model=step_config.model or self.config.model,
            instruction=step_config.instruction,
            examples=step_config.examples,
        )
        return cast("Pipeline[I, list[ItemT]]", self._append(operation, list[schema], step_config))  # type: ignore[valid-type]

    def classify(
        self,
        labels: Sequence[str],
        configure: Optional[ConfigureFn] = None,
    ) -> "Pipeline[I, str]":
        """Pick one of `labels` for the current value."""
        if not labels:
            raise ValueError("classify needs at least one label.")
        step_config = _configure(configure)
        operation = ClassifyStep(
            labels=tuple(labels),
            model=step_config.model or self.config.model,
            instruction=step_config.instruction,
            examples=step_config.examples,
        )
        return cast("Pipeline[I, str]", self._append(operation, str, step_config))

    def handler(self, handler: Callable[[O], NewO | Awaitable[NewO]]) -> "Pipeline[I, NewO]":
        return cast("Pipeline[I, NewO]", self._append(HandlerStep(handler=handler), None))

    def uses(
        self,
        tools: Sequence["Pipeline[Any, Any]"],
        configure: Optional[ConfigureFn] = None,
    ) -> "Pipeline[I, str]":
        """Let the model call the given pipelines as tools and return its final answer."""
        names = [tool.name or FALLBACK_TOOL_NAME for tool in tools]
        if len(set(names)) != len(names):
            raise ValueError(f"Tool names must be unique, got {names}.")
        step_config = _configure(configure)
        operation = UsesStep(
            tools=tuple(tools),
            model=step_config.model or self.config.model,
            instruction=step_config.instruction or self.config.instruction,
        )
        return cast("Pipeline[I, str]", self._append(operation, str, step_config))

    def log(self, observer: Callable[[O], Any]) -> "Pipeline[I, O]":
        return cast("Pipeline[I, O]", self._append(LogStep(observer=observer), self.output_schema))

    async def _default_operation(self, value: Any, context: StepContext) -> str:
        context.log.debug("Using default operation for input %r", value)
        return await context.client.freeform_complete(
            self.config.description or DEFAULT_OPERATION_GUIDANCE,
            to_text(value),
            self.config.model,
        )

    def _runs_default_operation(self) -> bool:
        # A schema-only pipeline without guidance passes its validated input through.
        if self.operations:
            return False
        return self.input_schema is None or bool(self.config.description)

    async def run(self, value: I | str, *, client: Optional[ModelClient] = None) -> O:
        log = self.logger
        context = StepContext(client=client or self.client or default_client(), log=log)
        log.info("Running pipeline %s with %d operations", self.name, len(self.operations))

        if isinstance(value, str):
            log.debug("Received string input (schema declared: %s)", self.input_schema is not None)
        result: Any = await process_input(value, self.input_schema, context.client, model=self.config.model)

        if self._runs_default_operation():
            return cast(O, await self._default_operation(result, context))

        for index, operation in enumerate(self.operations, start=1):
            log.debug("Operation %d (%s) input: %r", index, operation.kind, result)
            result = await operation.apply(result, context)
            log.debug("Operation %d (%s) output: %r", index, operation.kind, result)
        return cast(O, result)

    def run_sync(self, value: I | str, *, client: Optional[ModelClient] = None) -> O:
        async def _run() -> O:
            return await self.run(value, client=client)

        return anyio.run(_run)


def pipeline(
    name: str,
    input_schema: Optional[Type[BaseModel]] = None,
    configure: Optional[ConfigureFn] = None,
    *,
    client: Optional[ModelClient] = None,
) -> Pipeline[Any, Any]:
    """
    Creates an empty pipeline. Pass the input schema positionally and the
    configurator as `configure=` (or third positionally):

        pipeline("sentiment", Review, configure=lambda c: c.set_model("gpt-4o"))
        pipeline("chat", configure=lambda c: c.set_description("Be brief."))

    A configurator in the second position raises TypeError; pass it as `configure=`.
    """
    if input_schema is not None and not (isinstance(input_schema, type) and issubclass(input_schema, BaseModel)):
        raise TypeError(
            f"input_schema must be a pydantic BaseModel subclass, got {input_schema!r}; "
            "pass configurators with configure=."
        )
    config = PipelineConfig(name=name, **_configure(configure).overrides())
    return Pipeline(config=config, input_schema=input_schema, output_schema=input_schema, client=client)
