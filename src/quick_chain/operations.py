"""Pipeline steps.

Every step is a frozen record of the configuration captured when it was
appended, and exposes one `apply(value, context)` coroutine. A pipeline runs
its steps in order, feeding each result into the next step.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, ClassVar, Type, Union

from pydantic import BaseModel, Field, create_model

from quick_chain.errors import ClassificationError
from quick_chain.json_utils import to_text
from quick_chain.logit import build_logit_bias
from quick_chain.models.pipeline_config import Example
from quick_chain.orchestrator import execute_tools
from quick_chain.pipeline_logging import PipelineLogger
from quick_chain.prompting import format_classify_prompt, format_extract_prompt, format_generate_prompt
from quick_chain.provider import ModelClient
from quick_chain.resolver import get_structured_response
from quick_chain.tool_bridge import create_tools

if TYPE_CHECKING:
    from quick_chain.pipeline import Pipeline


@dataclass(frozen=True)
class StepContext:
    client: ModelClient
    log: PipelineLogger


def envelope_schema(item_schema: Type[BaseModel], count: int) -> Type[BaseModel]:
    """Wraps an item schema in `{results: [...]}` holding exactly `count` items."""
    return create_model(
        f"{item_schema.__name__}Results",
        results=(list[item_schema], Field(min_length=count, max_length=count)),  # type: ignore[valid-type]
    )


@dataclass(frozen=True)
class SchemaStep:
    kind: ClassVar[str] = "schema"

    schema: Type[BaseModel]
    model: str
    instruction: str = ""
    examples: tuple[Example, ...] = ()

    async def apply(self, value: Any, context: StepContext) -> BaseModel:
        data = to_text(value)
        context.log.debug("schema step input=%r instruction=%r", value, self.instruction)
        prompt = format_extract_prompt(data, self.instruction, self.examples)
        context.log.trace("schema step prompt:\n%s", prompt)
        return await get_structured_response(
            data,
            self.schema,
            context.client,
            model=self.model,
            instructions=prompt,
        )


@dataclass(frozen=True)
class GenerateStep:
    kind: ClassVar[str] = "generate"

    item_schema: Type[BaseModel]
    count: int
    model: str
    instruction: str = ""
    examples: tuple[Example, ...] = ()

    async def apply(self, value: Any, context: StepContext) -> list[BaseModel]:
        data = to_text(value)
        context.log.debug("generate step input=%r count=%d", value, self.count)
        prompt = format_generate_prompt(data, self.count, self.instruction, self.examples)
        context.log.trace("generate step prompt:\n%s", prompt)
        response = await get_structured_response(
            data,
            envelope_schema(self.item_schema, self.count),
            context.client,
            model=self.model,
            instructions=prompt,
        )
        return list(getattr(response, "results"))


@dataclass(frozen=True)
class ClassifyStep:
    kind: ClassVar[str] = "classify"

    labels: tuple[str, ...]
    model: str
    instruction: str = ""
    examples: tuple[Example, ...] = ()

    def parse_label(self, reply: str) -> str:
        try:
            index = int(reply.strip())
        except ValueError as exc:
            raise ClassificationError(f"Model reply {reply!r} is not a label number.") from exc
        if not 0 <= index < len(self.labels):
            raise ClassificationError(f"Label index {index} is out of range for {len(self.labels)} labels.")
        return self.labels[index]

    async def apply(self, value: Any, context: StepContext) -> str:
        context.log.debug("classify step input=%r labels=%r", value, self.labels)
        prompt = format_classify_prompt(to_text(value), self.labels, self.instruction, self.examples)
        context.log.trace("classify step prompt:\n%s", prompt)
        bias = build_logit_bias(self.labels, self.model)
        reply = await context.client.constrained_single_token_complete(prompt, bias, self.model)
        return self.parse_label(reply)


@dataclass(frozen=True)
class HandlerStep:
    kind: ClassVar[str] = "handler"

    handler: Callable[[Any], Any | Awaitable[Any]]

    async def apply(self, value: Any, context: StepContext) -> Any:
        context.log.debug("handler step input=%r", value)
        result = self.handler(value)
        if inspect.isawaitable(result):
            result = await result
        return result


@dataclass(frozen=True)
class UsesStep:
    kind: ClassVar[str] = "uses"

    tools: tuple["Pipeline[Any, Any]", ...]
    model: str
    instruction: str = ""

    async def apply(self, value: Any, context: StepContext) -> str:
        context.log.debug("uses step input=%r instruction=%r", value, self.instruction)
        final_content = await execute_tools(
            create_tools(self.tools, context.client),
            to_text(value),
            context.client,
            model=self.model,
            guidance=self.instruction,
        )
        context.log.debug("uses step received tool session output %r", final_content)
        return final_content


@dataclass(frozen=True)
class LogStep:
    kind: ClassVar[str] = "log"

    observer: Callable[[Any], Any]

    async def apply(self, value: Any, context: StepContext) -> Any:
        self.observer(value)
        return value


Operation = Union[SchemaStep, GenerateStep, ClassifyStep, HandlerStep, UsesStep, LogStep]
