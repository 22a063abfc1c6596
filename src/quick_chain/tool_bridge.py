"""Expose pipelines as tools another pipeline can call."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

from pydantic import BaseModel
from pydantic_ai import ModelRetry
from pydantic_ai.tools import Tool

from quick_chain.errors import InputValidationError
from quick_chain.json_utils import to_jsonable
from quick_chain.models.tool_descriptor import ToolDescriptor
from quick_chain.provider import ModelClient

if TYPE_CHECKING:
    from quick_chain.pipeline import Pipeline

FALLBACK_TOOL_NAME = "No name provided"
FALLBACK_TOOL_DESCRIPTION = "No description provided"

logger = logging.getLogger(__name__)


class PipelineTool:
    """Callable handed to the tool session; forwards model arguments to a descriptor."""

    def __init__(self, descriptor: ToolDescriptor) -> None:
        self._descriptor = descriptor
        self.__name__ = descriptor.name

    async def __call__(self, **arguments: Any) -> Any:
        """
        Run the wrapped pipeline with the arguments the model supplied.
        Returns JSON-ready output: structured results are dumped, text is returned as-is.
        """
        logger.debug("Tool %s called with %r", self._descriptor.name, arguments)
        try:
            out = await self._descriptor.invoke(arguments)
        except InputValidationError as exc:
            # Hand the field errors back so the model can correct its call.
            raise ModelRetry(str(exc)) from exc
        if isinstance(out, BaseModel):
            return out.model_dump(mode="json")
        if isinstance(out, str):
            return out
        return to_jsonable(out)


def describe_pipeline(pipeline: "Pipeline[Any, Any]", client: ModelClient | None = None) -> ToolDescriptor:
    """
    Wraps a pipeline as a tool. A pipeline without its own client runs on `client`.
    """
    config = pipeline.config
    run_client = pipeline.client or client

    async def invoke(arguments: dict[str, Any]) -> Any:
        return await pipeline.run(arguments, client=run_client)

    return ToolDescriptor(
        name=config.name or FALLBACK_TOOL_NAME,
        parameters_schema=pipeline.get_input_schema(),
        description=config.description or config.instruction or FALLBACK_TOOL_DESCRIPTION,
        invoke=invoke,
    )


def create_tools(
    pipelines: Sequence["Pipeline[Any, Any]"],
    client: ModelClient | None = None,
) -> list[ToolDescriptor]:
    return [describe_pipeline(pipeline, client) for pipeline in pipelines]


def to_session_tool(descriptor: ToolDescriptor) -> Tool[Any]:
    tool = PipelineTool(descriptor)
    return Tool.from_schema(
        tool.__call__,
        name=descriptor.name,
        description=descriptor.description,
        json_schema=descriptor.json_schema,
    )
