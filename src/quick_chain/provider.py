"""Model provider client backed by pydantic-ai."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic_ai import Agent, NativeOutput
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings
from pydantic_ai.tools import Tool
from pydantic_ai.toolsets import FunctionToolset

from quick_chain.json_utils import extract_first_json_object
from quick_chain.models.provider_spec import ProviderSpec

OPENAI_BASE_URL = "https://api.openai.com/v1"

SchemaT = TypeVar("SchemaT", bound=BaseModel)

logger = logging.getLogger(__name__)


def build_model(spec: ProviderSpec, model_name: str) -> OpenAIChatModel:
    api_key = os.environ.get(spec.api_key_env, "noop")
    provider = OpenAIProvider(base_url=spec.base_url, api_key=api_key)
    return OpenAIChatModel(model_name, provider=provider)


def parse_structured_output(raw_output: Any, schema_cls: Type[SchemaT]) -> SchemaT:
    if isinstance(raw_output, schema_cls):
        return raw_output
    if isinstance(raw_output, BaseModel):
        return schema_cls.model_validate(raw_output.model_dump())
    if isinstance(raw_output, dict):
        return schema_cls.model_validate(raw_output)
    try:
        return schema_cls.model_validate_json(raw_output)
    except ValidationError:
        extracted = extract_first_json_object(raw_output)
        return schema_cls.model_validate_json(extracted)


class ModelClient:
    """
    Narrow wrapper around the model provider. Every call is a single
    pydantic-ai agent run; failures propagate to the caller untouched.
    """

    def __init__(self, spec: ProviderSpec | None = None) -> None:
        self.spec: ProviderSpec = spec or ProviderSpec()
        self._models: dict[str, OpenAIChatModel] = {}

    def model_for(self, model_name: str) -> OpenAIChatModel:
        model = self._models.get(model_name)
        if model is None:
            model = build_model(self.spec, model_name)
            self._models[model_name] = model
        return model

    def _base_settings(self) -> ModelSettings:
        settings: ModelSettings = {"temperature": self.spec.temperature}
        if self.spec.max_tokens is not None:
            settings["max_tokens"] = self.spec.max_tokens
        return settings

    def _structured_settings(self) -> ModelSettings:
        settings = self._base_settings()
        if self.spec.provider == "openai-compatible" and self.spec.base_url != OPENAI_BASE_URL:
            # Ollama OpenAI-compatible API uses "format": "json" to force JSON output.
            settings["extra_body"] = {"format": "json"}
        return settings

    def _structured_output_type(self, schema_cls: Type[SchemaT]) -> Any:
        if self.spec.provider == "openai-compatible" and self.spec.base_url == OPENAI_BASE_URL:
            # Native response_format; pydantic-ai closes the schema for strict mode.
            return NativeOutput(schema_cls, strict=True)
        return schema_cls

    async def structured_complete(
        self,
        system_text: str,
        user_text: str,
        schema_cls: Type[SchemaT],
        model_name: str,
    ) -> SchemaT | None:
        agent = Agent(
            self.model_for(model_name),
            instructions=system_text or None,
            output_type=self._structured_output_type(schema_cls),
            model_settings=self._structured_settings(),
        )
        result = await agent.run(user_text)
        if result.output is None:
            return None
        return parse_structured_output(result.output, schema_cls)

    async def freeform_complete(self, system_text: str, user_text: str, model_name: str) -> str:
        agent = Agent(
            self.model_for(model_name),
            instructions=system_text or None,
            output_type=str,
            model_settings=self._base_settings(),
        )
        result = await agent.run(user_text)
        return result.output or ""

    async def constrained_single_token_complete(
        self,
        user_text: str,
        logit_bias: dict[str, int],
        model_name: str,
    ) -> str:
        settings: ModelSettings = {"temperature": 0.0, "max_tokens": 1, "logit_bias": logit_bias}
        agent = Agent(self.model_for(model_name), output_type=str, model_settings=settings)
        result = await agent.run(user_text)
        return result.output or ""

    async def run_tool_session(
        self,
        system_text: str,
        user_text: str,
        tools: Sequence[Tool[Any]],
        model_name: str,
    ) -> str | None:
        toolset: FunctionToolset[Any] = FunctionToolset(tools=list(tools))
        agent = Agent(
            self.model_for(model_name),
            instructions=system_text or None,
            toolsets=[toolset],
            output_type=str,
            model_settings=self._base_settings(),
        )
        result = await agent.run(user_text)
        logger.debug("Tool session finished after %d messages", len(result.all_messages()))
        return result.output


@lru_cache(maxsize=1)
def default_client() -> ModelClient:
    return ModelClient()
