from typing import Any

import pytest
from pydantic import BaseModel, Field, ValidationError
from pydantic_ai import NativeOutput
from pydantic_ai.profiles.openai import OpenAIJsonSchemaTransformer

from quick_chain import provider as provider_module
from quick_chain.models.provider_spec import ProviderSpec
from quick_chain.provider import ModelClient, build_model, parse_structured_output


class DummyProvider:
    def __init__(self, base_url: str, api_key: str) -> None:
        self.base_url = base_url
        self.api_key = api_key


class DummyModel:
    def __init__(self, model_name: str, provider: DummyProvider) -> None:
        self.model_name = model_name
        self.provider = provider


class FakeAgentResult:
    def __init__(self, output: Any) -> None:
        self.output = output

    def all_messages(self) -> list[Any]:
        return []


class FakeAgent:
    next_output: Any = ""
    last_init: dict[str, Any] | None = None
    last_prompt: str | None = None

    def __init__(self, model: Any, **kwargs: Any) -> None:
        FakeAgent.last_init = {"model": model, **kwargs}

    async def run(self, user_prompt: str) -> FakeAgentResult:
        FakeAgent.last_prompt = user_prompt
        return FakeAgentResult(FakeAgent.next_output)


class Contact(BaseModel):
    name: str
    email: str


@pytest.fixture
def patched(monkeypatch: pytest.MonkeyPatch) -> type[FakeAgent]:
    monkeypatch.setattr(provider_module, "OpenAIProvider", DummyProvider)
    monkeypatch.setattr(provider_module, "OpenAIChatModel", DummyModel)
    monkeypatch.setattr(provider_module, "Agent", FakeAgent)
    FakeAgent.next_output = ""
    FakeAgent.last_init = None
    FakeAgent.last_prompt = None
    return FakeAgent


def test_build_model_uses_env_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_KEY", "abc")
    monkeypatch.setattr(provider_module, "OpenAIProvider", DummyProvider)
    monkeypatch.setattr(provider_module, "OpenAIChatModel", DummyModel)

    model = build_model(ProviderSpec(base_url="http://base", api_key_env="TEST_KEY"), "gpt-test")

    assert isinstance(model, DummyModel)
    assert model.model_name == "gpt-test"
    assert model.provider.base_url == "http://base"
    assert model.provider.api_key == "abc"


def test_build_model_defaults_api_key_to_noop(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_KEY", raising=False)
    monkeypatch.setattr(provider_module, "OpenAIProvider", DummyProvider)
    monkeypatch.setattr(provider_module, "OpenAIChatModel", DummyModel)

    model = build_model(ProviderSpec(api_key_env="MISSING_KEY"), "m")

    assert model.provider.api_key == "noop"


def test_model_for_caches_per_model_name(patched: type[FakeAgent]) -> None:
    client = ModelClient()

    assert client.model_for("a") is client.model_for("a")
    assert client.model_for("a") is not client.model_for("b")


def test_parse_structured_output_variants() -> None:
    contact = Contact(name="Ada", email="ada@example.com")

    assert parse_structured_output(contact, Contact) is contact
    assert parse_structured_output({"name": "Ada", "email": "ada@example.com"}, Contact) == contact
    assert parse_structured_output('{"name": "Ada", "email": "ada@example.com"}', Contact) == contact
    wrapped = 'Sure! {"name": "Ada", "email": "ada@example.com"} Anything else?'
    assert parse_structured_output(wrapped, Contact) == contact
    with pytest.raises(ValidationError):
        parse_structured_output({"name": "Ada"}, Contact)


@pytest.mark.anyio
async def test_structured_complete_uses_strict_native_output_for_openai(patched: type[FakeAgent]) -> None:
    patched.next_output = Contact(name="Ada", email="ada@example.com")
    client = ModelClient(ProviderSpec(temperature=0.5))

    result = await client.structured_complete("system", "user text", Contact, "gpt-test")

    assert result == Contact(name="Ada", email="ada@example.com")
    assert patched.last_prompt == "user text"
    init = patched.last_init
    assert init is not None
    assert init["instructions"] == "system"
    output_type = init["output_type"]
    assert isinstance(output_type, NativeOutput)
    assert output_type.outputs is Contact
    assert output_type.strict is True
    assert init["model_settings"] == {"temperature": 0.5}


def test_strict_openai_schema_closes_objects() -> None:
    class Batch(BaseModel):
        results: list[Contact] = Field(min_length=2, max_length=2)

    schema = OpenAIJsonSchemaTransformer(Batch.model_json_schema(), strict=True).walk()

    assert schema["additionalProperties"] is False
    assert schema["required"] == ["results"]
    item_schema = schema.get("$defs", {}).get("Contact") or schema["properties"]["results"]["items"]
    assert item_schema["additionalProperties"] is False
    assert sorted(item_schema["required"]) == ["email", "name"]


@pytest.mark.anyio
async def test_structured_complete_requests_json_format_for_compatible_endpoint(
    patched: type[FakeAgent],
) -> None:
    patched.next_output = '{"name": "Ada", "email": "ada@example.com"}'
    client = ModelClient(ProviderSpec(base_url="http://localhost:11434/v1", max_tokens=64))

    await client.structured_complete("system", "user", Contact, "llama")

    assert patched.last_init["output_type"] is Contact  # type: ignore[index]
    settings = patched.last_init["model_settings"]  # type: ignore[index]
    assert settings["extra_body"] == {"format": "json"}
    assert settings["max_tokens"] == 64


@pytest.mark.anyio
async def test_structured_complete_returns_none_for_empty_output(patched: type[FakeAgent]) -> None:
    patched.next_output = None

    assert await ModelClient().structured_complete("s", "u", Contact, "m") is None


@pytest.mark.anyio
async def test_freeform_complete_returns_text(patched: type[FakeAgent]) -> None:
    patched.next_output = "answer"

    result = await ModelClient().freeform_complete("", "question", "m")

    assert result == "answer"
    assert patched.last_init["instructions"] is None  # type: ignore[index]
    assert patched.last_init["output_type"] is str  # type: ignore[index]


@pytest.mark.anyio
async def test_constrained_single_token_complete_settings(patched: type[FakeAgent]) -> None:
    patched.next_output = "2"

    result = await ModelClient().constrained_single_token_complete("prompt", {"15": 100}, "m")

    assert result == "2"
    settings = patched.last_init["model_settings"]  # type: ignore[index]
    assert settings == {"temperature": 0.0, "max_tokens": 1, "logit_bias": {"15": 100}}


@pytest.mark.anyio
async def test_run_tool_session_registers_tools(patched: type[FakeAgent]) -> None:
    patched.next_output = "final"

    async def lookup(**kwargs: Any) -> str:
        return "x"

    tool = provider_module.Tool.from_schema(
        lookup,
        name="lookup",
        description="Look something up",
        json_schema={"type": "object", "properties": {}},
    )

    result = await ModelClient().run_tool_session("guidance", "text", [tool], "m")

    assert result == "final"
    init = patched.last_init
    assert init is not None
    assert init["instructions"] == "guidance"
    toolsets = init["toolsets"]
    assert len(toolsets) == 1
    assert "lookup" in toolsets[0].tools
