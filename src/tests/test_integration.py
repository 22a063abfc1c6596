import os

import pytest
from pydantic import BaseModel

from quick_chain import pipeline


def _require_env(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        pytest.skip(f"Missing required env var: {name}")
    return value


class TextInput(BaseModel):
    input: str


class Word(BaseModel):
    word: str


class Upper(BaseModel):
    output: str


@pytest.mark.anyio
async def test_schema_step_end_to_end() -> None:
    _require_env("OPENAI_API_KEY")
    p = pipeline("upper", TextInput).schema(Upper, lambda c: c.add_instruction("Convert the input to uppercase"))

    result = await p.run({"input": "hello world"})

    assert result.output == result.output.upper()


@pytest.mark.anyio
async def test_generate_and_classify_end_to_end() -> None:
    _require_env("OPENAI_API_KEY")
    words = await pipeline("words", TextInput).generate(Word, 3).run({"input": "fruit"})
    labels = ["positive", "negative", "neutral"]
    label = await pipeline("sentiment", TextInput).classify(labels).run({"input": "I love this product!"})

    assert len(words) == 3
    assert label in labels


@pytest.mark.anyio
async def test_uses_end_to_end() -> None:
    _require_env("OPENAI_API_KEY")
    reverse = pipeline(
        "reverse",
        TextInput,
        configure=lambda c: c.set_description("Reverse the input string. Just return the reversed string."),
    )
    p = pipeline("caller").uses([reverse], lambda c: c.add_instruction("Use the reverse tool on the text."))

    result = await p.run("hello")

    assert isinstance(result, str)
    assert result
