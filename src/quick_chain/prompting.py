"""Prompt composition helpers."""

from __future__ import annotations

from typing import Any, Sequence

import yaml

from quick_chain.json_utils import to_jsonable
from quick_chain.models.pipeline_config import Example

EXTRACT_PREAMBLE = (
    "# Expert Entity Extractor\n"
    "You are an expert entity extractor that always maintains as much semantic\n"
    "meaning as possible. You use inference or deduction whenever necessary to\n"
    "supply missing or omitted data. Examine the provided data, text, or\n"
    "information and generate a list of any entities or objects that match the\n"
    "requested format."
)

GENERATE_PREAMBLE = (
    "# Expert Data Generator\n"
    "You are an expert data generator that always creates high-quality, random\n"
    "examples of a description or type. The data you produce is relied on for\n"
    "testing, examples, demonstrations, and more. You use inference or deduction\n"
    "whenever necessary to supply missing or omitted data.\n"
    "\n"
    "Unless explicitly stated otherwise, assume a request for a VARIED\n"
    "and REALISTIC selection of useful outputs that meet the given criteria. However,\n"
    "prefer common responses to uncommon ones.\n"
    "\n"
    "If a description is provided, generate examples that satisfy the description.\n"
    "Do not provide more information than requested."
)

CLASSIFY_PREAMBLE = (
    "# Expert Classifier\n"
    "You are an expert classifier that always maintains as much semantic meaning\n"
    "as possible when labeling text. You use inference or deduction whenever\n"
    "necessary to understand missing or omitted data. Classify the provided data,\n"
    "text, or information as one of the provided labels. For boolean labels,\n"
    "consider \"truthy\" or affirmative inputs to be \"true\"."
)


def render_example_output(output: Any) -> str:
    if isinstance(output, str):
        return output
    return yaml.safe_dump(
        to_jsonable(output),
        allow_unicode=False,
        default_flow_style=False,
        sort_keys=True,
    ).rstrip()


def _instruction_lines(instructions: str, header: str = "## Additional instructions") -> list[str]:
    if not instructions:
        return []
    return ["", header, instructions]


def _example_lines(examples: Sequence[Example], output_label: str = "Output") -> list[str]:
    if not examples:
        return []
    lines = ["", "## Examples"]
    for index, example in enumerate(examples, start=1):
        lines.extend(
            [
                f"Example #{index}:",
                f"Input: {example.input}",
                f"{output_label}: {render_example_output(example.output)}",
                "",
            ]
        )
    return lines


def _finish(lines: list[str]) -> str:
    return "\n".join(lines).rstrip() + "\n"


def format_extract_prompt(data: str, instructions: str = "", examples: Sequence[Example] = ()) -> str:
    lines = [EXTRACT_PREAMBLE, "", "## Data to extract", data]
    lines.extend(_instruction_lines(instructions))
    lines.extend(_example_lines(examples))
    return _finish(lines)


def format_generate_prompt(
    data: str,
    count: int,
    instructions: str = "",
    examples: Sequence[Example] = (),
) -> str:
    noun = "entity" if count == 1 else "entities"
    lines = [
        GENERATE_PREAMBLE,
        "",
        "## Input data",
        data,
        "",
        "## Requested number of entities",
        f"Generate a list of {count} random {noun}.",
    ]
    lines.extend(_instruction_lines(instructions, header="## Instructions"))
    lines.extend(_example_lines(examples))
    return _finish(lines)


def format_classify_prompt(
    data: str,
    labels: Sequence[str],
    instructions: str = "",
    examples: Sequence[Example] = (),
) -> str:
    lines = [CLASSIFY_PREAMBLE, "", "## Text or data to classify", data]
    lines.extend(_instruction_lines(instructions))
    lines.extend(_example_lines(examples, output_label="Label"))
    lines.extend(
        [
            "",
            "## Labels",
            "You must classify the data as one of the following labels, which are numbered "
            "(starting from 0) and provide a brief description. Output the label number only.",
            "",
        ]
    )
    lines.extend(f"- Label #{index}: {label}" for index, label in enumerate(labels))
    lines.extend(["", "The best label for the data is Label"])
    return _finish(lines)

