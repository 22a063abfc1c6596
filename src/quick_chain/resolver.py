"""Structured response resolution and input validation."""

from __future__ import annotations

from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from quick_chain.errors import CoercionError, FieldError, InputValidationError, ResolverError
from quick_chain.provider import ModelClient

SchemaT = TypeVar("SchemaT", bound=BaseModel)

DEFAULT_SCHEMA_INSTRUCTIONS = "Process the input according to the provided schema."


def field_errors_from(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        errors.append(FieldError(path=path, message=err.get("msg", "invalid value")))
    return errors


def validate_input(schema: Type[SchemaT], value: Any) -> SchemaT:
    try:
        return schema.model_validate(value)
    except ValidationError as exc:
        raise InputValidationError(field_errors_from(exc)) from exc


async def get_structured_response(
    text: str,
    schema: Type[SchemaT],
    client: ModelClient,
    *,
    model: str,
    instructions: str | None = None,
) -> SchemaT:
    try:
        parsed = await client.structured_complete(
            instructions or DEFAULT_SCHEMA_INSTRUCTIONS,
            text,
            schema,
            model,
        )
    except ValueError as exc:
        raise ResolverError(f"Failed to process input: {exc}") from exc
    if parsed is None:
        raise ResolverError("Failed to parse the model's output according to the schema.")
    return parsed


async def process_input(
    value: Any,
    schema: Type[BaseModel] | None,
    client: ModelClient,
    *,
    model: str,
) -> Any:
    """
    Resolves a caller-supplied value into the declared input type. Strings are
    coerced through the model when a schema exists; structured values are
    validated directly.
    """
    if schema is None:
        return value
    if isinstance(value, str):
        try:
            return await get_structured_response(value, schema, client, model=model)
        except ResolverError as exc:
            raise CoercionError(f"Could not resolve input into {schema.__name__}: {exc}") from exc
    return validate_input(schema, value)
