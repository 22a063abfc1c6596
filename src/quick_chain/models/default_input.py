"""Input schema used when a pipeline declares none."""

from __future__ import annotations

from pydantic import BaseModel


class DefaultInput(BaseModel):
    input: str
