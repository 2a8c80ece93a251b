"""DTOs for HTTP handler."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(_CamelModel):
    # Optional at the schema level so missing fields map to a 400, not a 422
    session_id: str | None = None
    scenario: str | None = None
    message: str | None = None


class CalcRequest(_CamelModel):
    type: str
    inputs: dict[str, Any] = Field(default_factory=dict)


class SessionInfo(_CamelModel):
    session_id: str
    scenario: str
    turns: int
    parameters: dict[str, float]
