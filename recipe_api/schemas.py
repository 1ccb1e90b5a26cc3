"""
Request body models.
"""

from __future__ import annotations

from typing import Any, Type, TypeVar

import pydantic
from pydantic import BaseModel, Field

from .errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class Credentials(BaseModel):
    username: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=1, max_length=72)


class RecipePayload(BaseModel):
    name: str = Field(..., min_length=1)
    instructions: list[str] = Field(default_factory=list)
    ingredients: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


def parse_payload(model: Type[ModelT], data: Any) -> ModelT:
    """Validate a decoded JSON body or raise :class:`ValidationError`."""
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        # First error is enough for the client to fix the request.
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"{location}: {first.get('msg')}" if location else first.get("msg")) from exc
