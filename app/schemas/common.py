"""Shared response envelopes and camelCase base model."""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Generic, TypeVar

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: {"ok": true, "data": ...}."""

    ok: bool = True
    data: T


class ApiMessageResponse(ApiResponse[T], Generic[T]):
    """Success envelope with a human-readable message for the customer."""

    message: str
