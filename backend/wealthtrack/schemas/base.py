# backend/wealthtrack/schemas/base.py
"""
Shared pieces of the API schemas.

The web client speaks camelCase JSON and reads money as plain numbers,
so every request/response model derives from CamelModel and every
Decimal amount is declared as Money.
"""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Decimal internally, JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Accepts both snake_case and camelCase input; serializes to camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
