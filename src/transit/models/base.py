"""Shared pydantic base for Campus Transit records and API payloads."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TransitModel(BaseModel):
    """Snake_case fields for storage, camelCase aliases on the wire.

    Records are persisted with ``model_dump(mode="json")`` and returned to
    clients with ``by_alias=True``; either spelling is accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
