"""Shared request/response model base and envelope helpers."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model exchanged with clients in camelCase.

    Snake-case field names are accepted on input too.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def dump(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def envelope(message: str, data: Any = None, **extra: Any) -> dict[str, Any]:
    """Single-object or aggregate response body."""
    body: dict[str, Any] = {"message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body
