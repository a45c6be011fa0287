from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every API-facing model.

    Python code uses snake_case attributes; JSON on the wire is camelCase.
    Either spelling is accepted on input. ``from_attributes`` lets the SQL
    backend validate ORM rows directly.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def envelope(data: Any) -> dict:
    return {"success": True, "data": jsonable_encoder(data, by_alias=True)}
