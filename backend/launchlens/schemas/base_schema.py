from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ResultModel(BaseModel):
    """Immutable value object serialized with camelCase keys.

    Fields are declared in snake_case and accepted under either name;
    ``model_dump(by_alias=True)`` produces the caller-facing JSON shape.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
