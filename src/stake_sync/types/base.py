"""Pydantic bases shared by stake records and settings."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Snake_case fields in Python, camelCase keys on the wire.

    ``start_block`` serializes as ``startBlock``, the shape consumers of the
    active stakes endpoint already read. Both spellings are accepted on
    input, so YAML settings may use either.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
    )

    def copy(self: Self, **kwargs: Any) -> Self:
        """Return a re-validated copy with some fields replaced."""
        return self.__class__(**(self.model_dump(exclude_unset=True) | kwargs))


class StrictBaseModel(CamelModel):
    """Immutable model that rejects unknown keys and type coercion."""

    model_config = CamelModel.model_config | {
        "extra": "forbid",
        "frozen": True,
        "strict": True,
    }
