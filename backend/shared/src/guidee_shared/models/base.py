"""Base model with camelCase JSON aliases.

The web client speaks camelCase (``orderNumber``, ``createdAt``); Python code
uses snake_case. Models accept either on input and dump by alias for the API.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """BaseModel that serializes field names as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
