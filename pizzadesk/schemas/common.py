"""
Shared schema building blocks
The HTTP surface speaks camelCase JSON; python code keeps snake_case names.
"""
from datetime import datetime
from typing import Annotated
from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from pizzadesk.database.base import as_utc


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class MessageResponse(BaseModel):
    message: str
