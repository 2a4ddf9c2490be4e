from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")

class ApiModel(BaseModel):
    """Base for every request and response body; JSON keys are camelCase."""
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

class DataResponse(BaseModel, Generic[T]):
    data: T
