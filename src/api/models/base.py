from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys, matching the mobile client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OperationResult(CamelModel):
    success: bool
    error: str | None = None
    code: str | None = None
