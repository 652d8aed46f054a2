from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored instants are naive UTC; convert aware input before comparing."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase on input, serializes camelCase."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        use_enum_values = True
