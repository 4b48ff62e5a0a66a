"""
Shared model base - snake_case attributes, camelCase JSON.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys (the frontend's wire format)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
