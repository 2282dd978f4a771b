from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys (kubectl JSON, summary files, API)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        """Serialize with camelCase keys, two-space indent."""
        return self.model_dump_json(by_alias=True, indent=2)
