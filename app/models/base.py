"""Shared base for file-persisted record models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """
    Base for all persisted record kinds.

    Attributes are snake_case in Python and camelCase on disk and on the wire
    (``api_key`` <-> ``apiKey``). Every record has an integer ``id`` and a
    unique ``username`` used as its file key.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: int = Field(ge=1)
    username: str = Field(min_length=1)

    @classmethod
    def defaults(cls) -> dict[str, Any]:
        """Documented per-field defaults, keyed by wire name (optional fields only)."""
        return {
            field.alias or name: field.default
            for name, field in cls.model_fields.items()
            if not field.is_required()
        }

    @classmethod
    def wire_key(cls, key: str) -> str | None:
        """Map a Python attribute name or wire name to the wire name; None if unknown."""
        for name, field in cls.model_fields.items():
            alias = field.alias or name
            if key in (name, alias):
                return alias
        return None

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys, as persisted and served."""
        return self.model_dump(by_alias=True)
