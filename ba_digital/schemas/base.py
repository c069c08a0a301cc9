"""
Base Pydantic Schemas
=====================

Base class dan helper umum untuk semua schema (Pydantic V2).
"""

from pydantic import BaseModel, ConfigDict, model_validator
from typing import Any


class BaseSchema(BaseModel):
    """Base schema: baca dari dict/ORM, abaikan field asing, strip whitespace."""

    model_config = ConfigDict(
        from_attributes=True,
        extra='ignore',
        use_enum_values=True,
        validate_default=True,
    )

    @model_validator(mode='before')
    @classmethod
    def strip_whitespace(cls, data: Any) -> Any:
        """Strip whitespace dari string fields sebelum validasi."""
        if isinstance(data, dict):
            return {key: value.strip() if isinstance(value, str) else value
                    for key, value in data.items()}
        return data
