"""Shared base for rows read back from the stores."""

from datetime import datetime
from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field

RowModel = TypeVar("RowModel", bound="DBModel")


class DBModel(BaseModel):
    """A stored record: surrogate key plus store-managed timestamps."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: Optional[int] = Field(None, description="Surrogate key assigned by the store")
    created_at: Optional[datetime] = Field(None, description="Set once on insert")
    updated_at: Optional[datetime] = Field(None, description="Bumped on every write")

    @classmethod
    def from_row(cls: Type[RowModel], row: Optional[Mapping[str, Any]]) -> Optional[RowModel]:
        """Build a model from a ``dict_row`` result, passing ``None`` through."""
        if row is None:
            return None
        return cls.model_validate(dict(row))
