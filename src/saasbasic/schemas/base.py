from __future__ import annotations
from pydantic import BaseModel, ConfigDict


class APIModel(BaseModel):
    # from_attributes lets handlers return ORM rows or engine models directly
    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
        populate_by_name=True,
    )
