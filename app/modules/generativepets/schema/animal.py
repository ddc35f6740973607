from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, HttpUrl

from .base import CamelModel


class AnimalCreateRequest(CamelModel):
    species: str
    name: str
    age_months: int = Field(ge=0, strict=True)
    size: str
    description: str
    breed: Optional[str] = None
    sex: Optional[str] = None
    image_url: Optional[HttpUrl] = None
    good_with_kids: Optional[bool] = None
    good_with_pets: Optional[bool] = None
    hypoallergenic: Optional[bool] = None
    energy_level: str

    def to_row(self) -> dict:
        """Column values; unset optionals fall back to the table defaults."""
        row = self.model_dump(exclude_none=True)
        if self.image_url is not None:
            row["image_url"] = str(self.image_url)
        return row


class AnimalResponse(CamelModel):
    id: str
    species: str
    name: str
    breed: Optional[str] = None
    age_months: int
    sex: Optional[str] = None
    size: str
    good_with_kids: bool
    good_with_pets: bool
    hypoallergenic: bool
    energy_level: str
    description: str
    image_url: Optional[str] = None
    created_at: datetime
