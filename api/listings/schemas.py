"""
Pydantic schemas for listing endpoints.

JSON field names are camelCase (`categoryId`, `minPrice`, ...); the models
expose snake_case attributes and accept either spelling.
"""

from __future__ import annotations

import enum
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.schema import MAX_ID

MAX_PRICE = Decimal("999999.99")
MAX_PAGE_SIZE = 100


class ListingStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    SOLD = "SOLD"
    ARCHIVED = "ARCHIVED"


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class ListingCreate(_Schema):
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=2000)
    price: Decimal = Field(..., ge=0, le=MAX_PRICE, decimal_places=2)
    location: str = Field(..., min_length=2, max_length=100)
    category_id: int = Field(..., ge=1, le=MAX_ID, alias="categoryId")


class ListingUpdate(_Schema):
    """
    Partial update. Only the fields present in the request are applied.
    """

    title: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, min_length=10, max_length=2000)
    price: Decimal | None = Field(default=None, ge=0, le=MAX_PRICE, decimal_places=2)
    location: str | None = Field(default=None, min_length=2, max_length=100)
    category_id: int | None = Field(default=None, ge=1, le=MAX_ID, alias="categoryId")
    status: ListingStatus | None = None

    @model_validator(mode="after")
    def _check_fields(self) -> "ListingUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided.")
        for name in sorted(self.model_fields_set):
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null.")
        return self

    def changes(self) -> dict:
        """
        Column name -> new value, for the fields the caller sent.
        """
        data = self.model_dump(exclude_unset=True)
        if "status" in data:
            data["status"] = ListingStatus(data["status"]).value
        return data


class ListingFilters(_Schema):
    q: str | None = Field(default=None, max_length=100)
    category_id: int | None = Field(default=None, ge=1, le=MAX_ID, alias="categoryId")
    min_price: Decimal | None = Field(default=None, ge=0, alias="minPrice")
    max_price: Decimal | None = Field(default=None, ge=0, alias="maxPrice")
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=MAX_PAGE_SIZE, alias="pageSize")

    @field_validator("q", mode="after")
    @classmethod
    def _blank_query_is_absent(cls, value: str | None) -> str | None:
        return value or None

    @model_validator(mode="after")
    def _check_price_range(self) -> "ListingFilters":
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("minPrice cannot be greater than maxPrice.")
        return self
