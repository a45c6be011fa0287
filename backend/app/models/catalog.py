from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from app.models.common import CamelModel
from app.models.enums import ListingStatus, ListingType


class Category(CamelModel):
    id: int
    name_en: str
    name_zh: str
    slug: str
    image: Optional[str] = None
    parent_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class Listing(CamelModel):
    id: int
    vendor_id: int
    category_id: Optional[int] = None
    title_en: str
    title_zh: str
    description_en: str
    description_zh: str
    price: float
    type: ListingType = ListingType.SERVICE
    status: ListingStatus = ListingStatus.PENDING
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    rejection_reason: Optional[str] = None
    delivery_instructions: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ListingCreateRequest(CamelModel):
    title_en: str = Field(..., min_length=1)
    title_zh: str = Field(..., min_length=1)
    description_en: str = Field(..., min_length=1)
    description_zh: str = Field(..., min_length=1)
    price: float = Field(..., gt=0)
    type: ListingType = ListingType.SERVICE
    category_id: Optional[int] = None
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    delivery_instructions: Optional[str] = None

    @field_validator("price")
    @classmethod
    def whole_cents(cls, v: float) -> float:
        # Prices are stored as NUMERIC(12, 2)
        if round(v, 2) != v:
            raise ValueError("price must have at most 2 decimal places")
        return v


class ListingReviewRequest(CamelModel):
    status: str
    rejection_reason: Optional[str] = None
