from datetime import datetime
from typing import Optional

from pydantic import Field

from app.models.catalog import Listing
from app.models.common import CamelModel
from app.models.enums import CommentStatus


class Comment(CamelModel):
    id: int
    user_id: int
    listing_id: int
    content: str
    rating: int = Field(..., ge=1, le=5)
    status: CommentStatus = CommentStatus.PENDING
    created_at: datetime
    updated_at: datetime


class CommentCreateRequest(CamelModel):
    content: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)


class CommentReviewRequest(CamelModel):
    status: str


class RatingSummary(CamelModel):
    listing_id: int
    average: Optional[float] = None
    count: int = 0


class UserSavedListing(CamelModel):
    id: int
    user_id: int
    listing_id: int
    saved_at: datetime


class FavoriteWithListing(UserSavedListing):
    listing: Optional[Listing] = None
