"""Public catalog reads plus listing comments.

Only ACTIVE listings are reachable anonymously. ``GET /api/listings/{id}``
additionally lets a listing's own vendor and admins see it while it is
pending or rejected.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.errors import NotFound, ValidationFailed
from app.models.comment import CommentCreateRequest
from app.models.common import envelope
from app.models.enums import CommentStatus, ListingStatus
from app.models.user import User
from app.permissions import Capability
from app.services.auth import get_optional_user, require_capability
from app.services.database import get_storage
from app.services.moderation import listing_visible_to
from app.services.storage import MarketplaceStorage
from app.utils.logger import logger

router = APIRouter(prefix="/api/listings", tags=["listings"])


@router.get("")
async def list_listings(
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope(storage.get_active_listings(limit=limit, offset=offset))


@router.get("/featured")
async def featured_listings(
    limit: int = Query(8, ge=1, le=50),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope(storage.get_featured_listings(limit=limit))


@router.get("/top-rated")
async def top_rated_listings(
    limit: int = Query(4, ge=1, le=50),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope(storage.get_top_rated_listings(limit=limit))


@router.get("/search")
async def search_listings(
    q: str = Query("", max_length=200),
    storage: MarketplaceStorage = Depends(get_storage),
):
    query = q.strip()
    if not query:
        return envelope([])
    return envelope(storage.search_listings(query))


@router.get("/category/{category_id}")
async def listings_by_category(category_id: int, storage: MarketplaceStorage = Depends(get_storage)):
    return envelope(storage.get_listings_by_category(category_id))


@router.get("/{listing_id}")
async def get_listing(
    listing_id: int,
    user: Optional[User] = Depends(get_optional_user),
    storage: MarketplaceStorage = Depends(get_storage),
):
    listing = storage.get_listing(listing_id)
    if listing is None or not listing_visible_to(storage, listing, user):
        raise NotFound("Listing not found")
    return envelope(listing)


@router.get("/{listing_id}/comments")
async def listing_comments(listing_id: int, storage: MarketplaceStorage = Depends(get_storage)):
    listing = storage.get_listing(listing_id)
    if listing is None or listing.status != ListingStatus.ACTIVE:
        raise NotFound("Listing not found")
    return envelope(storage.get_comments_by_listing_id(listing_id))


@router.get("/{listing_id}/rating")
async def listing_rating(listing_id: int, storage: MarketplaceStorage = Depends(get_storage)):
    listing = storage.get_listing(listing_id)
    if listing is None or listing.status != ListingStatus.ACTIVE:
        raise NotFound("Listing not found")
    return envelope(storage.get_listing_rating_summary(listing_id))


@router.post("/{listing_id}/comments", status_code=status.HTTP_201_CREATED)
async def create_comment(
    listing_id: int,
    payload: CommentCreateRequest,
    user: User = Depends(require_capability(Capability.COMMENT)),
    storage: MarketplaceStorage = Depends(get_storage),
):
    listing = storage.get_listing(listing_id)
    if listing is None:
        raise NotFound("Listing not found")
    if listing.status != ListingStatus.ACTIVE:
        raise ValidationFailed("Comments are only accepted on active listings")

    comment = storage.create_comment({
        "user_id": user.id,
        "listing_id": listing_id,
        "content": payload.content.strip(),
        "rating": payload.rating,
        "status": CommentStatus.PENDING,
    })
    logger.info(f"Comment {comment.id} submitted on listing {listing_id} by user {user.id}")
    return envelope(comment)
