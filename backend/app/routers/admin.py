"""Admin moderation queue and account management.

Every route depends on ``require_capability(Capability.MODERATE)``, so a
logged-in non-admin gets FORBIDDEN and an anonymous caller NOT_AUTHENTICATED.
"""
from fastapi import APIRouter, Depends

from app.models.comment import CommentReviewRequest
from app.models.catalog import ListingReviewRequest
from app.models.common import envelope
from app.models.user import AdminUserUpdateRequest, User, public_user
from app.models.vendor import VendorReviewRequest
from app.permissions import Capability
from app.services import moderation
from app.services.auth import require_capability
from app.services.database import get_storage
from app.services.orders import refund_order
from app.services.payment_provider import PaymentProvider, get_payment_provider
from app.services.storage import MarketplaceStorage

router = APIRouter(prefix="/api/admin", tags=["admin"])

require_admin = require_capability(Capability.MODERATE)


@router.get("/vendors/pending")
async def pending_vendors(
    admin: User = Depends(require_admin),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope(storage.get_pending_vendors())


@router.patch("/vendors/{vendor_id}")
async def review_vendor(
    vendor_id: int,
    payload: VendorReviewRequest,
    admin: User = Depends(require_admin),
    storage: MarketplaceStorage = Depends(get_storage),
):
    vendor = moderation.review_vendor(storage, vendor_id, payload.verification_status, payload.rejection_reason)
    return envelope(vendor)


@router.get("/listings/pending")
async def pending_listings(
    admin: User = Depends(require_admin),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope(storage.get_pending_listings())


@router.patch("/listings/{listing_id}")
async def review_listing(
    listing_id: int,
    payload: ListingReviewRequest,
    admin: User = Depends(require_admin),
    storage: MarketplaceStorage = Depends(get_storage),
):
    listing = moderation.review_listing(storage, listing_id, payload.status, payload.rejection_reason)
    return envelope(listing)


@router.get("/comments/pending")
async def pending_comments(
    admin: User = Depends(require_admin),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope(storage.get_pending_comments())


@router.patch("/comments/{comment_id}")
async def review_comment(
    comment_id: int,
    payload: CommentReviewRequest,
    admin: User = Depends(require_admin),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope(moderation.review_comment(storage, comment_id, payload.status))


@router.get("/users")
async def list_users(
    admin: User = Depends(require_admin),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope([public_user(u) for u in storage.list_users()])


@router.patch("/users/{user_id}")
async def update_user_status(
    user_id: int,
    payload: AdminUserUpdateRequest,
    admin: User = Depends(require_admin),
    storage: MarketplaceStorage = Depends(get_storage),
):
    user = moderation.set_user_status(storage, admin, user_id, payload.status)
    return envelope(public_user(user))


@router.post("/orders/{order_id}/refund")
async def refund(
    order_id: int,
    admin: User = Depends(require_admin),
    storage: MarketplaceStorage = Depends(get_storage),
    provider: PaymentProvider = Depends(get_payment_provider),
):
    return envelope(refund_order(storage, provider, order_id))
