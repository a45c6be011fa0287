"""Vendor onboarding, listing submission and admin moderation.

Three independent approve/reject workflows share one transition helper:

    vendor   PENDING -> APPROVED | REJECTED
    listing  PENDING -> ACTIVE   | REJECTED
    comment  PENDING -> APPROVED | REJECTED

REJECTED always needs a non-empty reason (comments excepted). Approving a
vendor promotes the owning user to VENDOR; a rejected vendor resubmits by
creating a new profile, the old one is left as history.
"""
from typing import Any, Dict, Optional, Set

from app.errors import (
    Forbidden,
    InvalidStatus,
    NotApproved,
    NotFound,
    ValidationFailed,
    VendorExists,
)
from app.models.catalog import Listing, ListingCreateRequest
from app.models.comment import Comment
from app.models.enums import (
    CommentStatus,
    ListingStatus,
    UserRole,
    UserStatus,
    VendorVerificationStatus,
)
from app.models.user import User
from app.models.vendor import VendorApplicationRequest, VendorProfile
from app.permissions import Capability, can
from app.services.storage import MarketplaceStorage
from app.utils.logger import logger

VENDOR_TRANSITIONS: Dict[str, Set[str]] = {
    "PENDING": {"APPROVED", "REJECTED"},
    "APPROVED": set(),
    "REJECTED": set(),
}

LISTING_TRANSITIONS: Dict[str, Set[str]] = {
    "DRAFT": set(),
    "PENDING": {"ACTIVE", "REJECTED"},
    "ACTIVE": set(),
    "INACTIVE": set(),
    "REJECTED": set(),
}

COMMENT_TRANSITIONS: Dict[str, Set[str]] = {
    "PENDING": {"APPROVED", "REJECTED"},
    "APPROVED": set(),
    "REJECTED": set(),
}

# Admin listing review accepts "APPROVED" as an alias for going live.
_LISTING_REVIEW_ALIASES = {"APPROVED": "ACTIVE", "ACTIVE": "ACTIVE", "REJECTED": "REJECTED"}


def _status_transition(current: Any, new_status: str, transitions: Dict[str, Set[str]], entity: str) -> str:
    """Validate a status change and return the normalized new status."""
    old = getattr(current, "value", current)
    new_status = (new_status or "").strip().upper()
    if new_status not in transitions:
        raise InvalidStatus(f"Invalid {entity} status '{new_status}'")
    if new_status not in transitions.get(old, set()):
        raise InvalidStatus(f"Transition from {old} to {new_status} is not allowed for {entity}")
    return new_status


def _require_reason(reason: Optional[str]) -> str:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationFailed("A rejection reason is required")
    return reason


# ---------------------------------------------------------------------------
# Vendor onboarding
# ---------------------------------------------------------------------------

def submit_vendor_application(
    storage: MarketplaceStorage, user: User, payload: VendorApplicationRequest
) -> VendorProfile:
    existing = storage.get_vendor_profile_by_user_id(user.id)
    if existing and existing.verification_status != VendorVerificationStatus.REJECTED:
        raise VendorExists()

    profile = storage.create_vendor_profile({
        **payload.model_dump(),
        "user_id": user.id,
        "verification_status": VendorVerificationStatus.PENDING,
        "rejection_reason": None,
    })
    if existing:
        logger.info(f"Vendor re-application user_id={user.id} previous_profile={existing.id} new_profile={profile.id}")
    else:
        logger.info(f"Vendor application user_id={user.id} profile={profile.id}")
    return profile


def review_vendor(
    storage: MarketplaceStorage, vendor_id: int, status: str, rejection_reason: Optional[str] = None
) -> VendorProfile:
    vendor = storage.get_vendor_profile(vendor_id)
    if vendor is None:
        raise NotFound("Vendor not found")

    new_status = _status_transition(vendor.verification_status, status, VENDOR_TRANSITIONS, "vendor")
    updates: Dict[str, Any] = {"verification_status": new_status, "rejection_reason": None}
    if new_status == VendorVerificationStatus.REJECTED:
        updates["rejection_reason"] = _require_reason(rejection_reason)

    updated = storage.update_vendor_profile(vendor_id, updates)

    if new_status == VendorVerificationStatus.APPROVED:
        owner = storage.get_user(vendor.user_id)
        if owner and owner.role != UserRole.ADMIN:
            storage.update_user(owner.id, {"role": UserRole.VENDOR})

    logger.info(f"Vendor {vendor_id} moderated: {vendor.verification_status.value} -> {new_status}")
    return updated


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

def get_approved_vendor(storage: MarketplaceStorage, user: User) -> VendorProfile:
    vendor = storage.get_vendor_profile_by_user_id(user.id)
    if vendor is None:
        raise NotFound("Vendor profile not found")
    if vendor.verification_status != VendorVerificationStatus.APPROVED:
        raise NotApproved()
    return vendor


def submit_listing(storage: MarketplaceStorage, user: User, payload: ListingCreateRequest) -> Listing:
    vendor = get_approved_vendor(storage, user)
    if not can(user, Capability.MANAGE_LISTINGS, vendor):
        raise Forbidden()
    if payload.category_id is not None and storage.get_category(payload.category_id) is None:
        raise ValidationFailed(f"Category {payload.category_id} does not exist")

    listing = storage.create_listing({
        **payload.model_dump(),
        "vendor_id": vendor.id,
        "status": ListingStatus.PENDING,
        "rejection_reason": None,
    })
    logger.info(f"Listing {listing.id} submitted by vendor {vendor.id}")
    return listing


def review_listing(
    storage: MarketplaceStorage, listing_id: int, status: str, rejection_reason: Optional[str] = None
) -> Listing:
    listing = storage.get_listing(listing_id)
    if listing is None:
        raise NotFound("Listing not found")

    requested = (status or "").strip().upper()
    if requested not in _LISTING_REVIEW_ALIASES:
        raise InvalidStatus("Invalid listing status")
    new_status = _status_transition(
        listing.status, _LISTING_REVIEW_ALIASES[requested], LISTING_TRANSITIONS, "listing"
    )

    updates: Dict[str, Any] = {"status": new_status, "rejection_reason": None}
    if new_status == ListingStatus.REJECTED:
        updates["rejection_reason"] = _require_reason(rejection_reason)

    updated = storage.update_listing(listing_id, updates)
    logger.info(f"Listing {listing_id} moderated: {listing.status.value} -> {new_status}")
    return updated


def listing_visible_to(storage: MarketplaceStorage, listing: Listing, user: Optional[User]) -> bool:
    """ACTIVE listings are public; others only to their vendor and admins."""
    if listing.status == ListingStatus.ACTIVE:
        return True
    if user is None:
        return False
    if can(user, Capability.MODERATE):
        return True
    vendor = storage.get_vendor_profile(listing.vendor_id)
    return vendor is not None and vendor.user_id == user.id


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

def review_comment(storage: MarketplaceStorage, comment_id: int, status: str) -> Comment:
    comment = storage.get_comment(comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    new_status = _status_transition(comment.status, status, COMMENT_TRANSITIONS, "comment")
    updated = storage.update_comment_status(comment_id, new_status)
    logger.info(f"Comment {comment_id} moderated: {comment.status.value} -> {new_status}")
    return updated


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def set_user_status(storage: MarketplaceStorage, admin: User, user_id: int, status: str) -> User:
    try:
        new_status = UserStatus((status or "").strip().upper())
    except ValueError:
        raise InvalidStatus(f"Invalid user status '{status}'")
    if user_id == admin.id and new_status != UserStatus.ACTIVE:
        raise InvalidStatus("Admins cannot deactivate their own account")

    updated = storage.update_user(user_id, {"status": new_status})
    if updated is None:
        raise NotFound("User not found")
    logger.info(f"Admin {admin.id} set user {user_id} status to {new_status.value}")
    return updated
