"""Storage interface shared by the in-memory and SQL backends.

Routers and services only talk to ``MarketplaceStorage``; which backend sits
behind it is decided once in ``app.services.database``. Create methods take a
dict of column values and return the stored record; update methods take a
dict of changed columns and return the updated record, or ``None`` when the
row does not exist.

Business filters live here too, because both backends must agree on them:

- "active" listings are ``status == ACTIVE``; public listing reads go through
  those accessors only.
- "pending" vendors / listings / comments are ``status == PENDING``.
- ``search_listings`` is a case-insensitive substring match over the four
  bilingual title/description fields, restricted to ACTIVE listings.
- featured = newest ACTIVE listings; top rated = ACTIVE listings ordered by
  average approved rating, then approved comment count, then newest.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from app.models.catalog import Category, Listing
from app.models.comment import Comment, RatingSummary, UserSavedListing
from app.models.order import Order, OrderItem, Payment
from app.models.user import Session, User
from app.models.vendor import VendorProfile

SEARCH_FIELDS = ("title_en", "title_zh", "description_en", "description_zh")


class MarketplaceStorage:
    """Abstract CRUD accessors. Concrete backends override every method."""

    backend_name = "abstract"

    # Users
    def get_user(self, user_id: int) -> Optional[User]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_user_by_email(self, email: str) -> Optional[User]:  # pragma: no cover - interface
        raise NotImplementedError

    def create_user(self, data: Dict[str, Any]) -> User:  # pragma: no cover - interface
        raise NotImplementedError

    def update_user(self, user_id: int, updates: Dict[str, Any]) -> Optional[User]:  # pragma: no cover - interface
        raise NotImplementedError

    def list_users(self) -> List[User]:  # pragma: no cover - interface
        raise NotImplementedError

    # Vendors
    def get_vendor_profile(self, vendor_id: int) -> Optional[VendorProfile]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_vendor_profile_by_user_id(self, user_id: int) -> Optional[VendorProfile]:  # pragma: no cover - interface
        """Return the user's current (newest) vendor profile."""
        raise NotImplementedError

    def create_vendor_profile(self, data: Dict[str, Any]) -> VendorProfile:  # pragma: no cover - interface
        raise NotImplementedError

    def update_vendor_profile(self, vendor_id: int, updates: Dict[str, Any]) -> Optional[VendorProfile]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_pending_vendors(self) -> List[VendorProfile]:  # pragma: no cover - interface
        raise NotImplementedError

    # Listings
    def get_listing(self, listing_id: int) -> Optional[Listing]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_listings_by_vendor_id(self, vendor_id: int) -> List[Listing]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_listings_by_category(self, category_id: int) -> List[Listing]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_active_listings(self, limit: Optional[int] = None, offset: int = 0) -> List[Listing]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_featured_listings(self, limit: Optional[int] = None) -> List[Listing]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_top_rated_listings(self, limit: Optional[int] = None) -> List[Listing]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_pending_listings(self) -> List[Listing]:  # pragma: no cover - interface
        raise NotImplementedError

    def search_listings(self, query: str) -> List[Listing]:  # pragma: no cover - interface
        raise NotImplementedError

    def create_listing(self, data: Dict[str, Any]) -> Listing:  # pragma: no cover - interface
        raise NotImplementedError

    def update_listing(self, listing_id: int, updates: Dict[str, Any]) -> Optional[Listing]:  # pragma: no cover - interface
        raise NotImplementedError

    # Categories
    def get_category(self, category_id: int) -> Optional[Category]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_category_by_slug(self, slug: str) -> Optional[Category]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_all_categories(self) -> List[Category]:  # pragma: no cover - interface
        raise NotImplementedError

    def create_category(self, data: Dict[str, Any]) -> Category:  # pragma: no cover - interface
        raise NotImplementedError

    # Orders
    def get_order(self, order_id: int) -> Optional[Order]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_orders_by_user_id(self, user_id: int) -> List[Order]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_order_items_by_order_id(self, order_id: int) -> List[OrderItem]:  # pragma: no cover - interface
        raise NotImplementedError

    def create_order(self, data: Dict[str, Any]) -> Order:  # pragma: no cover - interface
        raise NotImplementedError

    def create_order_item(self, data: Dict[str, Any]) -> OrderItem:  # pragma: no cover - interface
        raise NotImplementedError

    def update_order_status(self, order_id: int, status: str) -> Optional[Order]:  # pragma: no cover - interface
        raise NotImplementedError

    # Payments
    def create_payment(self, data: Dict[str, Any]) -> Payment:  # pragma: no cover - interface
        """Store a payment. Raises ``PaymentExists`` if the order already has one."""
        raise NotImplementedError

    def get_payment_by_order_id(self, order_id: int) -> Optional[Payment]:  # pragma: no cover - interface
        raise NotImplementedError

    def update_payment(self, payment_id: int, updates: Dict[str, Any]) -> Optional[Payment]:  # pragma: no cover - interface
        raise NotImplementedError

    # Comments
    def get_comment(self, comment_id: int) -> Optional[Comment]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_comments_by_listing_id(self, listing_id: int) -> List[Comment]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_pending_comments(self) -> List[Comment]:  # pragma: no cover - interface
        raise NotImplementedError

    def create_comment(self, data: Dict[str, Any]) -> Comment:  # pragma: no cover - interface
        raise NotImplementedError

    def update_comment_status(self, comment_id: int, status: str) -> Optional[Comment]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_listing_rating_summary(self, listing_id: int) -> RatingSummary:  # pragma: no cover - interface
        raise NotImplementedError

    # Favorites
    def get_user_saved_listings(self, user_id: int) -> List[UserSavedListing]:  # pragma: no cover - interface
        raise NotImplementedError

    def create_user_saved_listing(self, user_id: int, listing_id: int) -> UserSavedListing:  # pragma: no cover - interface
        """Idempotent: an existing (user, listing) pair is returned unchanged."""
        raise NotImplementedError

    def delete_user_saved_listing(self, user_id: int, listing_id: int) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    # Sessions
    def create_session(self, sid: str, user_id: int, expires_at: datetime) -> Session:  # pragma: no cover - interface
        raise NotImplementedError

    def get_session(self, sid: str) -> Optional[Session]:  # pragma: no cover - interface
        raise NotImplementedError

    def delete_session(self, sid: str) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def purge_expired_sessions(self, now: datetime) -> int:  # pragma: no cover - interface
        raise NotImplementedError


def matches_query(listing: Listing, query: str) -> bool:
    needle = query.lower()
    return any(needle in (getattr(listing, f) or "").lower() for f in SEARCH_FIELDS)


def top_rated_sort_key(listing: Listing, summary: RatingSummary):
    """Sort key for descending top-rated order (use with ``reverse=True``)."""
    return (summary.average or 0.0, summary.count, listing.created_at, listing.id)
