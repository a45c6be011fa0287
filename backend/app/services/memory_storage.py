import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel

from app.errors import PaymentExists
from app.models.catalog import Category, Listing
from app.models.comment import Comment, RatingSummary, UserSavedListing
from app.models.enums import CommentStatus, ListingStatus, VendorVerificationStatus
from app.models.order import Order, OrderItem, Payment
from app.models.user import Session, User
from app.models.vendor import VendorProfile
from app.services.storage import MarketplaceStorage, matches_query, top_rated_sort_key
from app.utils.logger import logger

T = TypeVar("T", bound=BaseModel)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _newest_first(records: List[T], field: str = "created_at") -> List[T]:
    return sorted(records, key=lambda r: (getattr(r, field), r.id), reverse=True)


def _page(records: List[T], limit: Optional[int], offset: int = 0) -> List[T]:
    records = records[offset:]
    if limit is not None:
        records = records[:limit]
    return records


class _Table:
    """One id-keyed map plus its auto-increment counter."""

    def __init__(self, model: Type[T]):
        self.model = model
        self.rows: Dict[int, T] = {}
        self.next_id = 1

    def insert(self, data: Dict[str, Any], timestamps: bool = True) -> T:
        values = dict(data)
        values["id"] = self.next_id
        if timestamps:
            now = _utcnow()
            values.setdefault("created_at", now)
            values.setdefault("updated_at", now)
        record = self.model.model_validate(values)
        self.rows[record.id] = record
        self.next_id += 1
        return record

    def update(self, row_id: int, updates: Dict[str, Any], timestamps: bool = True) -> Optional[T]:
        existing = self.rows.get(row_id)
        if existing is None:
            return None
        values = {**existing.model_dump(), **updates}
        if timestamps:
            values["updated_at"] = _utcnow()
        record = self.model.model_validate(values)
        self.rows[row_id] = record
        return record

    def values(self) -> List[T]:
        return list(self.rows.values())


class MemoryStorage(MarketplaceStorage):
    """Dict-backed storage for development and tests.

    Data lives for the lifetime of the process. A single re-entrant lock
    serializes access because FastAPI runs sync handlers in a threadpool.
    """

    backend_name = "memory"

    def __init__(self):
        self._lock = threading.RLock()
        self.users = _Table(User)
        self.vendor_profiles = _Table(VendorProfile)
        self.categories = _Table(Category)
        self.listings = _Table(Listing)
        self.orders = _Table(Order)
        self.order_items = _Table(OrderItem)
        self.payments = _Table(Payment)
        self.comments = _Table(Comment)
        self.user_saved_listings = _Table(UserSavedListing)
        self.sessions: Dict[str, Session] = {}
        logger.info("Initialized in-memory storage")

    # Users
    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self.users.rows.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        needle = email.strip().lower()
        with self._lock:
            return next((u for u in self.users.values() if u.email.lower() == needle), None)

    def create_user(self, data: Dict[str, Any]) -> User:
        with self._lock:
            user = self.users.insert(data)
        logger.info(f"Created user id={user.id} role={user.role.value}")
        return user

    def update_user(self, user_id: int, updates: Dict[str, Any]) -> Optional[User]:
        with self._lock:
            return self.users.update(user_id, updates)

    def list_users(self) -> List[User]:
        with self._lock:
            return sorted(self.users.values(), key=lambda u: u.id)

    # Vendors
    def get_vendor_profile(self, vendor_id: int) -> Optional[VendorProfile]:
        with self._lock:
            return self.vendor_profiles.rows.get(vendor_id)

    def get_vendor_profile_by_user_id(self, user_id: int) -> Optional[VendorProfile]:
        with self._lock:
            profiles = [p for p in self.vendor_profiles.values() if p.user_id == user_id]
        return max(profiles, key=lambda p: p.id) if profiles else None

    def create_vendor_profile(self, data: Dict[str, Any]) -> VendorProfile:
        with self._lock:
            return self.vendor_profiles.insert(data)

    def update_vendor_profile(self, vendor_id: int, updates: Dict[str, Any]) -> Optional[VendorProfile]:
        with self._lock:
            return self.vendor_profiles.update(vendor_id, updates)

    def get_pending_vendors(self) -> List[VendorProfile]:
        with self._lock:
            return [
                p for p in self.vendor_profiles.values()
                if p.verification_status == VendorVerificationStatus.PENDING
            ]

    # Listings
    def _active(self) -> List[Listing]:
        return [l for l in self.listings.values() if l.status == ListingStatus.ACTIVE]

    def get_listing(self, listing_id: int) -> Optional[Listing]:
        with self._lock:
            return self.listings.rows.get(listing_id)

    def get_listings_by_vendor_id(self, vendor_id: int) -> List[Listing]:
        with self._lock:
            return _newest_first([l for l in self.listings.values() if l.vendor_id == vendor_id])

    def get_listings_by_category(self, category_id: int) -> List[Listing]:
        with self._lock:
            return _newest_first([l for l in self._active() if l.category_id == category_id])

    def get_active_listings(self, limit: Optional[int] = None, offset: int = 0) -> List[Listing]:
        with self._lock:
            return _page(_newest_first(self._active()), limit, offset)

    def get_featured_listings(self, limit: Optional[int] = None) -> List[Listing]:
        return self.get_active_listings(limit=limit)

    def get_top_rated_listings(self, limit: Optional[int] = None) -> List[Listing]:
        with self._lock:
            active = self._active()
            summaries = {l.id: self._rating_summary(l.id) for l in active}
        ranked = sorted(active, key=lambda l: top_rated_sort_key(l, summaries[l.id]), reverse=True)
        return _page(ranked, limit)

    def get_pending_listings(self) -> List[Listing]:
        with self._lock:
            return [l for l in self.listings.values() if l.status == ListingStatus.PENDING]

    def search_listings(self, query: str) -> List[Listing]:
        with self._lock:
            return _newest_first([l for l in self._active() if matches_query(l, query)])

    def create_listing(self, data: Dict[str, Any]) -> Listing:
        with self._lock:
            return self.listings.insert(data)

    def update_listing(self, listing_id: int, updates: Dict[str, Any]) -> Optional[Listing]:
        with self._lock:
            return self.listings.update(listing_id, updates)

    # Categories
    def get_category(self, category_id: int) -> Optional[Category]:
        with self._lock:
            return self.categories.rows.get(category_id)

    def get_category_by_slug(self, slug: str) -> Optional[Category]:
        with self._lock:
            return next((c for c in self.categories.values() if c.slug == slug), None)

    def get_all_categories(self) -> List[Category]:
        with self._lock:
            return sorted(self.categories.values(), key=lambda c: c.id)

    def create_category(self, data: Dict[str, Any]) -> Category:
        with self._lock:
            return self.categories.insert(data)

    # Orders
    def get_order(self, order_id: int) -> Optional[Order]:
        with self._lock:
            return self.orders.rows.get(order_id)

    def get_orders_by_user_id(self, user_id: int) -> List[Order]:
        with self._lock:
            return _newest_first([o for o in self.orders.values() if o.user_id == user_id])

    def get_order_items_by_order_id(self, order_id: int) -> List[OrderItem]:
        with self._lock:
            return sorted(
                (i for i in self.order_items.values() if i.order_id == order_id),
                key=lambda i: i.id,
            )

    def create_order(self, data: Dict[str, Any]) -> Order:
        with self._lock:
            return self.orders.insert(data)

    def create_order_item(self, data: Dict[str, Any]) -> OrderItem:
        with self._lock:
            return self.order_items.insert(data, timestamps=False)

    def update_order_status(self, order_id: int, status: str) -> Optional[Order]:
        with self._lock:
            return self.orders.update(order_id, {"status": status})

    # Payments
    def create_payment(self, data: Dict[str, Any]) -> Payment:
        with self._lock:
            if any(p.order_id == data["order_id"] for p in self.payments.values()):
                raise PaymentExists()
            return self.payments.insert(data)

    def get_payment_by_order_id(self, order_id: int) -> Optional[Payment]:
        with self._lock:
            return next((p for p in self.payments.values() if p.order_id == order_id), None)

    def update_payment(self, payment_id: int, updates: Dict[str, Any]) -> Optional[Payment]:
        with self._lock:
            return self.payments.update(payment_id, updates)

    # Comments
    def get_comment(self, comment_id: int) -> Optional[Comment]:
        with self._lock:
            return self.comments.rows.get(comment_id)

    def get_comments_by_listing_id(self, listing_id: int) -> List[Comment]:
        with self._lock:
            return _newest_first([
                c for c in self.comments.values()
                if c.listing_id == listing_id and c.status == CommentStatus.APPROVED
            ])

    def get_pending_comments(self) -> List[Comment]:
        with self._lock:
            return [c for c in self.comments.values() if c.status == CommentStatus.PENDING]

    def create_comment(self, data: Dict[str, Any]) -> Comment:
        with self._lock:
            return self.comments.insert(data)

    def update_comment_status(self, comment_id: int, status: str) -> Optional[Comment]:
        with self._lock:
            return self.comments.update(comment_id, {"status": status})

    def _rating_summary(self, listing_id: int) -> RatingSummary:
        ratings = [
            c.rating for c in self.comments.values()
            if c.listing_id == listing_id and c.status == CommentStatus.APPROVED
        ]
        if not ratings:
            return RatingSummary(listing_id=listing_id)
        return RatingSummary(
            listing_id=listing_id,
            average=round(sum(ratings) / len(ratings), 2),
            count=len(ratings),
        )

    def get_listing_rating_summary(self, listing_id: int) -> RatingSummary:
        with self._lock:
            return self._rating_summary(listing_id)

    # Favorites
    def get_user_saved_listings(self, user_id: int) -> List[UserSavedListing]:
        with self._lock:
            return _newest_first(
                [s for s in self.user_saved_listings.values() if s.user_id == user_id],
                field="saved_at",
            )

    def _find_saved(self, user_id: int, listing_id: int) -> Optional[UserSavedListing]:
        return next(
            (s for s in self.user_saved_listings.values()
             if s.user_id == user_id and s.listing_id == listing_id),
            None,
        )

    def create_user_saved_listing(self, user_id: int, listing_id: int) -> UserSavedListing:
        with self._lock:
            existing = self._find_saved(user_id, listing_id)
            if existing:
                return existing
            return self.user_saved_listings.insert(
                {"user_id": user_id, "listing_id": listing_id, "saved_at": _utcnow()},
                timestamps=False,
            )

    def delete_user_saved_listing(self, user_id: int, listing_id: int) -> bool:
        with self._lock:
            saved = self._find_saved(user_id, listing_id)
            if saved is None:
                return False
            del self.user_saved_listings.rows[saved.id]
            return True

    # Sessions
    def create_session(self, sid: str, user_id: int, expires_at: datetime) -> Session:
        session = Session(sid=sid, user_id=user_id, created_at=_utcnow(), expires_at=expires_at)
        with self._lock:
            self.sessions[sid] = session
        return session

    def get_session(self, sid: str) -> Optional[Session]:
        with self._lock:
            return self.sessions.get(sid)

    def delete_session(self, sid: str) -> bool:
        with self._lock:
            return self.sessions.pop(sid, None) is not None

    def purge_expired_sessions(self, now: datetime) -> int:
        with self._lock:
            expired = [sid for sid, s in self.sessions.items() if s.expires_at <= now]
            for sid in expired:
                del self.sessions[sid]
        return len(expired)
