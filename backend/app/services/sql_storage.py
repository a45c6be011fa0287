from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from app.errors import PaymentExists
from app.models.catalog import Category, Listing
from app.models.comment import Comment, RatingSummary, UserSavedListing
from app.models.enums import CommentStatus, ListingStatus, VendorVerificationStatus
from app.models.order import Order, OrderItem, Payment
from app.models.user import Session, User
from app.models.vendor import VendorProfile
from app.models_sqlalchemy import Base, make_engine, make_session_factory
from app.models_sqlalchemy.models import (
    Category as CategoryDB,
    Comment as CommentDB,
    Listing as ListingDB,
    Order as OrderDB,
    OrderItem as OrderItemDB,
    Payment as PaymentDB,
    Session as SessionDB,
    User as UserDB,
    UserSavedListing as UserSavedListingDB,
    VendorProfile as VendorProfileDB,
)
from app.services.storage import SEARCH_FIELDS, MarketplaceStorage
from app.utils.logger import logger


def _plain(data: Dict[str, Any]) -> Dict[str, Any]:
    """Enum members -> their string values, ready for String columns."""
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}


class SqlStorage(MarketplaceStorage):
    """SQLAlchemy-backed storage (PostgreSQL in production, SQLite in tests).

    Every accessor runs in its own short-lived ORM session that is committed
    on success and rolled back on error. Records are converted to the
    pydantic models before the session closes.
    """

    backend_name = "sql"

    def __init__(self, database_url: str, create_tables: bool = True, echo: bool = False):
        self.engine = make_engine(database_url, echo=echo)
        self.SessionLocal = make_session_factory(self.engine)
        if create_tables:
            Base.metadata.create_all(bind=self.engine)
        logger.info(f"Initialized SQL storage dialect={self.engine.dialect.name}")

    @contextmanager
    def _session(self) -> Iterator[DBSession]:
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _insert(self, orm_cls, model_cls, data: Dict[str, Any]):
        with self._session() as db:
            row = orm_cls(**_plain(data))
            db.add(row)
            db.flush()
            db.refresh(row)
            return model_cls.model_validate(row)

    def _update(self, orm_cls, model_cls, row_id: int, updates: Dict[str, Any]):
        with self._session() as db:
            row = db.get(orm_cls, row_id)
            if row is None:
                return None
            for key, value in _plain(updates).items():
                if hasattr(row, key):
                    setattr(row, key, value)
            db.flush()
            db.refresh(row)
            return model_cls.model_validate(row)

    def _get(self, orm_cls, model_cls, row_id: int):
        with self._session() as db:
            row = db.get(orm_cls, row_id)
            return model_cls.model_validate(row) if row is not None else None

    # Users
    def get_user(self, user_id: int) -> Optional[User]:
        return self._get(UserDB, User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._session() as db:
            row = db.query(UserDB).filter(func.lower(UserDB.email) == email.strip().lower()).first()
            return User.model_validate(row) if row else None

    def create_user(self, data: Dict[str, Any]) -> User:
        user = self._insert(UserDB, User, data)
        logger.info(f"Created user id={user.id} role={user.role.value}")
        return user

    def update_user(self, user_id: int, updates: Dict[str, Any]) -> Optional[User]:
        return self._update(UserDB, User, user_id, updates)

    def list_users(self) -> List[User]:
        with self._session() as db:
            return [User.model_validate(r) for r in db.query(UserDB).order_by(UserDB.id.asc()).all()]

    # Vendors
    def get_vendor_profile(self, vendor_id: int) -> Optional[VendorProfile]:
        return self._get(VendorProfileDB, VendorProfile, vendor_id)

    def get_vendor_profile_by_user_id(self, user_id: int) -> Optional[VendorProfile]:
        with self._session() as db:
            row = (
                db.query(VendorProfileDB)
                .filter(VendorProfileDB.user_id == user_id)
                .order_by(VendorProfileDB.id.desc())
                .first()
            )
            return VendorProfile.model_validate(row) if row else None

    def create_vendor_profile(self, data: Dict[str, Any]) -> VendorProfile:
        return self._insert(VendorProfileDB, VendorProfile, data)

    def update_vendor_profile(self, vendor_id: int, updates: Dict[str, Any]) -> Optional[VendorProfile]:
        return self._update(VendorProfileDB, VendorProfile, vendor_id, updates)

    def get_pending_vendors(self) -> List[VendorProfile]:
        with self._session() as db:
            rows = (
                db.query(VendorProfileDB)
                .filter(VendorProfileDB.verification_status == VendorVerificationStatus.PENDING.value)
                .order_by(VendorProfileDB.id.asc())
                .all()
            )
            return [VendorProfile.model_validate(r) for r in rows]

    # Listings
    @staticmethod
    def _newest(query):
        return query.order_by(ListingDB.created_at.desc(), ListingDB.id.desc())

    def _active_query(self, db: DBSession):
        return db.query(ListingDB).filter(ListingDB.status == ListingStatus.ACTIVE.value)

    def get_listing(self, listing_id: int) -> Optional[Listing]:
        return self._get(ListingDB, Listing, listing_id)

    def get_listings_by_vendor_id(self, vendor_id: int) -> List[Listing]:
        with self._session() as db:
            rows = self._newest(db.query(ListingDB).filter(ListingDB.vendor_id == vendor_id)).all()
            return [Listing.model_validate(r) for r in rows]

    def get_listings_by_category(self, category_id: int) -> List[Listing]:
        with self._session() as db:
            rows = self._newest(self._active_query(db).filter(ListingDB.category_id == category_id)).all()
            return [Listing.model_validate(r) for r in rows]

    def get_active_listings(self, limit: Optional[int] = None, offset: int = 0) -> List[Listing]:
        with self._session() as db:
            query = self._newest(self._active_query(db)).offset(offset)
            if limit is not None:
                query = query.limit(limit)
            return [Listing.model_validate(r) for r in query.all()]

    def get_featured_listings(self, limit: Optional[int] = None) -> List[Listing]:
        return self.get_active_listings(limit=limit)

    def get_top_rated_listings(self, limit: Optional[int] = None) -> List[Listing]:
        with self._session() as db:
            ratings = (
                db.query(
                    CommentDB.listing_id.label("listing_id"),
                    func.avg(CommentDB.rating).label("avg_rating"),
                    func.count(CommentDB.id).label("n_ratings"),
                )
                .filter(CommentDB.status == CommentStatus.APPROVED.value)
                .group_by(CommentDB.listing_id)
                .subquery()
            )
            query = (
                self._active_query(db)
                .outerjoin(ratings, ratings.c.listing_id == ListingDB.id)
                .order_by(
                    func.coalesce(ratings.c.avg_rating, 0).desc(),
                    func.coalesce(ratings.c.n_ratings, 0).desc(),
                    ListingDB.created_at.desc(),
                    ListingDB.id.desc(),
                )
            )
            if limit is not None:
                query = query.limit(limit)
            return [Listing.model_validate(r) for r in query.all()]

    def get_pending_listings(self) -> List[Listing]:
        with self._session() as db:
            rows = (
                db.query(ListingDB)
                .filter(ListingDB.status == ListingStatus.PENDING.value)
                .order_by(ListingDB.id.asc())
                .all()
            )
            return [Listing.model_validate(r) for r in rows]

    def search_listings(self, query: str) -> List[Listing]:
        needle = query.lower()
        with self._session() as db:
            conditions = [
                func.lower(getattr(ListingDB, field)).contains(needle, autoescape=True)
                for field in SEARCH_FIELDS
            ]
            rows = self._newest(self._active_query(db).filter(or_(*conditions))).all()
            return [Listing.model_validate(r) for r in rows]

    def create_listing(self, data: Dict[str, Any]) -> Listing:
        return self._insert(ListingDB, Listing, data)

    def update_listing(self, listing_id: int, updates: Dict[str, Any]) -> Optional[Listing]:
        return self._update(ListingDB, Listing, listing_id, updates)

    # Categories
    def get_category(self, category_id: int) -> Optional[Category]:
        return self._get(CategoryDB, Category, category_id)

    def get_category_by_slug(self, slug: str) -> Optional[Category]:
        with self._session() as db:
            row = db.query(CategoryDB).filter(CategoryDB.slug == slug).first()
            return Category.model_validate(row) if row else None

    def get_all_categories(self) -> List[Category]:
        with self._session() as db:
            return [Category.model_validate(r) for r in db.query(CategoryDB).order_by(CategoryDB.id.asc()).all()]

    def create_category(self, data: Dict[str, Any]) -> Category:
        return self._insert(CategoryDB, Category, data)

    # Orders
    def get_order(self, order_id: int) -> Optional[Order]:
        return self._get(OrderDB, Order, order_id)

    def get_orders_by_user_id(self, user_id: int) -> List[Order]:
        with self._session() as db:
            rows = (
                db.query(OrderDB)
                .filter(OrderDB.user_id == user_id)
                .order_by(OrderDB.created_at.desc(), OrderDB.id.desc())
                .all()
            )
            return [Order.model_validate(r) for r in rows]

    def get_order_items_by_order_id(self, order_id: int) -> List[OrderItem]:
        with self._session() as db:
            rows = db.query(OrderItemDB).filter(OrderItemDB.order_id == order_id).order_by(OrderItemDB.id.asc()).all()
            return [OrderItem.model_validate(r) for r in rows]

    def create_order(self, data: Dict[str, Any]) -> Order:
        return self._insert(OrderDB, Order, data)

    def create_order_item(self, data: Dict[str, Any]) -> OrderItem:
        return self._insert(OrderItemDB, OrderItem, data)

    def update_order_status(self, order_id: int, status: str) -> Optional[Order]:
        return self._update(OrderDB, Order, order_id, {"status": status})

    # Payments
    def create_payment(self, data: Dict[str, Any]) -> Payment:
        if self.get_payment_by_order_id(data["order_id"]) is not None:
            raise PaymentExists()
        try:
            return self._insert(PaymentDB, Payment, data)
        except IntegrityError:
            # Lost a race against a concurrent payment for the same order.
            logger.warning(f"Duplicate payment rejected by unique constraint order_id={data['order_id']}")
            raise PaymentExists()

    def get_payment_by_order_id(self, order_id: int) -> Optional[Payment]:
        with self._session() as db:
            row = db.query(PaymentDB).filter(PaymentDB.order_id == order_id).first()
            return Payment.model_validate(row) if row else None

    def update_payment(self, payment_id: int, updates: Dict[str, Any]) -> Optional[Payment]:
        return self._update(PaymentDB, Payment, payment_id, updates)

    # Comments
    def get_comment(self, comment_id: int) -> Optional[Comment]:
        return self._get(CommentDB, Comment, comment_id)

    def get_comments_by_listing_id(self, listing_id: int) -> List[Comment]:
        with self._session() as db:
            rows = (
                db.query(CommentDB)
                .filter(
                    CommentDB.listing_id == listing_id,
                    CommentDB.status == CommentStatus.APPROVED.value,
                )
                .order_by(CommentDB.created_at.desc(), CommentDB.id.desc())
                .all()
            )
            return [Comment.model_validate(r) for r in rows]

    def get_pending_comments(self) -> List[Comment]:
        with self._session() as db:
            rows = (
                db.query(CommentDB)
                .filter(CommentDB.status == CommentStatus.PENDING.value)
                .order_by(CommentDB.id.asc())
                .all()
            )
            return [Comment.model_validate(r) for r in rows]

    def create_comment(self, data: Dict[str, Any]) -> Comment:
        return self._insert(CommentDB, Comment, data)

    def update_comment_status(self, comment_id: int, status: str) -> Optional[Comment]:
        return self._update(CommentDB, Comment, comment_id, {"status": status})

    def get_listing_rating_summary(self, listing_id: int) -> RatingSummary:
        with self._session() as db:
            avg_rating, n_ratings = (
                db.query(func.avg(CommentDB.rating), func.count(CommentDB.id))
                .filter(
                    CommentDB.listing_id == listing_id,
                    CommentDB.status == CommentStatus.APPROVED.value,
                )
                .one()
            )
        if not n_ratings:
            return RatingSummary(listing_id=listing_id)
        return RatingSummary(listing_id=listing_id, average=round(float(avg_rating), 2), count=n_ratings)

    # Favorites
    def get_user_saved_listings(self, user_id: int) -> List[UserSavedListing]:
        with self._session() as db:
            rows = (
                db.query(UserSavedListingDB)
                .filter(UserSavedListingDB.user_id == user_id)
                .order_by(UserSavedListingDB.saved_at.desc(), UserSavedListingDB.id.desc())
                .all()
            )
            return [UserSavedListing.model_validate(r) for r in rows]

    def _find_saved(self, user_id: int, listing_id: int) -> Optional[UserSavedListing]:
        with self._session() as db:
            row = (
                db.query(UserSavedListingDB)
                .filter(
                    UserSavedListingDB.user_id == user_id,
                    UserSavedListingDB.listing_id == listing_id,
                )
                .first()
            )
            return UserSavedListing.model_validate(row) if row else None

    def create_user_saved_listing(self, user_id: int, listing_id: int) -> UserSavedListing:
        existing = self._find_saved(user_id, listing_id)
        if existing:
            return existing
        try:
            return self._insert(
                UserSavedListingDB, UserSavedListing, {"user_id": user_id, "listing_id": listing_id}
            )
        except IntegrityError:
            # A concurrent request saved the same pair first.
            return self._find_saved(user_id, listing_id)

    def delete_user_saved_listing(self, user_id: int, listing_id: int) -> bool:
        with self._session() as db:
            deleted = (
                db.query(UserSavedListingDB)
                .filter(
                    UserSavedListingDB.user_id == user_id,
                    UserSavedListingDB.listing_id == listing_id,
                )
                .delete(synchronize_session=False)
            )
            return deleted > 0

    # Sessions
    def create_session(self, sid: str, user_id: int, expires_at: datetime) -> Session:
        return self._insert(SessionDB, Session, {"sid": sid, "user_id": user_id, "expires_at": expires_at})

    def get_session(self, sid: str) -> Optional[Session]:
        with self._session() as db:
            row = db.get(SessionDB, sid)
            return Session.model_validate(row) if row else None

    def delete_session(self, sid: str) -> bool:
        with self._session() as db:
            return db.query(SessionDB).filter(SessionDB.sid == sid).delete(synchronize_session=False) > 0

    def purge_expired_sessions(self, now: datetime) -> int:
        with self._session() as db:
            return db.query(SessionDB).filter(SessionDB.expires_at <= now).delete(synchronize_session=False)
