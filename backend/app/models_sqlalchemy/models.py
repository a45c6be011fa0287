from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB

from . import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")
Money = Numeric(12, 2, asdecimal=False)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(String(20), nullable=False, default="USER")
    status = Column(String(20), nullable=False, default="ACTIVE")
    avatar = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)


class VendorProfile(TimestampMixin, Base):
    """Vendor application. A user's current profile is the newest row;
    rejected applicants resubmit by creating a new row."""

    __tablename__ = "vendor_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    company_name = Column(String(255), nullable=False)
    business_number = Column(String(100), nullable=True)
    website = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    verification_status = Column(String(20), nullable=False, default="PENDING", index=True)
    rejection_reason = Column(Text, nullable=True)


class Category(TimestampMixin, Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name_en = Column(String(255), nullable=False)
    name_zh = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    image = Column(Text, nullable=True)
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)


class Listing(TimestampMixin, Base):
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vendor_id = Column(Integer, ForeignKey("vendor_profiles.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    title_en = Column(Text, nullable=False)
    title_zh = Column(Text, nullable=False)
    description_en = Column(Text, nullable=False)
    description_zh = Column(Text, nullable=False)
    price = Column(Money, nullable=False)
    type = Column(String(20), nullable=False, default="SERVICE")
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    images = Column(JSONType, nullable=False, default=list)
    tags = Column(JSONType, nullable=False, default=list)
    rejection_reason = Column(Text, nullable=True)
    delivery_instructions = Column(Text, nullable=True)


class Order(TimestampMixin, Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="CREATED", index=True)
    total_amount = Column(Money, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    delivery_details = Column(JSONType, nullable=True)


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Money, nullable=False)


class Payment(TimestampMixin, Base):
    __tablename__ = "payments"
    __table_args__ = (UniqueConstraint("order_id", name="uq_payments_order_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    amount = Column(Money, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default="PENDING")
    payment_method = Column(String(50), nullable=False)
    transaction_id = Column(String(100), nullable=True)


class Comment(TimestampMixin, Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="PENDING", index=True)


class UserSavedListing(Base):
    __tablename__ = "user_saved_listings"
    __table_args__ = (UniqueConstraint("user_id", "listing_id", name="uq_user_saved_listing"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False)
    saved_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Session(Base):
    __tablename__ = "sessions"

    sid = Column(String(128), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
