import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.types import TypeDecorator
from .database import Base
from . import logic
from .validation import DEFAULT_LOW_STOCK_THRESHOLD

DEFAULT_ROLE = "owner"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that always comes back in UTC.

    SQLite drops tzinfo on the way in, so naive values read back are UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True) # stored lowercased
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=DEFAULT_ROLE)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}')>"


class Item(Base):
    __tablename__ = "items"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(20), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(12, 2), nullable=False)
    sku = Column(String(64), nullable=False, unique=True, index=True)
    low_stock_threshold = Column(Integer, nullable=False, default=DEFAULT_LOW_STOCK_THRESHOLD)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="items_quantity_non_negative"),
        CheckConstraint("price >= 0", name="items_price_non_negative"),
        CheckConstraint("low_stock_threshold >= 0", name="items_low_stock_threshold_non_negative"),
    )

    @property
    def is_low_stock(self) -> bool:
        return logic.is_low_stock(self)

    def __repr__(self):
        return f"<Item(id='{self.id}', sku='{self.sku}', quantity={self.quantity})>"
