import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


def _new_id():
    return uuid.uuid4().hex


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=_new_id)
    order_number = Column(String, nullable=False, unique=True)  # e.g. ORD-12345678-ABCD
    seller_id = Column(String, nullable=False)
    warehouse_id = Column(String)
    customer_name = Column(String, nullable=False, default="")
    customer_phones = Column(JSON, default=list)  # JSON array of raw phone strings
    shipping_address = Column(Text, default="")
    total_price = Column(Numeric(12, 2), default=0)
    order_date = Column(DateTime, nullable=False)  # stored as naive UTC
    is_double = Column(Boolean, default=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    lines = relationship(
        "OrderLine", back_populates="order", cascade="all, delete-orphan",
        order_by="OrderLine.position",
    )
    double_references = relationship(
        "DoubleOrderReference", back_populates="order", cascade="all, delete-orphan",
        foreign_keys="DoubleOrderReference.order_id",
    )

    __table_args__ = (
        Index("idx_orders_seller_date", "seller_id", "order_date"),
        Index("idx_orders_is_double", "is_double"),
    )


class OrderLine(Base):
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False)
    position = Column(Integer, default=0)
    product_id = Column(String, nullable=False)
    quantity = Column(Integer, default=0)
    unit_price = Column(Numeric(12, 2), default=0)

    order = relationship("Order", back_populates="lines")

    __table_args__ = (
        Index("idx_order_lines_order", "order_id"),
    )


class DoubleOrderReference(Base):
    __tablename__ = "double_order_references"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False)
    referenced_order_id = Column(String(32), ForeignKey("orders.id"), nullable=False)
    referenced_order_number = Column(String, nullable=False)
    matched_rule = Column(String, nullable=False)
    detected_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    order = relationship("Order", back_populates="double_references", foreign_keys=[order_id])

    __table_args__ = (
        Index("idx_double_refs_order", "order_id"),
    )


class DuplicateDetectionSettings(Base):
    __tablename__ = "duplicate_detection_settings"

    id = Column(Integer, primary_key=True)
    seller_id = Column(String, nullable=False, unique=True)
    document = Column(JSON, nullable=False)  # see policy_document for the layout
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
