from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, DateTime, Text, Boolean, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from trackplan.infrastructure.db import Base

# Event lifecycle statuses
EVENT_STATUSES = ("to_implement", "to_test", "error", "validated")
# Property types a catalog entry may declare
PROPERTY_TYPES = ("string", "number", "boolean", "array", "object")


class Product(Base):
    """Tenant boundary; every catalog uniqueness rule is scoped to one product."""
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), index=True)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    pages: Mapped[list["Page"]] = relationship(back_populates="product", cascade="all, delete-orphan", passive_deletes=True)
    properties: Mapped[list["Property"]] = relationship(back_populates="product", cascade="all, delete-orphan", passive_deletes=True)
    suggested_values: Mapped[list["SuggestedValue"]] = relationship(back_populates="product", cascade="all, delete-orphan", passive_deletes=True)
    common_properties: Mapped[list["CommonProperty"]] = relationship(back_populates="product", cascade="all, delete-orphan", passive_deletes=True)


class Page(Base):
    __tablename__ = "pages"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(256))
    url: Mapped[str | None] = mapped_column(String(1024), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product: Mapped[Product] = relationship(back_populates="pages")
    events: Mapped[list["Event"]] = relationship(back_populates="page", cascade="all, delete-orphan", passive_deletes=True)


class Event(Base):
    """A tracked event. `properties` is the denormalized payload, stored as JSON text."""
    __tablename__ = "events"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    page_id: Mapped[int] = mapped_column(Integer, ForeignKey("pages.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(256), index=True)
    status: Mapped[str] = mapped_column(String(16), default="to_implement", index=True)
    test_date: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    properties: Mapped[str] = mapped_column(Text, default="{}")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, index=True)

    page: Mapped[Page] = relationship(back_populates="events")
    history: Mapped[list["EventHistory"]] = relationship(
        back_populates="event", cascade="all, delete-orphan", passive_deletes=True, order_by="EventHistory.id"
    )


class Property(Base):
    __tablename__ = "properties"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(256))
    type: Mapped[str] = mapped_column(String(16), default="string")
    description: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product: Mapped[Product] = relationship(back_populates="properties")
    property_values: Mapped[list["PropertyValue"]] = relationship(
        back_populates="property", cascade="all, delete-orphan", passive_deletes=True
    )
    common_property: Mapped[Optional["CommonProperty"]] = relationship(
        uselist=False,
        back_populates="property", cascade="all, delete-orphan", passive_deletes=True
    )
    __table_args__ = (
        Index("ux_property_product_name", "product_id", "name", unique=True),
    )


class SuggestedValue(Base):
    """Reusable catalog value. `is_contextual` marks `$`-prefixed placeholders."""
    __tablename__ = "suggested_values"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True)
    value: Mapped[str] = mapped_column(Text)
    is_contextual: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product: Mapped[Product] = relationship(back_populates="suggested_values")
    property_values: Mapped[list["PropertyValue"]] = relationship(
        back_populates="suggested_value", cascade="all, delete-orphan", passive_deletes=True
    )
    common_properties: Mapped[list["CommonProperty"]] = relationship(
        back_populates="suggested_value", cascade="all, delete-orphan", passive_deletes=True
    )
    __table_args__ = (
        Index("ux_suggested_value_product_value", "product_id", "value", unique=True),
    )


class PropertyValue(Base):
    """Value seen/allowed for a property."""
    __tablename__ = "property_values"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), index=True)
    suggested_value_id: Mapped[int] = mapped_column(Integer, ForeignKey("suggested_values.id", ondelete="CASCADE"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    property: Mapped[Property] = relationship(back_populates="property_values")
    suggested_value: Mapped[SuggestedValue] = relationship(back_populates="property_values")
    __table_args__ = (
        Index("ux_property_value_pair", "property_id", "suggested_value_id", unique=True),
    )


class CommonProperty(Base):
    """Per-product default value for a property; only read by drift detection."""
    __tablename__ = "common_properties"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True)
    property_id: Mapped[int] = mapped_column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), unique=True)
    suggested_value_id: Mapped[int] = mapped_column(Integer, ForeignKey("suggested_values.id", ondelete="CASCADE"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product: Mapped[Product] = relationship(back_populates="common_properties")
    property: Mapped[Property] = relationship(back_populates="common_property")
    suggested_value: Mapped[SuggestedValue] = relationship(back_populates="common_properties")


class EventHistory(Base):
    """Append-only audit row for event field changes."""
    __tablename__ = "event_history"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(Integer, ForeignKey("events.id", ondelete="CASCADE"), index=True)
    field: Mapped[str] = mapped_column(String(64), index=True)
    old_value: Mapped[str | None] = mapped_column(Text, default=None)
    new_value: Mapped[str | None] = mapped_column(Text, default=None)
    author: Mapped[str] = mapped_column(String(128), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    event: Mapped[Event] = relationship(back_populates="history")
