"""SQLAlchemy order/warehouse models."""

from __future__ import annotations

from sqlalchemy import JSON, Boolean, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""


class OrderModel(Base):
    """Order stored as a camelCase JSON document plus a version column."""

    __tablename__ = "shipments_orders"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(32))
    document: Mapped[dict] = mapped_column(JSON)


class WarehouseModel(Base):
    """Pickup warehouse registered by the merchant."""

    __tablename__ = "shipments_warehouses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), index=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    document: Mapped[dict] = mapped_column(JSON)
