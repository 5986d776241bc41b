"""SQLAlchemy repository implementations."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fastapi_shipments.contrib.sqlalchemy.models import (
    OrderModel,
    WarehouseModel,
)
from fastapi_shipments.exceptions import (
    ConcurrentShipmentError,
    OrderNotFoundError,
)
from fastapi_shipments.types import Order, Warehouse


def _order_document(order: Order) -> dict:
    return order.model_dump(mode="json", by_alias=True)


class SQLAlchemyOrderRepository:
    """Order repository backed by SQLAlchemy async sessions."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        self.session_factory = session_factory

    async def get_by_id(self, order_id: str) -> Order | None:
        async with self.session_factory() as session:
            row = await session.get(OrderModel, order_id)
            if row is None:
                return None
            return Order.model_validate(
                {**row.document, "version": row.version}
            )

    async def create(self, order: Order) -> Order:
        async with self.session_factory() as session:
            session.add(
                OrderModel(
                    id=order.id,
                    version=order.version,
                    status=order.status.value,
                    document=_order_document(order),
                )
            )
            await session.commit()
        return order

    async def save(self, order: Order, *, expected_version: int) -> Order:
        """Conditional write: ``UPDATE ... WHERE id = ? AND version = ?``."""
        saved = order.model_copy(update={"version": expected_version + 1})
        async with self.session_factory() as session:
            result = await session.execute(
                update(OrderModel)
                .where(
                    OrderModel.id == order.id,
                    OrderModel.version == expected_version,
                )
                .values(
                    version=saved.version,
                    status=saved.status.value,
                    document=_order_document(saved),
                )
            )
            if result.rowcount != 1:
                await session.rollback()
                if await session.get(OrderModel, order.id) is None:
                    raise OrderNotFoundError(order.id)
                raise ConcurrentShipmentError(
                    "Order was modified concurrently",
                    message=(
                        f"Order {order.id} changed while the shipment was "
                        "being created. Reload the order and try again."
                    ),
                )
            await session.commit()
        return saved


class SQLAlchemyWarehouseRepository:
    """Warehouse repository backed by SQLAlchemy async sessions."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        self.session_factory = session_factory

    async def create(self, warehouse: Warehouse) -> Warehouse:
        async with self.session_factory() as session:
            session.add(
                WarehouseModel(
                    name=warehouse.name,
                    active=warehouse.active,
                    document=warehouse.model_dump(mode="json", by_alias=True),
                )
            )
            await session.commit()
        return warehouse

    async def _active(self, *conditions) -> list[Warehouse]:
        async with self.session_factory() as session:
            stmt = (
                select(WarehouseModel)
                .where(WarehouseModel.active.is_(True), *conditions)
                .order_by(WarehouseModel.id)
            )
            result = await session.execute(stmt)
            return [
                Warehouse.model_validate(row.document)
                for row in result.scalars().all()
            ]

    async def get_active_by_name(self, name: str) -> Warehouse | None:
        matches = await self._active(WarehouseModel.name == name)
        return matches[0] if matches else None

    async def first_active(self) -> Warehouse | None:
        matches = await self._active()
        return matches[0] if matches else None

    async def list_active(self) -> list[Warehouse]:
        return await self._active()
