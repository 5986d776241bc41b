"""Persistence protocols consumed by the shipment pipeline."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from fastapi_shipments.types import Order, Warehouse


@runtime_checkable
class OrderRepository(Protocol):
    """Loads orders and persists them with a version check."""

    async def get_by_id(self, order_id: str) -> Order | None: ...

    async def save(self, order: Order, *, expected_version: int) -> Order:
        """Persist ``order`` only if the stored version still matches.

        Implementations store ``expected_version + 1`` and raise
        ``ConcurrentShipmentError`` when the stored version differs.
        """
        ...


@runtime_checkable
class WarehouseRepository(Protocol):
    """Read-only access to registered pickup warehouses."""

    async def get_active_by_name(self, name: str) -> Warehouse | None: ...

    async def first_active(self) -> Warehouse | None: ...

    async def list_active(self) -> list[Warehouse]: ...
