"""Pickup warehouse resolution with explicit fallback tiers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from fastapi_shipments.protocols import WarehouseRepository
from fastapi_shipments.types import Warehouse

logger = logging.getLogger(__name__)

DEFAULT_WAREHOUSE_NAME = "Default Warehouse"


class WarehouseTier(StrEnum):
    NAMED = "named"
    ANY_ACTIVE = "any_active"
    BUILT_IN_DEFAULT = "built_in_default"


@dataclass(frozen=True)
class ResolvedWarehouse:
    warehouse: Warehouse
    tier: WarehouseTier


def built_in_warehouse(name: str | None = None) -> Warehouse:
    """Kolkata warehouse used when no active warehouse is registered."""
    return Warehouse(
        name=name or DEFAULT_WAREHOUSE_NAME,
        registered_name="Default Seller",
        address="Default Warehouse Address, Park Street",
        city="Kolkata",
        state="West Bengal",
        pin="700001",
        phone="9876543210",
        country="India",
        return_address="Default Warehouse Address, Park Street",
        return_city="Kolkata",
        return_state="West Bengal",
        return_pin="700001",
        return_country="India",
        active=True,
    )


class WarehouseResolver:
    """Named warehouse, then any active warehouse, then a built-in default."""

    def __init__(self, repository: WarehouseRepository) -> None:
        self.repository = repository

    async def resolve(self, name: str | None) -> ResolvedWarehouse:
        if name:
            warehouse = await self.repository.get_active_by_name(name)
            if warehouse is not None:
                logger.info("Using warehouse %r", warehouse.name)
                return ResolvedWarehouse(warehouse, WarehouseTier.NAMED)

        warehouse = await self.repository.first_active()
        if warehouse is not None:
            logger.info(
                "Warehouse %r not found, using active warehouse %r",
                name,
                warehouse.name,
            )
            return ResolvedWarehouse(warehouse, WarehouseTier.ANY_ACTIVE)

        logger.warning(
            "No active warehouse found, using built-in default for %r", name
        )
        return ResolvedWarehouse(
            built_in_warehouse(name), WarehouseTier.BUILT_IN_DEFAULT
        )
