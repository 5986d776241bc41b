"""Router factory for fastapi-shipments."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from fastapi_shipments.config import ShipmentsConfig
from fastapi_shipments.exceptions import register_exception_handlers
from fastapi_shipments.gateway import CarrierGateway
from fastapi_shipments.protocols import OrderRepository, WarehouseRepository
from fastapi_shipments.routes.shipments import router as shipments_router


def create_shipping_router(
    *,
    config: ShipmentsConfig,
    orders: OrderRepository,
    warehouses: WarehouseRepository,
    gateway: CarrierGateway | None = None,
) -> APIRouter:
    """Create a configured API router."""
    actual_gateway = gateway or CarrierGateway(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        app.state.shipments_config = config
        app.state.shipments_orders = orders
        app.state.shipments_warehouses = warehouses
        app.state.shipments_gateway = actual_gateway
        register_exception_handlers(app)
        yield

    router = APIRouter(lifespan=lifespan)
    router.include_router(shipments_router)
    return router
