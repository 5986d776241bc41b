"""Dependency providers for request handlers."""

from __future__ import annotations

from fastapi import Request

from fastapi_shipments.config import ShipmentsConfig
from fastapi_shipments.flow import ShipmentCreationFlow
from fastapi_shipments.gateway import CarrierGateway
from fastapi_shipments.protocols import OrderRepository, WarehouseRepository


def get_config(request: Request) -> ShipmentsConfig:
    """Read config from FastAPI app state."""
    return request.app.state.shipments_config


def get_order_repository(request: Request) -> OrderRepository:
    """Read order repository from FastAPI app state."""
    return request.app.state.shipments_orders


def get_warehouse_repository(request: Request) -> WarehouseRepository:
    """Read warehouse repository from FastAPI app state."""
    return request.app.state.shipments_warehouses


def get_gateway(request: Request) -> CarrierGateway:
    """Read the carrier gateway from FastAPI app state."""
    return request.app.state.shipments_gateway


def get_flow(request: Request) -> ShipmentCreationFlow:
    """Create ShipmentCreationFlow for the current request."""
    return ShipmentCreationFlow(
        config=get_config(request),
        orders=get_order_repository(request),
        warehouses=get_warehouse_repository(request),
        gateway=get_gateway(request),
    )
