"""FastAPI shipment creation pipeline public API."""

from typing import TYPE_CHECKING

__version__ = "0.1.0"

__all__ = [
    "CarrierGateway",
    "OrderNotFoundError",
    "OrderRepository",
    "ShipmentCreationFlow",
    "ShipmentError",
    "ShipmentsConfig",
    "WarehouseRepository",
    "__version__",
    "create_shipping_router",
    "register_exception_handlers",
]

if TYPE_CHECKING:
    from fastapi_shipments.config import ShipmentsConfig
    from fastapi_shipments.exceptions import (
        OrderNotFoundError,
        ShipmentError,
        register_exception_handlers,
    )
    from fastapi_shipments.flow import ShipmentCreationFlow
    from fastapi_shipments.gateway import CarrierGateway
    from fastapi_shipments.protocols import (
        OrderRepository,
        WarehouseRepository,
    )
    from fastapi_shipments.router import create_shipping_router


def __getattr__(name: str):
    # Lazy imports to avoid loading all submodules on package import.
    if name == "ShipmentsConfig":
        from fastapi_shipments.config import ShipmentsConfig

        return ShipmentsConfig
    if name == "create_shipping_router":
        from fastapi_shipments.router import create_shipping_router

        return create_shipping_router
    if name == "ShipmentCreationFlow":
        from fastapi_shipments.flow import ShipmentCreationFlow

        return ShipmentCreationFlow
    if name == "CarrierGateway":
        from fastapi_shipments.gateway import CarrierGateway

        return CarrierGateway
    if name in (
        "OrderNotFoundError",
        "ShipmentError",
        "register_exception_handlers",
    ):
        from fastapi_shipments import exceptions

        return getattr(exceptions, name)
    if name in ("OrderRepository", "WarehouseRepository"):
        from fastapi_shipments import protocols

        return getattr(protocols, name)
    raise AttributeError(
        f"module 'fastapi_shipments' has no attribute {name!r}"
    )
