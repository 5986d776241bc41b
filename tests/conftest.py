"""Shared fixtures for fastapi-shipments tests."""

from __future__ import annotations

import json
from datetime import UTC, date, datetime
from urllib.parse import parse_qs

import httpx
import pytest

from fastapi_shipments.builder import ShipmentRequestBuilder
from fastapi_shipments.config import ShipmentsConfig
from fastapi_shipments.exceptions import ConcurrentShipmentError
from fastapi_shipments.gateway import CarrierGateway
from fastapi_shipments.types import Order, ShipmentCreateRequest, Warehouse

FIXED_NOW = datetime(2024, 5, 6, 10, 30, tzinfo=UTC)
FIXED_TODAY = date(2024, 5, 6)


def make_order(**overrides) -> Order:
    """Confirmed COD order with a clean Kolkata address."""
    document = {
        "id": "order-1",
        "status": "Confirmed",
        "shippingAddress": {
            "firstName": "Ananya",
            "lastName": "Sen",
            "address1": "12 Park Street, Near New Market",
            "address2": "",
            "city": "kolkata",
            "state": "wb",
            "zipCode": "700001",
            "phoneNumber": "+91 98765 43210",
            "country": "India",
        },
        "orderItems": [
            {"name": "Cotton shirt", "qty": 2, "price": 500},
            {"name": "Leather bag", "qty": 1, "price": 500},
        ],
        "paymentMethod": "cod",
        "total": 1500,
        "createdAt": "2024-05-01T09:00:00+00:00",
        "shipmentCreated": False,
    }
    address = overrides.pop("shipping_address", None)
    if address:
        document["shippingAddress"] = {
            **document["shippingAddress"],
            **address,
        }
    document.update(overrides)
    return Order.model_validate(document)


def make_warehouse(**overrides) -> Warehouse:
    document = {
        "name": "Main Warehouse",
        "registeredName": "Kolkata Traders",
        "address": "Plot 4, Sector V, Salt Lake",
        "city": "Kolkata",
        "state": "West Bengal",
        "pin": "700091",
        "phone": "9830012345",
        "active": True,
        "registeredWithCarrier": True,
    }
    document.update(overrides)
    return Warehouse.model_validate(document)


def make_request(**overrides) -> ShipmentCreateRequest:
    payload = {
        "orderId": "order-1",
        "shipmentType": "FORWARD",
        "pickupLocation": "Main Warehouse",
    }
    payload.update(overrides)
    return ShipmentCreateRequest.model_validate(payload)


def make_records(order: Order | None = None, **request_overrides):
    builder = ShipmentRequestBuilder(today=lambda: FIXED_TODAY)
    return builder.build(
        order or make_order(),
        make_request(**request_overrides),
        make_warehouse(),
    )


class InMemoryOrderRepo:
    """Stores serialized orders so tests can compare stored bytes."""

    def __init__(self, *orders: Order) -> None:
        self.documents: dict[str, str] = {}
        self.saves = 0
        for order in orders:
            self.add(order)

    def add(self, order: Order) -> None:
        self.documents[order.id] = order.model_dump_json(by_alias=True)

    async def get_by_id(self, order_id: str) -> Order | None:
        document = self.documents.get(order_id)
        if document is None:
            return None
        return Order.model_validate_json(document)

    async def save(self, order: Order, *, expected_version: int) -> Order:
        current = await self.get_by_id(order.id)
        if current is None or current.version != expected_version:
            raise ConcurrentShipmentError("Order was modified concurrently")
        saved = order.model_copy(update={"version": expected_version + 1})
        self.add(saved)
        self.saves += 1
        return saved


class InMemoryWarehouseRepo:
    def __init__(self, *warehouses: Warehouse) -> None:
        self.warehouses = list(warehouses)

    async def get_active_by_name(self, name: str) -> Warehouse | None:
        for warehouse in self.warehouses:
            if warehouse.active and warehouse.name == name:
                return warehouse
        return None

    async def first_active(self) -> Warehouse | None:
        active = await self.list_active()
        return active[0] if active else None

    async def list_active(self) -> list[Warehouse]:
        return [w for w in self.warehouses if w.active]


class FakeCarrier:
    """Programmable carrier API behind ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.create_status = 200
        self.create_body: object = {
            "success": True,
            "packages": [
                {
                    "waybill": "ABC1234567",
                    "status": "Success",
                    "serviceable": True,
                }
            ],
            "rmk": "",
        }
        self.pincode_body: object = {
            "delivery_codes": [{"postal_code": {"pin": 700001, "remarks": ""}}]
        }
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if request.url.path.startswith("/c/api/pin-codes"):
            return httpx.Response(200, json=self.pincode_body)
        return httpx.Response(self.create_status, json=self.create_body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def create_requests(self) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.url.path == "/api/cmu/create.json"
        ]

    def sent_payload(self, index: int = -1) -> dict:
        form = parse_qs(self.create_requests[index].content.decode())
        assert form["format"] == ["json"]
        return json.loads(form["data"][0])


@pytest.fixture()
def config() -> ShipmentsConfig:
    return ShipmentsConfig(
        carrier_token="live-token-123",
        carrier_base_url="https://carrier.test",
    )


@pytest.fixture()
def carrier() -> FakeCarrier:
    return FakeCarrier()


@pytest.fixture()
def gateway(config, carrier) -> CarrierGateway:
    return CarrierGateway(config, transport=carrier.transport)


@pytest.fixture()
def order() -> Order:
    return make_order()


@pytest.fixture()
def warehouse() -> Warehouse:
    return make_warehouse()


@pytest.fixture()
def orders(order) -> InMemoryOrderRepo:
    return InMemoryOrderRepo(order)


@pytest.fixture()
def warehouses(warehouse) -> InMemoryWarehouseRepo:
    return InMemoryWarehouseRepo(warehouse)


@pytest.fixture()
async def async_engine():
    """Create an in-memory aiosqlite async engine."""
    sa = pytest.importorskip("sqlalchemy")  # noqa: F841
    from sqlalchemy.ext.asyncio import create_async_engine

    from fastapi_shipments.contrib.sqlalchemy.models import Base

    engine = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
async def async_session_factory(async_engine):
    """Create an async session factory bound to the in-memory engine."""
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    factory = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )
    yield factory


@pytest.fixture()
def sqlalchemy_order_repository(async_session_factory):
    """Create an SQLAlchemyOrderRepository."""
    from fastapi_shipments.contrib.sqlalchemy.repository import (
        SQLAlchemyOrderRepository,
    )

    return SQLAlchemyOrderRepository(async_session_factory)


@pytest.fixture()
def sqlalchemy_warehouse_repository(async_session_factory):
    """Create an SQLAlchemyWarehouseRepository."""
    from fastapi_shipments.contrib.sqlalchemy.repository import (
        SQLAlchemyWarehouseRepository,
    )

    return SQLAlchemyWarehouseRepository(async_session_factory)
