"""Shipment endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from fastapi_shipments.dependencies import get_flow
from fastapi_shipments.flow import ShipmentCreationFlow
from fastapi_shipments.schemas import (
    ShipmentCreatedResponse,
    ShipmentDetailsResponse,
    parse_create_request,
)

router = APIRouter()


@router.get("/shipments/health")
async def shipments_health() -> dict[str, str]:
    """Healthcheck endpoint for shipment routes."""
    return {"status": "ok"}


@router.post("/shipments", response_model=ShipmentCreatedResponse)
async def create_shipment(
    payload: Any = Body(None),
    flow: ShipmentCreationFlow = Depends(get_flow),
) -> ShipmentCreatedResponse:
    """Create a FORWARD, REVERSE, REPLACEMENT or MPS shipment."""
    request = parse_create_request(payload)
    result = await flow.create_shipment(request)
    return ShipmentCreatedResponse.from_result(result)


@router.get("/shipments", response_model=ShipmentDetailsResponse)
async def get_shipment_details(
    order_id: str | None = Query(None, alias="orderId"),
    flow: ShipmentCreationFlow = Depends(get_flow),
) -> ShipmentDetailsResponse:
    """Shipment state and available actions for one order."""
    details = await flow.get_shipment_details(order_id)
    return ShipmentDetailsResponse.from_details(details)
