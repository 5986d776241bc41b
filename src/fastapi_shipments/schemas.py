"""Request/response schemas for the shipment endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from fastapi_shipments.exceptions import InvalidShipmentRequest
from fastapi_shipments.flow import ShipmentDetails, ShipmentResult
from fastapi_shipments.types import (
    DocumentModel,
    ForwardShipment,
    OrderStatus,
    OutcomeKind,
    ReplacementShipment,
    ReverseShipment,
    ShipmentCreateRequest,
)


class CreateShipmentRequest(ShipmentCreateRequest):
    """Shipment creation request body.

    Every field is optional; missing or invalid values are reported by the
    flow with a 400 rather than by FastAPI with a 422.
    """


def parse_create_request(payload: Any) -> CreateShipmentRequest:
    """Validate a raw JSON body, mapping schema errors to a 400."""
    if not isinstance(payload, dict):
        raise InvalidShipmentRequest(
            "Invalid request body",
            message="Request body must be a JSON object",
        )
    try:
        return CreateShipmentRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidShipmentRequest(
            "Invalid request body",
            message="One or more request fields have an invalid type",
            details=[
                {
                    "field": ".".join(str(part) for part in error["loc"]),
                    "message": error["msg"],
                }
                for error in exc.errors()
            ],
        ) from exc


class UpdatedOrder(DocumentModel):
    id: str
    status: OrderStatus
    shipment_created: bool
    shipment_details: ForwardShipment | None = None
    reverse_shipment: ReverseShipment | None = None
    replacement_shipment: ReplacementShipment | None = None


class ShipmentCreatedData(DocumentModel):
    order_id: str
    shipment_type: str
    waybill_numbers: list[str]
    pickup_location: str
    carrier_response: dict[str, Any]
    outcome_kind: OutcomeKind
    remark: str | None = None
    updated_order: UpdatedOrder


class ShipmentCreatedResponse(DocumentModel):
    success: bool = True
    message: str
    data: ShipmentCreatedData

    @classmethod
    def from_result(cls, result: ShipmentResult) -> ShipmentCreatedResponse:
        order = result.order
        return cls(
            message=f"{result.shipment_type} shipment created successfully",
            data=ShipmentCreatedData(
                order_id=order.id,
                shipment_type=result.shipment_type.value,
                waybill_numbers=result.outcome.waybills,
                pickup_location=result.pickup_location,
                carrier_response=result.outcome.carrier_response,
                outcome_kind=result.outcome.kind,
                remark=result.outcome.remark,
                updated_order=UpdatedOrder(
                    id=order.id,
                    status=order.status,
                    shipment_created=order.shipment_created,
                    shipment_details=order.shipment_details,
                    reverse_shipment=order.reverse_shipment,
                    replacement_shipment=order.replacement_shipment,
                ),
            ),
        )


class WarehouseOption(DocumentModel):
    name: str
    location: str


class ShipmentDetailsData(DocumentModel):
    order_id: str
    status: OrderStatus
    shipment_created: bool
    shipment_details: ForwardShipment | None = None
    reverse_shipment: ReverseShipment | None = None
    replacement_shipment: ReplacementShipment | None = None
    available_actions: list[str]
    warehouses: list[WarehouseOption]
    can_create_shipment: bool


class ShipmentDetailsResponse(DocumentModel):
    success: bool = True
    data: ShipmentDetailsData

    @classmethod
    def from_details(cls, details: ShipmentDetails) -> ShipmentDetailsResponse:
        order = details.order
        return cls(
            data=ShipmentDetailsData(
                order_id=order.id,
                status=order.status,
                shipment_created=order.shipment_created,
                shipment_details=order.shipment_details,
                reverse_shipment=order.reverse_shipment,
                replacement_shipment=order.replacement_shipment,
                available_actions=details.available_actions,
                warehouses=[
                    WarehouseOption(
                        name=warehouse.name, location=warehouse.location
                    )
                    for warehouse in details.warehouses
                ],
                can_create_shipment=details.can_create_shipment,
            )
        )
