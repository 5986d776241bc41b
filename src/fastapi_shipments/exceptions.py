"""Shipment pipeline exceptions and their HTTP mapping."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class ShipmentError(Exception):
    """Base class for every error raised by the shipment pipeline."""

    status_code = 400
    code = "shipment_error"

    def __init__(
        self,
        error: str,
        *,
        message: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(error)
        self.error = error
        self.message = message
        self.details = details


class InvalidShipmentRequest(ShipmentError):
    """Missing or ill-typed request fields."""

    code = "validation_error"


class PreconditionError(ShipmentError):
    """Order status does not allow the requested shipment type."""

    code = "precondition_failed"


class ConcurrentShipmentError(PreconditionError):
    """The order changed between read and conditional write."""

    status_code = 409
    code = "concurrent_update"


class OrderNotFoundError(ShipmentError):
    status_code = 404
    code = "not_found"

    def __init__(self, order_id: str) -> None:
        super().__init__(
            "Order not found", message=f"Order {order_id} not found"
        )
        self.order_id = order_id


class ServiceabilityBlockedError(ShipmentError):
    """Carrier reports the pincode as non-serviceable or embargoed."""

    code = "pincode_not_serviceable"


class InvalidNameError(ShipmentError):
    code = "invalid_name"


class ShipmentValidationError(ShipmentError):
    """Carrier record failed field-level validation before sending."""

    code = "shipment_validation_failed"

    def __init__(self, errors: list[str]) -> None:
        super().__init__(
            "Shipment validation failed",
            message=f"Shipment validation failed: {', '.join(errors)}",
            details=errors,
        )
        self.errors = errors


class CarrierError(ShipmentError):
    """Base for failures talking to the carrier."""

    status_code = 500
    code = "carrier_error"


class CarrierNotConfiguredError(CarrierError):
    code = "carrier_not_configured"

    def __init__(self) -> None:
        super().__init__(
            "Carrier not configured",
            message=(
                "Carrier auth token is missing or a placeholder. "
                "Set SHIPMENTS_CARRIER_TOKEN to a valid API token."
            ),
        )


class CarrierCommunicationError(CarrierError):
    """Network failure, non-2xx status or unreadable carrier body."""

    code = "communication_error"


class CarrierHardFailure(ShipmentError):
    """Carrier explicitly rejected the shipment."""

    code = "carrier_rejected"


class DuplicateOrderError(CarrierHardFailure):
    """Carrier already holds a shipment for this order id."""

    status_code = 409
    code = "duplicate_order"

    def __init__(self, order_id: str | None, *, details: Any = None) -> None:
        super().__init__(
            "Duplicate order",
            message=(
                f"A shipment for order {order_id} already exists with the "
                "carrier but not in our records. Please contact support to "
                "resolve this issue."
            ),
            details=details,
        )
        self.order_id = order_id



def _error_body(exc: ShipmentError) -> dict[str, Any]:
    body: dict[str, Any] = {
        "success": False,
        "error": exc.error,
        "code": exc.code,
    }
    if exc.message is not None:
        body["message"] = exc.message
    if exc.details is not None:
        body["details"] = exc.details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """Register shipment exception handlers on a FastAPI app.

    Every ``ShipmentError`` subclass carries its own status code, so a
    single handler on the base class covers the whole hierarchy.
    """

    @app.exception_handler(ShipmentError)
    async def _shipment_error(
        request: Request,
        exc: ShipmentError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc),
        )
