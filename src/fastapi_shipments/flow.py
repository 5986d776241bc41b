"""Shipment creation orchestration."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from fastapi_shipments.builder import ShipmentRequestBuilder
from fastapi_shipments.config import ShipmentsConfig
from fastapi_shipments.exceptions import (
    CarrierError,
    CarrierHardFailure,
    InvalidShipmentRequest,
    OrderNotFoundError,
    ServiceabilityBlockedError,
    ShipmentError,
)
from fastapi_shipments.gateway import CarrierGateway
from fastapi_shipments.protocols import OrderRepository, WarehouseRepository
from fastapi_shipments.reconcile import ResponseReconciler, collect_findings
from fastapi_shipments.serviceability import ServiceabilityPrevalidator
from fastapi_shipments.state import OrderStateMachine
from fastapi_shipments.types import (
    CarrierResponse,
    Order,
    OutcomeKind,
    ShipmentCreateRequest,
    ShipmentOutcome,
    ShipmentType,
    Warehouse,
)
from fastapi_shipments.warehouses import WarehouseResolver

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ShipmentResult:
    order: Order
    shipment_type: ShipmentType
    pickup_location: str
    outcome: ShipmentOutcome


@dataclass(frozen=True)
class ShipmentDetails:
    order: Order
    available_actions: list[str]
    warehouses: list[Warehouse]

    @property
    def can_create_shipment(self) -> bool:
        return bool(self.available_actions)


def validate_request(request: ShipmentCreateRequest) -> ShipmentType:
    """Reject requests that are unusable before touching any collaborator."""
    if not request.order_id:
        raise InvalidShipmentRequest("Order ID is required")
    if not request.pickup_location:
        raise InvalidShipmentRequest("Pickup location is required")
    try:
        shipment_type = ShipmentType(request.shipment_type)
    except ValueError:
        raise InvalidShipmentRequest(
            "Valid shipment type is required "
            "(FORWARD, REVERSE, REPLACEMENT, MPS)"
        ) from None
    if shipment_type is ShipmentType.MPS and not request.packages:
        raise InvalidShipmentRequest(
            "MPS shipments require packages array with at least one package"
        )
    return shipment_type


class ShipmentCreationFlow:
    """Runs one shipment request from validation to the order write.

    The order is written at most once, with a version check, and only
    after an outcome carrying at least one waybill exists.
    """

    def __init__(
        self,
        *,
        config: ShipmentsConfig,
        orders: OrderRepository,
        warehouses: WarehouseRepository,
        gateway: CarrierGateway | None = None,
        builder: ShipmentRequestBuilder | None = None,
        prevalidator: ServiceabilityPrevalidator | None = None,
        reconciler: ResponseReconciler | None = None,
        state_machine: OrderStateMachine | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self.orders = orders
        self.warehouses = warehouses
        self.warehouse_resolver = WarehouseResolver(warehouses)
        self.gateway = gateway or CarrierGateway(config)
        self.builder = builder or ShipmentRequestBuilder()
        self.prevalidator = prevalidator or ServiceabilityPrevalidator()
        self.reconciler = reconciler or ResponseReconciler()
        self.state_machine = state_machine or OrderStateMachine()
        self.clock = clock

    async def _get_order(self, order_id: str) -> Order:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def create_shipment(
        self, request: ShipmentCreateRequest
    ) -> ShipmentResult:
        shipment_type = validate_request(request)
        order = await self._get_order(request.order_id)
        self.state_machine.check_preconditions(order, shipment_type)

        pincode = order.shipping_address.zip_code.strip()
        if not pincode:
            raise InvalidShipmentRequest(
                "Invalid shipping address - zipcode is required"
            )
        await self._ensure_pincode_serviceable(pincode)

        pickup_location = self.gateway.resolve_pickup_location(
            request.pickup_location
        )
        resolved = await self.warehouse_resolver.resolve(pickup_location)
        records = self.builder.build(order, request, resolved.warehouse)
        findings = collect_findings(records, self.prevalidator)

        response: CarrierResponse | ShipmentError | None = None
        if self.reconciler.requires_synthesis(findings):
            logger.warning(
                "Skipping carrier call for order %s: %s",
                order.id,
                findings.validation_issues or findings.serviceability_issues,
            )
        else:
            try:
                response = await self.gateway.create(records, pickup_location)
            except ShipmentError as exc:
                response = exc

        outcome = self.reconciler.reconcile(
            records,
            findings,
            response,
            pickup_location=pickup_location,
            order_id=order.id,
            existing_waybills=self.state_machine.recorded_waybills(
                order, shipment_type
            ),
        )
        if outcome.kind is OutcomeKind.FAILED:
            raise outcome.error or CarrierHardFailure(
                "Shipment creation failed"
            )
        if not outcome.waybills:
            raise CarrierHardFailure(
                "No waybill numbers received from carrier"
            )

        updated = self.state_machine.apply(
            order, request, outcome, pickup_location, self.clock()
        )
        saved = await self.orders.save(
            updated, expected_version=order.version
        )
        logger.info(
            "Created %s shipment for order %s (%s): %s",
            shipment_type,
            order.id,
            outcome.kind,
            ", ".join(outcome.waybills),
        )
        return ShipmentResult(
            order=saved,
            shipment_type=shipment_type,
            pickup_location=pickup_location,
            outcome=outcome,
        )

    async def _ensure_pincode_serviceable(self, pincode: str) -> None:
        """Block shipments to pincodes the carrier explicitly refuses.

        Skipped when the carrier is not configured; a failed lookup is
        logged and does not block creation.
        """
        if not self.config.check_pincode_serviceability:
            return
        if not self.gateway.is_configured():
            logger.info(
                "Carrier not configured, skipping pincode check for %s",
                pincode,
            )
            return
        try:
            result = await self.gateway.check_pincode(pincode)
        except CarrierError as exc:
            logger.warning(
                "Pincode serviceability check failed for %s: %s",
                pincode,
                exc.message or exc.error,
            )
            return

        if result.embargo:
            raise ServiceabilityBlockedError(
                "Pincode under embargo",
                message=(
                    f"Pincode {pincode} is currently under embargo and "
                    "cannot be serviced."
                ),
                details={
                    "pincode": pincode,
                    "serviceable": False,
                    "embargo": True,
                    "remark": result.remark,
                },
            )
        if not result.serviceable:
            remark = result.remark or "Non-serviceable zone"
            raise ServiceabilityBlockedError(
                "Pincode not serviceable",
                message=(
                    f"The carrier does not service pincode {pincode}. "
                    f"{remark}"
                ),
                details={
                    "pincode": pincode,
                    "serviceable": False,
                    "embargo": False,
                    "remark": remark,
                },
            )

    async def get_shipment_details(
        self, order_id: str | None
    ) -> ShipmentDetails:
        if not order_id:
            raise InvalidShipmentRequest("Order ID is required")
        order = await self._get_order(order_id)
        return ShipmentDetails(
            order=order,
            available_actions=self.state_machine.available_actions(order),
            warehouses=await self.warehouses.list_active(),
        )
