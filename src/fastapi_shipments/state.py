"""Order status transitions driven by shipment creation."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi_shipments.exceptions import PreconditionError
from fastapi_shipments.types import (
    ForwardShipment,
    Order,
    OrderStatus,
    ReplacementShipment,
    ReverseShipment,
    ShipmentCreateRequest,
    ShipmentOutcome,
    ShipmentType,
)

logger = logging.getLogger(__name__)

FORWARD_STATUSES = (
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.DISPATCHED,
)
AFTER_DELIVERY_STATUSES = (OrderStatus.DELIVERED, OrderStatus.COMPLETED)

ALLOWED_STATUSES: dict[ShipmentType, tuple[OrderStatus, ...]] = {
    ShipmentType.FORWARD: FORWARD_STATUSES,
    ShipmentType.MPS: FORWARD_STATUSES,
    ShipmentType.REVERSE: AFTER_DELIVERY_STATUSES,
    ShipmentType.REPLACEMENT: AFTER_DELIVERY_STATUSES,
}


class OrderStateMachine:
    """Checks and applies the order transition for each shipment type.

    ``apply`` never writes; it returns a new ``Order`` for the caller to
    persist in a single conditional write.
    """

    def check_preconditions(
        self, order: Order, shipment_type: ShipmentType
    ) -> None:
        allowed = ALLOWED_STATUSES[shipment_type]
        if order.status not in allowed:
            raise PreconditionError(
                f"Order must be in one of these statuses: "
                f"{', '.join(allowed)} for {shipment_type} shipment",
                details={"status": order.status, "allowed": list(allowed)},
            )
        if shipment_type is ShipmentType.FORWARD and order.shipment_created:
            raise PreconditionError(
                "Forward shipment already created for this order"
            )
        if (
            shipment_type is ShipmentType.REVERSE
            and order.reverse_shipment is not None
        ):
            raise PreconditionError(
                "Reverse shipment already created for this order"
            )
        if (
            shipment_type is ShipmentType.REPLACEMENT
            and order.replacement_shipment is not None
        ):
            raise PreconditionError(
                "Replacement shipment already created for this order"
            )

    def apply(
        self,
        order: Order,
        request: ShipmentCreateRequest,
        outcome: ShipmentOutcome,
        pickup_location: str,
        now: datetime,
    ) -> Order:
        shipment_type = ShipmentType(request.shipment_type)
        waybills = list(outcome.waybills)
        common = {
            "waybill_numbers": waybills,
            "pickup_location": pickup_location,
            "created_at": now,
            "carrier_response": outcome.carrier_response,
            "outcome_kind": outcome.kind,
            "remark": outcome.remark,
        }
        update: dict = {"updated_at": now}

        if shipment_type in (ShipmentType.FORWARD, ShipmentType.MPS):
            if shipment_type is ShipmentType.MPS:
                common["master_waybill"] = waybills[0]
                common["child_waybills"] = waybills[1:]
            record = ForwardShipment(
                **common,
                shipment_type=shipment_type.value,
                shipping_mode=request.shipping_mode,
                weight=request.weight,
                dimensions=request.dimensions,
                packages=request.packages or [],
            )
            update.update(
                shipment_created=True,
                status=OrderStatus.DISPATCHED,
                order_items=[
                    item.model_copy(
                        update={
                            "status": OrderStatus.DISPATCHED.value,
                            "waybill_number": waybills[0],
                        }
                    )
                    for item in order.order_items
                ],
            )
        elif shipment_type is ShipmentType.REVERSE:
            record = ReverseShipment(**common)
            update["status"] = OrderStatus.RETURN_INITIATED
        else:
            record = ReplacementShipment(**common)
            update["status"] = OrderStatus.REPLACEMENT_INITIATED

        update["shipments"] = [
            existing
            for existing in order.shipments
            if existing.kind != record.kind
        ] + [record]
        logger.info(
            "Order %s: %s -> %s (%s shipment)",
            order.id,
            order.status,
            update["status"],
            shipment_type,
        )
        return order.model_copy(update=update)

    def recorded_waybills(
        self, order: Order, shipment_type: ShipmentType
    ) -> list[str]:
        """Waybills already stored on ``order`` for this shipment kind."""
        if shipment_type is ShipmentType.REVERSE:
            record = order.reverse_shipment
        elif shipment_type is ShipmentType.REPLACEMENT:
            record = order.replacement_shipment
        else:
            record = order.shipment_details
        return list(record.waybill_numbers) if record else []

    def available_actions(self, order: Order) -> list[str]:

        """Shipment types that can currently be created for ``order``."""
        forward = (
            not order.shipment_created and order.status in FORWARD_STATUSES
        )
        delivered = order.status in AFTER_DELIVERY_STATUSES
        candidates = (
            (ShipmentType.FORWARD, forward),
            (
                ShipmentType.REVERSE,
                delivered and order.reverse_shipment is None,
            ),
            (
                ShipmentType.REPLACEMENT,
                delivered and order.replacement_shipment is None,
            ),
            (ShipmentType.MPS, forward),
        )
        return [kind.value for kind, allowed in candidates if allowed]
