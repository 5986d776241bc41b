"""Builds carrier shipment records from an order and a shipment request."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import date, timedelta

from fastapi_shipments.exceptions import (
    InvalidNameError,
    InvalidShipmentRequest,
)
from fastapi_shipments.hsn import HSNResolver
from fastapi_shipments.normalize import AddressNormalizer, CleanedAddress
from fastapi_shipments.tables import NAME_REQUIRED_MARKER
from fastapi_shipments.types import (
    CarrierShipmentRecord,
    Dimensions,
    Order,
    Package,
    ShipmentCreateRequest,
    ShipmentType,
    Warehouse,
)

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT_GRAMS = 500
MIN_WEIGHT_GRAMS = 100
MIN_DIMENSION_CM = 1
DEFAULT_DIMENSIONS = Dimensions(length=10, width=10, height=10)
DELIVERY_WINDOW_DAYS = 7


def resolve_payment_mode(
    shipment_type: ShipmentType, payment_method: str | None
) -> str:
    """Map shipment type and order payment method to the carrier's mode."""
    if shipment_type is ShipmentType.REVERSE:
        return "Pickup"
    if shipment_type is ShipmentType.REPLACEMENT:
        return "REPL"
    if (payment_method or "").strip().lower() == "cod":
        return "COD"
    return "Prepaid"


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _flag(value: bool | None) -> str:
    return "true" if value else "false"


def _default_master_id(order_id: str) -> str:
    return f"MASTER_{order_id}_{uuid.uuid4().hex[:12]}"


class ShipmentRequestBuilder:
    """Turns one order plus one request into N carrier records.

    N is 1 except for MPS shipments, which produce one record per package
    sharing a single ``master_id``.
    """

    def __init__(
        self,
        normalizer: AddressNormalizer | None = None,
        hsn_resolver: HSNResolver | None = None,
        *,
        today: Callable[[], date] = date.today,
        master_id_factory: Callable[[str], str] = _default_master_id,
    ) -> None:
        self.normalizer = normalizer or AddressNormalizer()
        self.hsn_resolver = hsn_resolver or HSNResolver()
        self.today = today
        self.master_id_factory = master_id_factory

    def build(
        self,
        order: Order,
        request: ShipmentCreateRequest,
        warehouse: Warehouse,
    ) -> list[CarrierShipmentRecord]:
        shipment_type = ShipmentType(request.shipment_type)
        if shipment_type is not ShipmentType.MPS:
            return [self._record(order, request, warehouse, shipment_type)]

        packages = request.packages or []
        if not packages:
            raise InvalidShipmentRequest(
                "MPS shipments require packages array with at least one package"
            )
        master_id = packages[0].waybill or self.master_id_factory(order.id)
        payment_mode = resolve_payment_mode(shipment_type, order.payment_method)
        mps_amount = order.total if payment_mode == "COD" else 0

        records = []
        for index, package in enumerate(packages):
            record = self._record(
                order, request, warehouse, shipment_type, package
            )
            records.append(
                record.model_copy(
                    update={
                        "shipment_type": "MPS",
                        "mps_amount": _number(mps_amount),
                        "mps_children": str(len(packages)),
                        "master_id": master_id,
                        "waybill": package.waybill or f"{master_id}_{index}",
                    }
                )
            )
        logger.info(
            "Built %d MPS records for order %s under master %s",
            len(records),
            order.id,
            master_id,
        )
        return records

    def _record(
        self,
        order: Order,
        request: ShipmentCreateRequest,
        warehouse: Warehouse,
        shipment_type: ShipmentType,
        package: Package | None = None,
    ) -> CarrierShipmentRecord:
        shipping = order.shipping_address
        recipient = self._normalize_party(
            shipping.full_name,
            shipping.street,
            shipping.zip_code,
            shipping.city,
            shipping.state,
            shipping.phone_number,
        )
        return_pin = warehouse.return_pin or warehouse.pin
        return_party = self._normalize_party(
            warehouse.name or "Return Center",
            warehouse.return_address or warehouse.address,
            return_pin,
            warehouse.return_city or warehouse.city,
            warehouse.return_state or warehouse.state or "West Bengal",
            warehouse.phone,
        )
        seller = self._normalize_party(
            warehouse.registered_name or warehouse.name or "Seller",
            warehouse.address,
            warehouse.pin,
            warehouse.city,
            warehouse.state,
        )

        payment_mode = resolve_payment_mode(shipment_type, order.payment_method)
        cod_amount = order.total if payment_mode == "COD" else 0
        weight, dimensions = self._measurements(request, package)
        quantity = sum(item.qty for item in order.order_items)
        description = ", ".join(
            item.name for item in order.order_items if item.name
        )
        custom = request.custom_fields
        today = self.today()
        order_date = order.created_at.date() if order.created_at else today

        record = CarrierShipmentRecord(
            name=recipient.name,
            add=recipient.address,
            pin=recipient.pincode,
            city=recipient.city,
            state=recipient.state,
            country=(shipping.country or "India").strip(),
            phone=recipient.phone,
            order=order.id,
            payment_mode=payment_mode,
            return_pin=return_party.pincode,
            return_city=return_party.city,
            return_phone=return_party.phone,
            return_add=return_party.address,
            return_state=return_party.state,
            return_country=(
                warehouse.return_country or warehouse.country or "India"
            ).strip(),
            return_name=return_party.name,
            products_desc=self.hsn_resolver.clean_description(
                description or "Order Items"
            ),
            hsn_code=self.hsn_resolver.resolve(
                explicit_code=request.auto_hsn_code,
                custom_field_code=custom.hsn_code,
                category=request.product_category,
                description=description or None,
            ),
            cod_amount=_number(cod_amount),
            order_date=order_date.isoformat(),
            send_date=today.isoformat(),
            end_date=(today + timedelta(days=DELIVERY_WINDOW_DAYS)).isoformat(),
            total_amount=_number(order.total),
            seller_add=seller.address,
            seller_name=seller.name,
            seller_inv=custom.seller_inv or f"INV-{order.id}",
            quantity=str(max(1, quantity)),
            shipment_width=_number(max(MIN_DIMENSION_CM, dimensions.width)),
            shipment_height=_number(max(MIN_DIMENSION_CM, dimensions.height)),
            shipment_length=_number(max(MIN_DIMENSION_CM, dimensions.length)),
            weight=_number(max(MIN_WEIGHT_GRAMS, weight)),
            shipping_mode=str(request.shipping_mode),
            fragile_shipment=_flag(custom.fragile_shipment),
            dangerous_good=_flag(custom.dangerous_good),
            plastic_packaging=_flag(custom.plastic_packaging),
            ewb=custom.ewb or "",
            source_address=shipping.street,
        )
        if custom.auto_generate_waybill is False and request.auto_waybill:
            record = record.model_copy(update={"waybill": request.auto_waybill})
        return record

    def _normalize_party(
        self,
        name: str,
        address: str,
        pincode: str,
        city: str,
        state: str,
        phone: str | None = None,
    ) -> CleanedAddress:
        """Normalize one contact block.

        An unusable name is replaced by a marker that pre-flight
        validation recognizes instead of failing the whole build.
        """
        try:
            return self.normalizer.normalize(
                name, address, pincode, city, state, phone
            )
        except InvalidNameError:
            logger.warning("Unusable name %r, flagging for validation", name)
            return self.normalizer.normalize(
                NAME_REQUIRED_MARKER, address, pincode, city, state, phone
            )

    @staticmethod
    def _measurements(
        request: ShipmentCreateRequest, package: Package | None
    ) -> tuple[float, Dimensions]:
        weight = (
            (package.weight if package else None)
            or request.weight
            or DEFAULT_WEIGHT_GRAMS
        )
        dimensions = (
            (package.dimensions if package else None)
            or request.dimensions
            or DEFAULT_DIMENSIONS
        )
        return weight, dimensions
