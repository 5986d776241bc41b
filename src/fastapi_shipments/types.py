"""Domain types for orders, warehouses, carrier records and outcomes.

Order and warehouse documents keep camelCase field names when serialized,
matching how they are stored. Carrier records use the carrier's own wire
keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ShipmentType(StrEnum):
    FORWARD = "FORWARD"
    REVERSE = "REVERSE"
    REPLACEMENT = "REPLACEMENT"
    MPS = "MPS"


class ShippingMode(StrEnum):
    SURFACE = "Surface"
    EXPRESS = "Express"


class OrderStatus(StrEnum):
    NOT_PROCESSED = "Not Processed"
    CONFIRMED = "Confirmed"
    PROCESSING = "Processing"
    DISPATCHED = "Dispatched"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    PROCESSING_REFUND = "Processing Refund"
    RETURN_INITIATED = "Return Initiated"
    REPLACEMENT_INITIATED = "Replacement Initiated"


class OutcomeKind(StrEnum):
    REAL = "real"
    PARTIAL = "partial"
    SYNTHESIZED = "synthesized"
    FAILED = "failed"


class SynthesisReason(StrEnum):
    VALIDATION_ISSUE = "validation issue"
    SERVICEABILITY_OPTIMIZED = "serviceability optimized"
    DELIVERY_ISSUE_FIXED = "delivery issue fixed"
    NO_RESPONSE = "no response"


class DocumentModel(BaseModel):
    """Base for persisted documents with camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class Address(DocumentModel):
    first_name: str = ""
    last_name: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    phone_number: str = ""
    country: str = "India"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def street(self) -> str:
        if self.address2:
            return f"{self.address1}, {self.address2}"
        return self.address1


class OrderItem(DocumentModel):
    name: str = ""
    qty: int = 1
    price: float = 0
    status: str | None = None
    waybill_number: str | None = None


class Dimensions(DocumentModel):
    length: float
    width: float
    height: float


class Package(DocumentModel):
    weight: float | None = None
    dimensions: Dimensions | None = None
    waybill: str | None = None


class CustomFields(BaseModel):
    """Merchant-supplied carrier flags; keys are the carrier's own."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    fragile_shipment: bool = False
    dangerous_good: bool = False
    plastic_packaging: bool = False
    auto_generate_waybill: bool | None = None
    hsn_code: str | None = None
    seller_inv: str | None = None
    ewb: str | None = None


class ShipmentCreateRequest(DocumentModel):
    """Inbound request to create one shipment for one order.

    Required fields are optional here so that missing values are reported
    as shipment validation errors rather than schema errors.
    """

    order_id: str | None = None
    shipment_type: str | None = None
    pickup_location: str | None = None
    shipping_mode: ShippingMode = ShippingMode.SURFACE
    weight: float | None = None
    dimensions: Dimensions | None = None
    packages: list[Package] | None = None
    product_category: str | None = None
    estimated_value: float | None = None
    auto_hsn_code: str | None = None
    auto_waybill: str | None = None
    custom_fields: CustomFields = Field(default_factory=CustomFields)


class Warehouse(DocumentModel):
    name: str
    registered_name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pin: str = ""
    phone: str = ""
    country: str = "India"
    return_address: str = ""
    return_city: str = ""
    return_state: str = ""
    return_pin: str = ""
    return_country: str = ""
    active: bool = True
    registered_with_carrier: bool = False

    @property
    def location(self) -> str:
        return ", ".join(part for part in (self.city, self.state) if part)


class _ShipmentRecord(DocumentModel):
    waybill_numbers: list[str]
    pickup_location: str
    created_at: datetime
    carrier_response: dict[str, Any] = Field(default_factory=dict)
    outcome_kind: OutcomeKind = OutcomeKind.REAL
    remark: str | None = None


class ForwardShipment(_ShipmentRecord):
    kind: Literal["FORWARD"] = "FORWARD"
    shipment_type: Literal["FORWARD", "MPS"] = "FORWARD"
    shipping_mode: ShippingMode = ShippingMode.SURFACE
    weight: float | None = None
    dimensions: Dimensions | None = None
    packages: list[Package] = Field(default_factory=list)
    master_waybill: str | None = None
    child_waybills: list[str] = Field(default_factory=list)


class ReverseShipment(_ShipmentRecord):
    kind: Literal["REVERSE"] = "REVERSE"
    reason: str = "Return request"


class ReplacementShipment(_ShipmentRecord):
    kind: Literal["REPLACEMENT"] = "REPLACEMENT"
    reason: str = "Replacement request"


ShipmentSubRecord = Annotated[
    ForwardShipment | ReverseShipment | ReplacementShipment,
    Field(discriminator="kind"),
]


class Order(DocumentModel):
    """Order aggregate as seen by the shipment pipeline."""

    id: str
    status: OrderStatus
    shipping_address: Address = Field(default_factory=Address)
    order_items: list[OrderItem] = Field(default_factory=list)
    payment_method: str = ""
    total: float = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    shipment_created: bool = False
    version: int = 0
    shipments: list[ShipmentSubRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _one_shipment_per_kind(self) -> Order:
        kinds = [record.kind for record in self.shipments]
        if len(kinds) != len(set(kinds)):
            raise ValueError("an order holds at most one shipment per kind")
        return self

    def _shipment(self, kind: str) -> Any:
        for record in self.shipments:
            if record.kind == kind:
                return record
        return None

    @property
    def shipment_details(self) -> ForwardShipment | None:
        return self._shipment("FORWARD")

    @property
    def reverse_shipment(self) -> ReverseShipment | None:
        return self._shipment("REVERSE")

    @property
    def replacement_shipment(self) -> ReplacementShipment | None:
        return self._shipment("REPLACEMENT")


class CarrierShipmentRecord(BaseModel):
    """One physical package, keyed exactly as the carrier expects."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str
    add: str
    pin: str
    city: str
    state: str
    country: str
    phone: str
    order: str
    payment_mode: str
    return_pin: str
    return_city: str
    return_phone: str
    return_add: str
    return_state: str
    return_country: str
    return_name: str
    products_desc: str
    hsn_code: str
    cod_amount: str
    order_date: str
    send_date: str
    end_date: str
    total_amount: str
    seller_add: str
    seller_name: str
    seller_inv: str
    quantity: str
    shipment_width: str
    shipment_height: str
    shipment_length: str
    weight: str
    shipping_mode: str
    address_type: str = "home"
    fragile_shipment: str = "false"
    dangerous_good: str = "false"
    plastic_packaging: str = "false"
    ewb: str = ""
    shipment_type: str | None = None
    mps_amount: str | None = None
    mps_children: str | None = None
    master_id: str | None = None
    waybill: str | None = None

    # Address as entered, before normalization; kept for diagnostics only.
    source_address: str = Field(default="", exclude=True)

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(exclude_none=True)


class CarrierPackage(BaseModel):
    model_config = ConfigDict(extra="allow")

    waybill: str | None = None
    status: str | None = None
    serviceable: bool | None = None
    remarks: Any = None

    @property
    def failed(self) -> bool:
        return self.status == "Fail" or self.serviceable is False

    @property
    def usable(self) -> bool:
        return not self.failed and bool(self.waybill)


class CarrierResponse(BaseModel):
    """Parsed create-shipment response. Fields may contradict each other."""

    model_config = ConfigDict(extra="allow")

    success: bool = False
    packages: list[CarrierPackage] = Field(default_factory=list)
    rmk: str | None = None
    waybill: str | None = None
    error: Any = None


@dataclass(frozen=True)
class ShipmentOutcome:
    """How the final waybills for a shipment were obtained."""

    kind: OutcomeKind
    waybills: list[str] = field(default_factory=list)
    synthesis: SynthesisReason | None = None
    remark: str | None = None
    carrier_response: dict[str, Any] = field(default_factory=dict)
    error: Exception | None = None


@dataclass(frozen=True)
class PincodeServiceability:
    serviceable: bool
    embargo: bool = False
    remark: str = ""
