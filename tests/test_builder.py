"""Carrier record builder tests."""

from __future__ import annotations

import pytest
from conftest import FIXED_TODAY, make_order, make_request

from fastapi_shipments.builder import (
    ShipmentRequestBuilder,
    resolve_payment_mode,
)
from fastapi_shipments.exceptions import InvalidShipmentRequest
from fastapi_shipments.tables import NAME_REQUIRED_MARKER
from fastapi_shipments.types import ShipmentType


@pytest.fixture()
def builder() -> ShipmentRequestBuilder:
    return ShipmentRequestBuilder(
        today=lambda: FIXED_TODAY,
        master_id_factory=lambda order_id: f"MASTER_{order_id}",
    )


@pytest.mark.parametrize(
    ("shipment_type", "payment_method", "expected"),
    [
        (ShipmentType.FORWARD, "cod", "COD"),
        (ShipmentType.FORWARD, " COD ", "COD"),
        (ShipmentType.FORWARD, "card", "Prepaid"),
        (ShipmentType.MPS, None, "Prepaid"),
        (ShipmentType.REVERSE, "cod", "Pickup"),
        (ShipmentType.REPLACEMENT, "cod", "REPL"),
    ],
)
def test_resolve_payment_mode(shipment_type, payment_method, expected) -> None:
    assert resolve_payment_mode(shipment_type, payment_method) == expected


class TestForwardRecord:
    def test_recipient_fields(self, builder, order, warehouse) -> None:
        [record] = builder.build(order, make_request(), warehouse)

        assert record.name == "Ananya Sen"
        assert record.add == "12 Park Street, Near New Market"
        assert record.pin == "700001"
        assert record.city == "Kolkata"
        assert record.state == "West Bengal"
        assert record.phone == "9876543210"
        assert record.country == "India"
        assert record.order == "order-1"

    def test_return_and_seller_fields(self, builder, order, warehouse) -> None:
        [record] = builder.build(order, make_request(), warehouse)

        assert record.return_name == "Main Warehouse"
        assert record.return_add == "Plot 4, Sector V, Salt Lake"
        assert record.return_pin == "700091"
        assert record.return_city == "Kolkata"
        assert record.return_state == "West Bengal"
        assert record.return_phone == "9830012345"
        assert record.seller_name == "Kolkata Traders"
        assert record.seller_add == "Plot 4, Sector V, Salt Lake"
        assert record.seller_inv == "INV-order-1"

    def test_amounts_dates_and_defaults(
        self, builder, order, warehouse
    ) -> None:
        [record] = builder.build(order, make_request(), warehouse)

        assert record.payment_mode == "COD"
        assert record.cod_amount == "1500"
        assert record.total_amount == "1500"
        assert record.order_date == "2024-05-01"
        assert record.send_date == "2024-05-06"
        assert record.end_date == "2024-05-13"
        assert record.quantity == "3"
        assert record.weight == "500"
        assert record.shipment_length == "10"
        assert record.shipping_mode == "Surface"
        assert record.products_desc == "Cotton shirt, Leather bag"
        assert record.hsn_code == "6205"
        assert record.fragile_shipment == "false"
        assert record.waybill is None

    def test_prepaid_order_has_zero_cod(self, builder, warehouse) -> None:
        order = make_order(paymentMethod="upi")
        [record] = builder.build(order, make_request(), warehouse)

        assert record.payment_mode == "Prepaid"
        assert record.cod_amount == "0"

    def test_order_date_defaults_to_today(self, builder, warehouse) -> None:
        order = make_order(createdAt=None)
        [record] = builder.build(order, make_request(), warehouse)

        assert record.order_date == "2024-05-06"

    def test_minimum_weight_and_dimensions(
        self, builder, order, warehouse
    ) -> None:
        request = make_request(
            weight=50,
            dimensions={"length": 0.5, "width": 12.5, "height": 3},
        )
        [record] = builder.build(order, request, warehouse)

        assert record.weight == "100"
        assert record.shipment_length == "1"
        assert record.shipment_width == "12.5"
        assert record.shipment_height == "3"

    def test_unusable_name_is_flagged(self, builder, warehouse) -> None:
        order = make_order(shipping_address={"firstName": "7", "lastName": ""})
        [record] = builder.build(order, make_request(), warehouse)

        assert record.name == NAME_REQUIRED_MARKER

    def test_custom_fields(self, builder, order, warehouse) -> None:
        request = make_request(
            customFields={
                "fragile_shipment": True,
                "hsn_code": "6109",
                "seller_inv": "SI-77",
                "ewb": "EWB-1",
            }
        )
        [record] = builder.build(order, request, warehouse)

        assert record.fragile_shipment == "true"
        assert record.hsn_code == "6109"
        assert record.seller_inv == "SI-77"
        assert record.ewb == "EWB-1"

    def test_explicit_hsn_code_wins(self, builder, order, warehouse) -> None:
        request = make_request(
            autoHsnCode="1234", customFields={"hsn_code": "6109"}
        )
        [record] = builder.build(order, request, warehouse)

        assert record.hsn_code == "1234"

    def test_category_hsn_code(self, builder, order, warehouse) -> None:
        [record] = builder.build(
            order, make_request(productCategory="books"), warehouse
        )
        assert record.hsn_code == "4901"

    def test_manual_waybill_requires_opt_out(
        self, builder, order, warehouse
    ) -> None:
        [auto] = builder.build(
            order, make_request(autoWaybill="WB123"), warehouse
        )
        [manual] = builder.build(
            order,
            make_request(
                autoWaybill="WB123",
                customFields={"auto_generate_waybill": False},
            ),
            warehouse,
        )

        assert auto.waybill is None
        assert manual.waybill == "WB123"

    def test_payload_uses_wire_keys(self, builder, order, warehouse) -> None:
        [record] = builder.build(order, make_request(), warehouse)
        payload = record.to_payload()

        assert payload["add"] == "12 Park Street, Near New Market"
        assert payload["address_type"] == "home"
        assert "source_address" not in payload
        assert "waybill" not in payload
        assert "master_id" not in payload


@pytest.mark.parametrize(
    ("shipment_type", "expected"),
    [("REVERSE", "Pickup"), ("REPLACEMENT", "REPL")],
)
def test_after_delivery_types_carry_no_cod(
    builder, order, warehouse, shipment_type, expected
) -> None:
    [record] = builder.build(
        order, make_request(shipmentType=shipment_type), warehouse
    )

    assert record.payment_mode == expected
    assert record.cod_amount == "0"


class TestMultiPiece:
    def test_one_record_per_package(self, builder, order, warehouse) -> None:
        request = make_request(
            shipmentType="MPS",
            packages=[{"weight": 1200}, {"weight": 800}],
        )
        records = builder.build(order, request, warehouse)

        assert [r.waybill for r in records] == [
            "MASTER_order-1_0",
            "MASTER_order-1_1",
        ]
        assert {r.master_id for r in records} == {"MASTER_order-1"}
        assert {r.mps_children for r in records} == {"2"}
        assert {r.mps_amount for r in records} == {"1500"}
        assert {r.shipment_type for r in records} == {"MPS"}
        assert [r.weight for r in records] == ["1200", "800"]

    def test_first_package_waybill_is_master(
        self, builder, order, warehouse
    ) -> None:
        request = make_request(
            shipmentType="MPS",
            packages=[{"waybill": "PKG-1"}, {}, {"waybill": "PKG-3"}],
        )
        records = builder.build(order, request, warehouse)

        assert {r.master_id for r in records} == {"PKG-1"}
        assert [r.waybill for r in records] == ["PKG-1", "PKG-1_1", "PKG-3"]

    def test_prepaid_mps_amount_is_zero(self, builder, warehouse) -> None:
        order = make_order(paymentMethod="card")
        request = make_request(shipmentType="MPS", packages=[{}])
        [record] = builder.build(order, request, warehouse)

        assert record.mps_amount == "0"
        assert record.weight == "500"

    def test_package_dimensions_override_request(
        self, builder, order, warehouse
    ) -> None:
        request = make_request(
            shipmentType="MPS",
            dimensions={"length": 20, "width": 20, "height": 20},
            packages=[
                {"dimensions": {"length": 5, "width": 6, "height": 7}},
                {},
            ],
        )
        first, second = builder.build(order, request, warehouse)

        assert first.shipment_length == "5"
        assert second.shipment_length == "20"

    def test_empty_packages_rejected(self, builder, order, warehouse) -> None:
        request = make_request(shipmentType="MPS", packages=[])

        with pytest.raises(InvalidShipmentRequest, match="packages"):
            builder.build(order, request, warehouse)
