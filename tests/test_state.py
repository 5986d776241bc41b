"""Order state machine tests."""

from __future__ import annotations

import pytest
from conftest import FIXED_NOW, make_order, make_request

from fastapi_shipments.exceptions import PreconditionError
from fastapi_shipments.state import OrderStateMachine
from fastapi_shipments.types import (
    ForwardShipment,
    OrderStatus,
    OutcomeKind,
    ReverseShipment,
    ShipmentOutcome,
    ShipmentType,
)


@pytest.fixture()
def machine() -> OrderStateMachine:
    return OrderStateMachine()


def _outcome(*waybills: str) -> ShipmentOutcome:
    return ShipmentOutcome(
        kind=OutcomeKind.REAL,
        waybills=list(waybills),
        remark="ok",
        carrier_response={"success": True},
    )


def _reverse_record() -> ReverseShipment:
    return ReverseShipment(
        waybill_numbers=["R1"],
        pickup_location="Main Warehouse",
        created_at=FIXED_NOW,
    )


class TestPreconditions:
    @pytest.mark.parametrize(
        ("status", "shipment_type"),
        [
            ("Confirmed", ShipmentType.FORWARD),
            ("Processing", ShipmentType.FORWARD),
            ("Dispatched", ShipmentType.MPS),
            ("Delivered", ShipmentType.REVERSE),
            ("Completed", ShipmentType.REPLACEMENT),
        ],
    )
    def test_allowed(self, machine, status, shipment_type) -> None:
        machine.check_preconditions(make_order(status=status), shipment_type)

    @pytest.mark.parametrize(
        ("status", "shipment_type"),
        [
            ("Not Processed", ShipmentType.FORWARD),
            ("Delivered", ShipmentType.MPS),
            ("Processing", ShipmentType.REVERSE),
            ("Cancelled", ShipmentType.REPLACEMENT),
        ],
    )
    def test_wrong_status(self, machine, status, shipment_type) -> None:
        with pytest.raises(PreconditionError) as exc_info:
            machine.check_preconditions(
                make_order(status=status), shipment_type
            )

        assert str(exc_info.value).startswith(
            "Order must be in one of these statuses:"
        )
        assert exc_info.value.details["status"] == status

    def test_reverse_message_lists_statuses(self, machine) -> None:
        with pytest.raises(PreconditionError) as exc_info:
            machine.check_preconditions(
                make_order(status="Processing"), ShipmentType.REVERSE
            )

        assert exc_info.value.error == (
            "Order must be in one of these statuses: Delivered, Completed "
            "for REVERSE shipment"
        )

    def test_forward_only_once(self, machine) -> None:
        order = make_order(status="Dispatched", shipmentCreated=True)

        with pytest.raises(PreconditionError, match="already created"):
            machine.check_preconditions(order, ShipmentType.FORWARD)

    def test_mps_ignores_shipment_created(self, machine) -> None:
        order = make_order(status="Dispatched", shipmentCreated=True)
        machine.check_preconditions(order, ShipmentType.MPS)

    def test_reverse_only_once(self, machine) -> None:
        order = make_order(status="Delivered", shipments=[_reverse_record()])

        with pytest.raises(PreconditionError, match="Reverse shipment"):
            machine.check_preconditions(order, ShipmentType.REVERSE)


class TestApply:
    def test_forward(self, machine, order) -> None:
        updated = machine.apply(
            order,
            make_request(weight=750),
            _outcome("ABC1234567"),
            "Main Warehouse",
            FIXED_NOW,
        )

        assert updated.status is OrderStatus.DISPATCHED
        assert updated.shipment_created is True
        assert updated.updated_at == FIXED_NOW
        assert {item.status for item in updated.order_items} == {
            "Dispatched"
        }
        assert {item.waybill_number for item in updated.order_items} == {
            "ABC1234567"
        }
        record = updated.shipment_details
        assert isinstance(record, ForwardShipment)
        assert record.waybill_numbers == ["ABC1234567"]
        assert record.pickup_location == "Main Warehouse"
        assert record.weight == 750
        assert record.outcome_kind is OutcomeKind.REAL
        assert record.master_waybill is None

    def test_input_order_is_untouched(self, machine, order) -> None:
        before = order.model_dump()
        machine.apply(
            order, make_request(), _outcome("W1"), "Main Warehouse", FIXED_NOW
        )

        assert order.model_dump() == before

    def test_mps_records_master_and_children(self, machine, order) -> None:
        request = make_request(shipmentType="MPS", packages=[{}, {}, {}])

        updated = machine.apply(
            order, request, _outcome("M1", "C1", "C2"), "co-pal-ul", FIXED_NOW
        )

        record = updated.shipment_details
        assert record.shipment_type == "MPS"
        assert record.master_waybill == "M1"
        assert record.child_waybills == ["C1", "C2"]
        assert len(record.packages) == 3
        assert updated.shipment_created is True

    def test_mps_replaces_forward_record(self, machine, order) -> None:
        forwarded = machine.apply(
            order, make_request(), _outcome("W1"), "Main Warehouse", FIXED_NOW
        )
        request = make_request(shipmentType="MPS", packages=[{}, {}])

        updated = machine.apply(
            forwarded,
            request,
            _outcome("M1", "C1"),
            "Main Warehouse",
            FIXED_NOW,
        )

        assert len(updated.shipments) == 1
        assert updated.shipment_details.master_waybill == "M1"

    def test_reverse(self, machine) -> None:
        order = make_order(status="Delivered")

        updated = machine.apply(
            order,
            make_request(shipmentType="REVERSE"),
            _outcome("R1"),
            "Main Warehouse",
            FIXED_NOW,
        )

        assert updated.status is OrderStatus.RETURN_INITIATED
        assert updated.reverse_shipment.waybill_numbers == ["R1"]
        assert updated.reverse_shipment.reason == "Return request"
        assert updated.shipment_created is False

    def test_replacement_keeps_other_records(self, machine) -> None:
        order = make_order(status="Delivered", shipments=[_reverse_record()])

        updated = machine.apply(
            order,
            make_request(shipmentType="REPLACEMENT"),
            _outcome("P1"),
            "Main Warehouse",
            FIXED_NOW,
        )

        assert updated.status is OrderStatus.REPLACEMENT_INITIATED
        assert updated.replacement_shipment.waybill_numbers == ["P1"]
        assert updated.reverse_shipment.waybill_numbers == ["R1"]


class TestAvailableActions:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            ("Not Processed", []),
            ("Processing Refund", []),
            ("Confirmed", ["FORWARD", "MPS"]),
            ("Processing", ["FORWARD", "MPS"]),
            ("Dispatched", ["FORWARD", "MPS"]),
            ("Delivered", ["REVERSE", "REPLACEMENT"]),
            ("Completed", ["REVERSE", "REPLACEMENT"]),
            ("Cancelled", []),
        ],
    )
    def test_by_status(self, machine, status, expected) -> None:
        assert machine.available_actions(make_order(status=status)) == (
            expected
        )

    def test_forward_hidden_once_created(self, machine) -> None:
        order = make_order(status="Dispatched", shipmentCreated=True)
        assert machine.available_actions(order) == []

    def test_reverse_hidden_once_created(self, machine) -> None:
        order = make_order(status="Delivered", shipments=[_reverse_record()])
        assert machine.available_actions(order) == ["REPLACEMENT"]


class TestRecordedWaybills:
    def test_none_before_any_shipment(self, machine) -> None:
        assert machine.recorded_waybills(make_order(), ShipmentType.MPS) == []

    def test_matches_shipment_kind(self, machine) -> None:
        order = make_order(status="Delivered", shipments=[_reverse_record()])

        assert machine.recorded_waybills(order, ShipmentType.REVERSE) == [
            "R1"
        ]
        assert machine.recorded_waybills(order, ShipmentType.FORWARD) == []
