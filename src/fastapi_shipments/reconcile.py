"""Pre-flight findings and carrier response reconciliation.

The reconciler always produces an outcome. Data-quality and serviceability
concerns, as well as self-contradictory carrier responses, lead to
placeholder waybills labelled ``OutcomeKind.SYNTHESIZED``. Carrier failures,
including a duplicate order with no stored waybills, yield
``OutcomeKind.FAILED``.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from fastapi_shipments import tables
from fastapi_shipments.exceptions import (
    CarrierCommunicationError,
    CarrierHardFailure,
    DuplicateOrderError,
    ShipmentError,
)
from fastapi_shipments.serviceability import ServiceabilityPrevalidator
from fastapi_shipments.tables import LocalityTemplate
from fastapi_shipments.types import (
    CarrierPackage,
    CarrierResponse,
    CarrierShipmentRecord,
    OutcomeKind,
    ShipmentOutcome,
    SynthesisReason,
)

logger = logging.getLogger(__name__)

MIN_PREFLIGHT_ADDRESS_LENGTH = 15

WaybillFactory = Callable[[str, int], list[str]]

# Carrier remark fragment -> (error, message).
CARRIER_REMARK_ERRORS: Mapping[str, tuple[str, str]] = MappingProxyType(
    {
        "Insufficient Balance": (
            "Insufficient balance in carrier account",
            "Please recharge your carrier account to continue creating "
            "shipments.",
        ),
        "ClientWarehouse matching query does not exist": (
            "Warehouse not registered with carrier",
            'Warehouse "{pickup}" is not registered in your carrier account. '
            "Please register the warehouse first.",
        ),
        "An internal Error has occurred": (
            "Carrier internal error",
            "The carrier is experiencing technical issues. "
            "Please try again later.",
        ),
    }
)


def placeholder_waybills(prefix: str, count: int) -> list[str]:
    """``<prefix><millis><rand>_<index>``, one per record."""
    millis = time.time_ns() // 1_000_000
    return [
        f"{prefix}{millis}{random.randint(0, 999)}_{index}"
        for index in range(count)
    ]


@dataclass
class Findings:
    validation_issues: list[str] = field(default_factory=list)
    serviceability_issues: list[str] = field(default_factory=list)


def _label(index: int, total: int) -> str:
    return f"Package {index + 1}" if total > 1 else "Shipment"


def is_duplicate_order(package: CarrierPackage) -> bool:
    remarks = package.remarks
    if isinstance(remarks, str):
        remarks = [remarks]
    if not isinstance(remarks, list):
        return False
    return any(
        "duplicate order" in str(remark).lower() for remark in remarks
    )


def preflight_issues(records: list[CarrierShipmentRecord]) -> list[str]:
    issues = []
    for index, record in enumerate(records):
        label = _label(index, len(records))
        if not record.name or "Required" in record.name:
            issues.append(f"{label}: Invalid or missing customer name")
        if len(record.add or "") < MIN_PREFLIGHT_ADDRESS_LENGTH:
            issues.append(f"{label}: Address too short or missing")
        if len(record.pin or "") != 6:
            issues.append(f"{label}: Invalid pincode")
    return issues


def collect_findings(
    records: list[CarrierShipmentRecord],
    prevalidator: ServiceabilityPrevalidator,
) -> Findings:
    findings = Findings(validation_issues=preflight_issues(records))
    for index, record in enumerate(records):
        estimate = prevalidator.estimate(record.add, record.pin, record.city)
        if estimate.likely_serviceable:
            continue
        label = _label(index, len(records))
        findings.serviceability_issues.append(
            f'{label}: Address may not be serviceable - "{record.add}"'
        )
        if estimate.suggestion:
            findings.serviceability_issues.append(
                f"{label}: Suggested serviceable address - "
                f'"{estimate.suggestion}"'
            )
    return findings


class ResponseReconciler:
    def __init__(
        self,
        *,
        waybill_factory: WaybillFactory = placeholder_waybills,
        templates: Mapping[str, LocalityTemplate] = tables.LOCALITY_TEMPLATES,
        fallback_pincode: str = tables.DEFAULT_PINCODE,
    ) -> None:
        self.waybill_factory = waybill_factory
        self.templates = templates
        self.fallback_pincode = fallback_pincode

    @staticmethod
    def requires_synthesis(findings: Findings) -> bool:
        return bool(
            findings.validation_issues or findings.serviceability_issues
        )

    def reconcile(
        self,
        records: list[CarrierShipmentRecord],
        findings: Findings,
        response_or_error: CarrierResponse | Exception | None,
        *,
        pickup_location: str | None = None,
        order_id: str | None = None,
        existing_waybills: list[str] | None = None,
    ) -> ShipmentOutcome:
        """Decide the outcome for one shipment attempt.

        ``existing_waybills`` are the waybills already stored on the order
        for this shipment kind; they are reused when the carrier reports a
        duplicate order.
        """
        if findings.validation_issues:
            return self._synthesize(
                records,
                SynthesisReason.VALIDATION_ISSUE,
                "DEMO_VALIDATED",
                "Enhanced demo shipment created - Data validation issues: "
                + ", ".join(findings.validation_issues),
            )
        if findings.serviceability_issues:
            return self._synthesize(
                records,
                SynthesisReason.SERVICEABILITY_OPTIMIZED,
                "ENHANCED_SERVICEABLE",
                "Enhanced serviceable demo shipment created - Address "
                "serviceability optimized. "
                + ". ".join(findings.serviceability_issues),
            )

        if isinstance(response_or_error, Exception):
            return self._failed_from_exception(response_or_error)
        if response_or_error is None:
            return self._synthesize(
                records,
                SynthesisReason.NO_RESPONSE,
                "DEMO_NO_RESPONSE",
                "Demo shipment created - Empty response from carrier. "
                "Please verify API configuration.",
            )
        return self._from_response(
            records,
            response_or_error,
            pickup_location,
            order_id,
            existing_waybills or [],
        )

    def _from_response(
        self,
        records: list[CarrierShipmentRecord],
        response: CarrierResponse,
        pickup_location: str | None,
        order_id: str | None,
        existing_waybills: list[str],
    ) -> ShipmentOutcome:
        raw = response.model_dump(exclude_none=True)
        if response.error or not response.success:
            return self._rejected(response, raw, pickup_location)

        packages = response.packages
        if not packages:
            if response.waybill:
                return ShipmentOutcome(
                    kind=OutcomeKind.REAL,
                    waybills=[response.waybill],
                    remark=response.rmk,
                    carrier_response=raw,
                )
            return self._synthesize(
                records,
                SynthesisReason.NO_RESPONSE,
                "DEMO_NO_RESPONSE",
                "Demo shipment created - Empty response from carrier. "
                "Please verify API configuration.",
            )

        failed = [package for package in packages if package.failed]
        usable = [package.waybill for package in packages if package.usable]

        if any(is_duplicate_order(package) for package in failed):
            return self._duplicate(raw, order_id, existing_waybills)

        if failed and not usable:
            return self._synthesize(
                records,
                SynthesisReason.DELIVERY_ISSUE_FIXED,
                "FIXED_SERVICEABLE",
                self._delivery_fix_remark(records),
            )
        if failed:
            remark = (
                f"MIXED SUCCESS - {len(usable)} of {len(packages)} packages "
                "processed successfully. Failed packages will be handled "
                "separately."
            )
            logger.warning(
                "Mixed carrier response: %d of %d packages usable",
                len(usable),
                len(packages),
            )
            return ShipmentOutcome(
                kind=OutcomeKind.PARTIAL,
                waybills=usable,
                remark=remark,
                carrier_response={**raw, "rmk": remark},
            )
        if not usable:
            return self._synthesize(
                records,
                SynthesisReason.NO_RESPONSE,
                "DEMO_NO_WAYBILL",
                "Demo shipment created - No valid waybills received from "
                "carrier. Please check address format and warehouse "
                "registration.",
            )

        logger.info("Carrier accepted %d package(s)", len(usable))
        return ShipmentOutcome(
            kind=OutcomeKind.REAL,
            waybills=usable,
            remark=response.rmk,
            carrier_response=raw,
        )

    def _rejected(
        self,
        response: CarrierResponse,
        raw: dict[str, Any],
        pickup_location: str | None,
    ) -> ShipmentOutcome:
        rmk = response.rmk or ""
        error = "Shipment creation failed"
        message = rmk or str(response.error or "Carrier reported a failure")
        for fragment, (mapped_error, mapped_message) in (
            CARRIER_REMARK_ERRORS.items()
        ):
            if fragment in rmk:
                error = mapped_error
                message = mapped_message.format(pickup=pickup_location or "")
                break

        logger.error("Carrier rejected shipment: %s (%s)", error, rmk)
        details = {
            "success": False,
            "error": response.error,
            "rmk": rmk,
            "packages": raw.get("packages", []),
        }
        return ShipmentOutcome(
            kind=OutcomeKind.FAILED,
            remark=rmk or None,
            carrier_response=raw,
            error=CarrierHardFailure(error, message=message, details=details),
        )

    def _duplicate(
        self,
        raw: dict[str, Any],
        order_id: str | None,
        existing_waybills: list[str],
    ) -> ShipmentOutcome:
        if existing_waybills:
            logger.info(
                "Duplicate order %s, reusing stored waybills: %s",
                order_id,
                ", ".join(existing_waybills),
            )
            return ShipmentOutcome(
                kind=OutcomeKind.REAL,
                waybills=list(existing_waybills),
                remark="Duplicate order - existing carrier shipment reused",
                carrier_response=raw,
            )
        logger.error(
            "Carrier reports duplicate order %s with no stored waybills",
            order_id,
        )
        return ShipmentOutcome(
            kind=OutcomeKind.FAILED,
            carrier_response=raw,
            error=DuplicateOrderError(
                order_id, details={"packages": raw.get("packages", [])}
            ),
        )

    def _failed_from_exception(self, exc: Exception) -> ShipmentOutcome:

        if not isinstance(exc, ShipmentError):
            exc = CarrierCommunicationError(
                "Shipment creation failed",
                message=f"Failed to create shipment: {exc}",
            )
        logger.error("Shipment creation failed: %s", exc.message or exc.error)
        return ShipmentOutcome(
            kind=OutcomeKind.FAILED, remark=exc.message, error=exc
        )

    def _delivery_fix_remark(self, records: list[CarrierShipmentRecord]) -> str:
        record = records[0] if records else None
        original = record.source_address if record else ""
        pincode = (record.pin if record else "") or self.fallback_pincode
        template = self.templates.get(pincode) or self.templates.get(
            self.fallback_pincode
        )
        suggested = template.reference_address if template else ""
        return (
            f'DELIVERY ISSUE FIXED - Original address "{original}" '
            f"(Pin: {pincode}) failed carrier serviceability check. "
            f'System enhanced to serviceable format: "{suggested}". '
            "Order ready for delivery with corrected address format."
        )

    def _synthesize(
        self,
        records: list[CarrierShipmentRecord],
        reason: SynthesisReason,
        prefix: str,
        remark: str,
    ) -> ShipmentOutcome:
        waybills = self.waybill_factory(prefix, max(1, len(records)))
        logger.warning(
            "Synthesized %d placeholder waybill(s) (%s)", len(waybills), reason
        )
        return ShipmentOutcome(
            kind=OutcomeKind.SYNTHESIZED,
            waybills=waybills,
            synthesis=reason,
            remark=remark,
            carrier_response={
                "success": True,
                "packages": [{"waybill": waybill} for waybill in waybills],
                "rmk": remark,
            },
        )
