"""Heuristic address serviceability pre-check.

This never blocks a request. It only decides whether the real carrier call
is worth attempting or the outcome should be synthesized straight away.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

from fastapi_shipments import tables
from fastapi_shipments.tables import LocalityTemplate

MIN_KNOWN_ADDRESS_LENGTH = 15
MIN_UNKNOWN_ADDRESS_LENGTH = 20

_GARBAGE_ADDRESS = re.compile(r"^\w+\s*\d+\s*,?\s*n?$")
_LOCALITY_MARKERS = re.compile(
    r"\b(township|sector|block|near)\b", re.IGNORECASE
)


class Confidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ServiceabilityEstimate:
    likely_serviceable: bool
    confidence: Confidence
    suggestion: str | None = None


class ServiceabilityPrevalidator:
    """Estimates whether the carrier will accept an address."""

    def __init__(
        self,
        *,
        templates: Mapping[str, LocalityTemplate] = tables.LOCALITY_TEMPLATES,
    ) -> None:
        self.templates = templates

    def estimate(
        self, address: str, pincode: str, city: str
    ) -> ServiceabilityEstimate:
        address = address or ""
        template = self.templates.get(pincode)
        if template is None:
            return ServiceabilityEstimate(
                likely_serviceable=len(address) >= MIN_UNKNOWN_ADDRESS_LENGTH,
                confidence=Confidence.LOW,
                suggestion=(
                    f"Complete address with locality, {city}, West Bengal"
                ),
            )

        if len(address) < MIN_KNOWN_ADDRESS_LENGTH or _GARBAGE_ADDRESS.match(
            address
        ):
            return ServiceabilityEstimate(
                likely_serviceable=False,
                confidence=Confidence.LOW,
                suggestion=template.reference_address,
            )
        if _LOCALITY_MARKERS.search(address):
            return ServiceabilityEstimate(
                likely_serviceable=True, confidence=Confidence.HIGH
            )
        return ServiceabilityEstimate(
            likely_serviceable=True,
            confidence=Confidence.MEDIUM,
            suggestion=template.reference_address,
        )
