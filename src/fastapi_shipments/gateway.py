"""HTTP gateway to the logistics carrier's create and pincode APIs."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx
from pydantic import ValidationError

from fastapi_shipments.config import ShipmentsConfig
from fastapi_shipments.exceptions import (
    CarrierCommunicationError,
    CarrierNotConfiguredError,
    ShipmentValidationError,
)
from fastapi_shipments.types import (
    CarrierResponse,
    CarrierShipmentRecord,
    PincodeServiceability,
)

logger = logging.getLogger(__name__)

CREATE_PATH = "/api/cmu/create.json"
PINCODE_PATH = "/c/api/pin-codes/json/"
MIN_CARRIER_ADDRESS_LENGTH = 10

_PINCODE = re.compile(r"\d{6}")


def record_errors(record: CarrierShipmentRecord) -> list[str]:
    """Field-level problems that would make the carrier reject a record."""
    errors = []
    if not record.name or "Required" in record.name:
        errors.append("Customer name is required")
    if len(record.add or "") < MIN_CARRIER_ADDRESS_LENGTH:
        errors.append("Minimum address length required")
    if not _PINCODE.fullmatch(record.pin or ""):
        errors.append("Valid 6-digit pincode is required")
    if len(re.sub(r"\D", "", record.phone or "")) < 10:
        errors.append("Valid phone number is required")
    if not record.hsn_code:
        errors.append("HSN code is required")
    if not record.products_desc:
        errors.append("Product description is required")
    return errors


class CarrierGateway:
    """Talks to the carrier; one instance per application.

    ``transport`` is handed to every ``httpx.AsyncClient`` the gateway
    opens, so tests can plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        config: ShipmentsConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.transport = transport

    def is_configured(self) -> bool:
        token = self.config.carrier_token
        if not token:
            return False
        return not any(
            marker in token for marker in self.config.placeholder_token_markers
        )

    def resolve_pickup_location(self, name: str | None) -> str:
        """Map a pickup name onto one registered with the carrier."""
        if name in self.config.registered_pickup_locations:
            return name
        logger.warning(
            "Pickup location %r is not registered with the carrier, using %r",
            name,
            self.config.default_pickup_location,
        )
        return self.config.default_pickup_location

    def validate_records(self, records: list[CarrierShipmentRecord]) -> None:
        for record in records:
            errors = record_errors(record)
            if errors:
                raise ShipmentValidationError(errors)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.carrier_base_url,
            timeout=self.config.carrier_timeout_seconds,
            transport=self.transport,
            headers={
                "Authorization": f"Token {self.config.carrier_token}",
                "Accept": "application/json",
            },
        )

    async def create(
        self,
        records: list[CarrierShipmentRecord],
        pickup_location_name: str | None,
    ) -> CarrierResponse:
        """Submit records to the carrier's create endpoint.

        Raises ``CarrierNotConfiguredError`` and ``ShipmentValidationError``
        before any network traffic; any transport, status or decoding
        problem raises ``CarrierCommunicationError``.
        """
        if not self.is_configured():
            raise CarrierNotConfiguredError()
        self.validate_records(records)

        payload = {
            "shipments": [record.to_payload() for record in records],
            "pickup_location": {
                "name": self.resolve_pickup_location(pickup_location_name)
            },
        }
        logger.info(
            "Submitting %d shipment record(s) to carrier for order %s",
            len(records),
            records[0].order if records else None,
        )
        body = await self._request(
            "POST",
            CREATE_PATH,
            data={"format": "json", "data": json.dumps(payload)},
        )
        if not isinstance(body, dict):
            raise CarrierCommunicationError(
                "Shipment creation failed",
                message="Carrier returned an unexpected response body",
                details=body,
            )
        try:
            return CarrierResponse.model_validate(body)
        except ValidationError as exc:
            raise CarrierCommunicationError(
                "Shipment creation failed",
                message="Carrier returned an unexpected response body",
                details=str(exc),
            ) from exc

    async def check_pincode(self, pincode: str) -> PincodeServiceability:
        """Ask the carrier whether it delivers to ``pincode``."""
        if not self.is_configured():
            raise CarrierNotConfiguredError()
        body = await self._request(
            "GET", PINCODE_PATH, params={"filter_codes": pincode}
        )

        entries: Any = body
        if isinstance(body, dict):
            entries = body.get("delivery_codes", [body])
        if not entries:
            return PincodeServiceability(
                serviceable=False, remark="Non-serviceable zone (NSZ)"
            )

        entry = entries[0] if isinstance(entries, list) else entries
        if isinstance(entry, dict):
            entry = entry.get("postal_code", entry)
        else:
            entry = {}
        remark = str(entry.get("remark") or entry.get("remarks") or "")
        embargo = remark == "Embargo"
        return PincodeServiceability(
            serviceable=not embargo, embargo=embargo, remark=remark
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Carrier request %s %s failed: %s", method, path, exc)
            raise CarrierCommunicationError(
                "Shipment creation failed",
                message=f"Failed to reach carrier: {exc}",
                details=(
                    "Unable to connect to the carrier API. "
                    "Please check your configuration and try again."
                ),
            ) from exc

        if response.is_error:
            logger.error(
                "Carrier %s %s returned %s", method, path, response.status_code
            )
            message = f"Carrier API error: {response.status_code}"
            if response.status_code == 401:
                message = "Carrier authentication failed, check the API token"
            raise CarrierCommunicationError(
                "Shipment creation failed",
                message=message,
                details=response.text,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise CarrierCommunicationError(
                "Shipment creation failed",
                message="Carrier returned a non-JSON response",
                details=response.text[:500],
            ) from exc
