"""Recipient and return-address normalization.

The carrier is strict about field shape while upstream order data is often
incomplete. Everything here degrades rather than fails, with one exception:
an unusable name raises ``InvalidNameError`` so the caller can decide how to
flag it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass

from fastapi_shipments import tables
from fastapi_shipments.exceptions import InvalidNameError
from fastapi_shipments.tables import LocalityTemplate

logger = logging.getLogger(__name__)

MAX_ADDRESS_LENGTH = 200
MAX_NAME_LENGTH = 50
INCOMPLETE_ADDRESS_LENGTH = 15
SHORT_ADDRESS_LENGTH = 25

_NON_ALPHA = re.compile(r"[^A-Za-z\s]")
_NON_DIGIT = re.compile(r"\D")
_ADDRESS_DISALLOWED = re.compile(r"[^A-Za-z0-9,.\- ]")
_WHITESPACE = re.compile(r"\s+")
_PINCODE = re.compile(r"[1-9][0-9]{5}")
# "A11 577 n", "B4 12," ...: a short token, digits and a dangling character.
_TRUNCATED = (
    re.compile(r"^\w+\s*\d+\s*,?\s*\w?$"),
    re.compile(r"^[A-Z0-9\s,.-]*\s[a-z]$"),
)
_TRAILING_N = re.compile(r",?\s*\bn$")


@dataclass(frozen=True)
class CleanedAddress:
    name: str
    address: str
    pincode: str
    city: str
    state: str
    phone: str
    incomplete: bool = False
    enhanced: bool = False


def looks_truncated(address: str) -> bool:
    return any(pattern.match(address) for pattern in _TRUNCATED)


class AddressNormalizer:
    """Cleans and repairs raw name/phone/address/city/state/pincode fields."""

    def __init__(
        self,
        *,
        templates: Mapping[str, LocalityTemplate] = tables.LOCALITY_TEMPLATES,
        prefix_templates: Mapping[
            str, LocalityTemplate
        ] = tables.PREFIX_TEMPLATES,
        pincode_states: Mapping[str, str] = tables.PINCODE_STATES,
        pincode_cities: Mapping[str, str] = tables.PINCODE_CITIES,
        state_aliases: Mapping[str, str] = tables.STATE_ALIASES,
        city_aliases: Mapping[str, str] = tables.CITY_ALIASES,
        default_pincode: str = tables.DEFAULT_PINCODE,
        placeholder_phone: str = tables.PLACEHOLDER_PHONE,
    ) -> None:
        self.templates = templates
        self.prefix_templates = prefix_templates
        self.pincode_states = pincode_states
        self.pincode_cities = pincode_cities
        self.state_aliases = state_aliases
        self.city_aliases = city_aliases
        self.default_pincode = default_pincode
        self.placeholder_phone = placeholder_phone

    def normalize(
        self,
        name: str,
        address: str,
        pincode: str,
        city: str,
        state: str,
        phone: str | None = None,
    ) -> CleanedAddress:
        """Normalize one party's contact block.

        Raises ``InvalidNameError`` when the name has fewer than two
        letters; every other field degrades to a usable default.
        """
        clean_name = self.clean_name(name)
        clean_pin = self.clean_pincode(pincode)
        clean_city = self.format_city(city, clean_pin)
        clean_address, incomplete, enhanced = self._clean_address(
            address, clean_pin, clean_city
        )
        return CleanedAddress(
            name=clean_name,
            address=clean_address,
            pincode=clean_pin,
            city=clean_city,
            state=self.format_state(state, clean_pin),
            phone=self.clean_phone(phone or ""),
            incomplete=incomplete,
            enhanced=enhanced,
        )

    def clean_name(self, name: str) -> str:
        cleaned = _WHITESPACE.sub(" ", _NON_ALPHA.sub("", name or "")).strip()
        if len(cleaned) < 2:
            raise InvalidNameError(
                "Invalid name",
                message=f"Name {name!r} has fewer than two letters",
            )
        return cleaned[:MAX_NAME_LENGTH]

    def clean_pincode(self, pincode: str) -> str:
        digits = _NON_DIGIT.sub("", str(pincode or ""))
        if _PINCODE.fullmatch(digits):
            return digits
        logger.debug(
            "Pincode %r invalid, using default %s",
            pincode,
            self.default_pincode,
        )
        return self.default_pincode

    def clean_phone(self, phone: str) -> str:
        digits = _NON_DIGIT.sub("", str(phone or ""))
        if len(digits) < 10:
            return self.placeholder_phone
        return digits[-10:]

    def clean_address(self, address: str, pincode: str, city: str) -> str:
        return self._clean_address(address, pincode, city)[0]

    def _clean_address(
        self, address: str, pincode: str, city: str
    ) -> tuple[str, bool, bool]:
        cleaned = _ADDRESS_DISALLOWED.sub("", address or "")
        cleaned = _WHITESPACE.sub(" ", cleaned).strip()

        if len(cleaned) >= SHORT_ADDRESS_LENGTH:
            return cleaned[:MAX_ADDRESS_LENGTH], False, False

        if len(cleaned) < INCOMPLETE_ADDRESS_LENGTH or looks_truncated(cleaned):
            base = _TRAILING_N.sub("", cleaned).strip(" ,")
            enhanced = self._template_for(pincode, city).render(base)
            logger.info(
                "Incomplete address %r enhanced to %r", cleaned, enhanced
            )
            return enhanced[:MAX_ADDRESS_LENGTH], True, True

        enhanced = f"{cleaned}, Near Local Market, {city or 'City'} Area"
        return enhanced[:MAX_ADDRESS_LENGTH], False, True

    def _template_for(self, pincode: str, city: str) -> LocalityTemplate:
        if pincode in self.templates:
            return self.templates[pincode]
        for prefix, template in self.prefix_templates.items():
            if pincode.startswith(prefix):
                return template
        city = city or ""
        return LocalityTemplate(
            city=city,
            default_base="House No 1",
            locality=(
                "Main Road",
                f"{city} Town Center" if city else "Local Area",
                f"Near {city} Market" if city else "Near Local Market",
                self.pincode_states.get(pincode, "West Bengal"),
            ),
        )

    def format_state(self, state: str, pincode: str) -> str:
        if pincode in self.pincode_states:
            return self.pincode_states[pincode]
        normalized = (state or "").strip().lower()
        if not normalized:
            return "West Bengal"
        return self.state_aliases.get(normalized, normalized.title())

    def format_city(self, city: str, pincode: str) -> str:
        normalized = (city or "").strip().lower()
        if not normalized:
            return self.pincode_cities.get(pincode, "Kolkata")
        return self.city_aliases.get(normalized, normalized.title())
