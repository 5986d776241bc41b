"""HSN code resolution and product description cleanup."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from fastapi_shipments import tables

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 100

_GARBAGE_PATTERNS = (
    re.compile(r"^\d+[a-z]*\d*$", re.IGNORECASE),
    re.compile(r"^[0-9a-z]{2,8}$", re.IGNORECASE),
)
_DESCRIPTION_DISALLOWED = re.compile(r"[^A-Za-z0-9,.\-&/() ]")
_WHITESPACE = re.compile(r"\s+")


def is_garbage_description(text: str) -> bool:
    """Return True for descriptions the carrier would reject as meaningless.

    Short strings, repeated-seven test data, single short alphanumeric
    tokens and mostly-numeric strings all count as garbage.
    """
    text = text.strip()
    if len(text) < 3 or "77777" in text:
        return True
    if any(pattern.match(text) for pattern in _GARBAGE_PATTERNS):
        return True
    compact = text.replace(" ", "")
    digits = sum(ch.isdigit() for ch in compact)
    return digits * 2 > len(compact)


class HSNResolver:
    """Picks an HSN code from explicit input, category or description."""

    def __init__(
        self,
        *,
        category_codes: Mapping[str, str] = tables.CATEGORY_HSN_CODES,
        keyword_codes: Mapping[str, str] = tables.DESCRIPTION_HSN_KEYWORDS,
        default_code: str = tables.DEFAULT_HSN_CODE,
        generic_description: str = tables.GENERIC_DESCRIPTION,
    ) -> None:
        self.category_codes = category_codes
        self.keyword_codes = keyword_codes
        self.default_code = default_code
        self.generic_description = generic_description

    def resolve(
        self,
        explicit_code: str | None = None,
        custom_field_code: str | None = None,
        category: str | None = None,
        description: str | None = None,
    ) -> str:
        """Resolve the HSN code for a shipment.

        Priority is explicit code, then the custom-field code, then the
        product category, then a keyword search over the description.
        An unknown category resolves to the default code without falling
        through to the description.
        """
        for code in (explicit_code, custom_field_code):
            if code and str(code).strip():
                return str(code).strip()

        if category and category.strip():
            key = category.strip().lower()
            code = self.category_codes.get(key)
            if code is None:
                logger.debug("Unknown product category %r", category)
                return self.default_code
            return code

        if description:
            return self._from_description(description)
        return self.default_code

    def _from_description(self, description: str) -> str:
        cleaned = self.clean_description(description).lower()
        if cleaned == self.generic_description.lower():
            return self.default_code
        words = re.findall(r"[a-z]+", cleaned)
        for keyword, code in self.keyword_codes.items():
            if any(word.startswith(keyword) for word in words):
                return code
        return self.default_code

    def clean_description(self, text: str | None) -> str:
        """Sanitize a description for the carrier's ``products_desc`` field."""
        cleaned = _DESCRIPTION_DISALLOWED.sub("", text or "")
        cleaned = _WHITESPACE.sub(" ", cleaned).strip()
        if is_garbage_description(cleaned):
            if cleaned:
                logger.debug("Replacing garbage description %r", cleaned)
            return self.generic_description
        return cleaned[:MAX_DESCRIPTION_LENGTH]
