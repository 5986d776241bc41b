"""Static lookup tables used by the normalizer, HSN resolver and prevalidator.

All tables are read-only mappings and are injected into the components
that use them, so tests can substitute their own.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class LocalityTemplate:
    """Known-serviceable address shape for a pincode or pincode prefix."""

    city: str
    default_base: str
    locality: tuple[str, ...]

    def render(self, base: str = "") -> str:
        return ", ".join((base or self.default_base, *self.locality))

    @property
    def reference_address(self) -> str:
        return self.render()


LOCALITY_TEMPLATES: Mapping[str, LocalityTemplate] = MappingProxyType(
    {
        "741235": LocalityTemplate(
            city="Kalyani",
            default_base="A-Block, Phase I",
            locality=(
                "Kalyani Township",
                "Near Kalyani University",
                "Kalyani",
                "Nadia",
                "West Bengal",
            ),
        ),
        "700001": LocalityTemplate(
            city="Kolkata",
            default_base="Park Street",
            locality=("Near New Market", "Kolkata", "West Bengal"),
        ),
        "700091": LocalityTemplate(
            city="Kolkata",
            default_base="Salt Lake Sector V",
            locality=("Near City Centre Mall", "Kolkata", "West Bengal"),
        ),
        "700064": LocalityTemplate(
            city="Kolkata",
            default_base="Action Area I, New Town",
            locality=("Near Eco Park", "Kolkata", "West Bengal"),
        ),
        "700156": LocalityTemplate(
            city="Kolkata",
            default_base="Sector V, Salt Lake",
            locality=("Near IT Hub", "Kolkata", "West Bengal"),
        ),
        "700107": LocalityTemplate(
            city="Kolkata",
            default_base="Kestopur",
            locality=("Near VIP Road", "Kolkata", "West Bengal"),
        ),
    }
)

PREFIX_TEMPLATES: Mapping[str, LocalityTemplate] = MappingProxyType(
    {
        "700": LocalityTemplate(
            city="Kolkata",
            default_base="Block A, Flat 1",
            locality=(
                "Salt Lake Sector V",
                "Near City Centre Mall",
                "Kolkata",
                "West Bengal",
            ),
        ),
    }
)

PINCODE_STATES: Mapping[str, str] = MappingProxyType(
    {
        "741235": "West Bengal",
        "700001": "West Bengal",
        "700091": "West Bengal",
        "110001": "Delhi",
        "400001": "Maharashtra",
        "560001": "Karnataka",
        "600001": "Tamil Nadu",
    }
)

PINCODE_CITIES: Mapping[str, str] = MappingProxyType(
    {
        "741235": "Kalyani",
        "700001": "Kolkata",
        "700091": "Kolkata",
        "700064": "Kolkata",
    }
)

STATE_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "west bengal": "West Bengal",
        "westbengal": "West Bengal",
        "wb": "West Bengal",
        "kalyani": "West Bengal",
        "madhya pradesh": "Madhya Pradesh",
        "mp": "Madhya Pradesh",
        "maharashtra": "Maharashtra",
        "karnataka": "Karnataka",
        "tamil nadu": "Tamil Nadu",
        "kerala": "Kerala",
        "gujarat": "Gujarat",
        "rajasthan": "Rajasthan",
        "uttar pradesh": "Uttar Pradesh",
        "up": "Uttar Pradesh",
        "bihar": "Bihar",
        "odisha": "Odisha",
        "jharkhand": "Jharkhand",
        "punjab": "Punjab",
        "haryana": "Haryana",
        "delhi": "Delhi",
    }
)

CITY_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "kalyani": "Kalyani",
        "kolkata": "Kolkata",
        "calcutta": "Kolkata",
        "howrah": "Howrah",
        "durgapur": "Durgapur",
        "siliguri": "Siliguri",
        "bombay": "Mumbai",
        "bangalore": "Bengaluru",
    }
)

CATEGORY_HSN_CODES: Mapping[str, str] = MappingProxyType(
    {
        "clothing": "6109",
        "electronics": "8517",
        "books": "4901",
        "cosmetics": "3304",
        "food": "1905",
        "home": "7323",
        "sports": "9506",
        "toys": "9503",
        "other": "9999",
    }
)

# Keyword search over free-text descriptions; first hit wins.
DESCRIPTION_HSN_KEYWORDS: Mapping[str, str] = MappingProxyType(
    {
        "clothing": "6109",
        "apparel": "6109",
        "shirt": "6205",
        "trouser": "6203",
        "dress": "6204",
        "saree": "5208",
        "kurta": "6211",
        "footwear": "6403",
        "shoe": "6403",
        "bag": "4202",
        "leather": "4202",
        "mobile": "8517",
        "phone": "8517",
        "laptop": "8471",
        "computer": "8471",
        "headphone": "8518",
        "speaker": "8518",
        "camera": "9006",
        "furniture": "9403",
        "kitchen": "7323",
        "book": "4901",
        "toy": "9503",
        "cosmetic": "3304",
        "perfume": "3303",
        "soap": "3401",
        "jewel": "7113",
        "watch": "9102",
        "tea": "0902",
        "coffee": "0901",
    }
)

DEFAULT_HSN_CODE = "9999"
DEFAULT_PINCODE = "700001"
PLACEHOLDER_PHONE = "9999999999"
NAME_REQUIRED_MARKER = "Valid Customer Name Required"
GENERIC_DESCRIPTION = "General Merchandise Items"
