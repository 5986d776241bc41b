"""FastAPI adapter configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ShipmentsConfig(BaseSettings):
    """Runtime config for the shipment pipeline."""

    model_config = SettingsConfigDict(env_prefix="SHIPMENTS_")

    carrier_token: str = ""
    carrier_base_url: str = "https://track.delhivery.com"
    carrier_timeout_seconds: float = 30.0
    registered_pickup_locations: list[str] = Field(
        default_factory=lambda: ["Main Warehouse", "co-pal-test", "co-pal-ul"]
    )
    default_pickup_location: str = "Main Warehouse"
    placeholder_token_markers: list[str] = Field(
        default_factory=lambda: ["your-delhivery-auth-token-here", "your-delhi"]
    )
    check_pincode_serviceability: bool = True
