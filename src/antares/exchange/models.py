"""
Pydantic models for Coinbase Exchange API responses.

These models provide type-safe parsing of exchange responses
with automatic validation. Unknown fields are ignored so catalog
additions on the exchange side do not break parsing.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from antares.config.constants import PAIR_STATUS_ONLINE


class Product(BaseModel):
    """One entry of the ``/products`` catalog."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    base_currency: str
    quote_currency: str
    status: str
    display_name: str | None = None
    status_message: str | None = None
    trading_disabled: bool = False
    fx_stablecoin: bool = False

    @field_validator("base_currency", "quote_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Currency symbols are compared upper case."""
        return v.strip().upper()

    @property
    def is_online(self) -> bool:
        """Check if the product is listed as online."""
        return self.status == PAIR_STATUS_ONLINE

    @property
    def pair(self) -> tuple[str, str]:
        """Get (base, quote)."""
        return self.base_currency, self.quote_currency


class ErrorResponse(BaseModel):
    """Error body returned with HTTP status >= 400."""

    model_config = ConfigDict(extra="ignore")

    message: str = Field(default="")
