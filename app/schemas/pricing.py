from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator

from app.schemas.common import CamelModel, to_naive_utc


class EvaluationContext(CamelModel):
    """Purchase context a condition is evaluated against."""

    cart_amount: Decimal = Field(default=Decimal("0"), ge=0)
    quantity: int = Field(default=0, ge=0)
    at: datetime = Field(default_factory=datetime.utcnow)
    customer_type: Optional[str] = None

    @field_validator("at")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class PriceQuoteResponse(CamelModel):
    product_id: int
    price_list_id: int
    currency: str
    unit_price: Decimal
    quantity: int
    base_amount: Decimal
    final_amount: Decimal
    applied_condition_ids: List[int] = []
    pricing_tax_mode: Optional[str] = None
    # True when final_amount already includes tax
    tax_included: bool


class ProductWithPrice(CamelModel):
    id: int
    name: str
    sku: str
    base_price: Decimal
    price: Decimal
    currency: str
    tax_included: bool


class ProductsWithPricesResponse(CamelModel):
    products: List[ProductWithPrice]
    total: int
    page: int
    limit: int
    total_pages: int
