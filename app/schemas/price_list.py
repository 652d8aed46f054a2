from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from app.enums.price_list import (
    ConditionOperator,
    ConditionStatus,
    ConditionType,
    DiscountType,
    PriceListStatus,
    PricingTaxMode,
)
from app.schemas.common import CamelModel, to_naive_utc


# ---------- Conditions ----------

class PriceListConditionBase(CamelModel):
    condition_type: ConditionType
    operator: ConditionOperator = ConditionOperator.equals
    condition_value: Dict[str, Any]
    discount_type: DiscountType = DiscountType.percentage
    discount_value: Decimal = Decimal("0")
    priority: int = 10
    status: ConditionStatus = ConditionStatus.active
    config: Optional[Dict[str, Any]] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None

    @field_validator("valid_from", "valid_to")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class PriceListConditionCreate(PriceListConditionBase):
    pass


class PriceListConditionUpdate(CamelModel):
    condition_type: Optional[ConditionType] = None
    operator: Optional[ConditionOperator] = None
    condition_value: Optional[Dict[str, Any]] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None
    priority: Optional[int] = None
    status: Optional[ConditionStatus] = None
    config: Optional[Dict[str, Any]] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None

    @field_validator("valid_from", "valid_to")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class PriceListConditionResponse(CamelModel):
    id: int
    organization_id: int
    price_list_id: int
    status: str
    condition_type: str
    operator: str
    condition_value: Dict[str, Any]
    discount_type: str
    discount_value: Decimal
    priority: int
    config: Optional[Any] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    is_active: bool
    is_valid_now: bool


class ConditionPagination(CamelModel):
    page: int
    limit: int
    total_pages: int
    total_count: int


class PriceListConditionsResponse(CamelModel):
    conditions: List[PriceListConditionResponse]
    pagination: ConditionPagination


# ---------- Price lists ----------

class PriceListCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    # shape is checked by the registry so the error carries the domain code
    currency: Optional[str] = None
    is_default: Optional[bool] = False
    status: PriceListStatus = PriceListStatus.active
    pricing_tax_mode: Optional[PricingTaxMode] = PricingTaxMode.tax_included
    tax_class_id: Optional[int] = None


class PriceListUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    currency: Optional[str] = None
    is_default: Optional[bool] = None
    status: Optional[PriceListStatus] = None
    pricing_tax_mode: Optional[PricingTaxMode] = None
    tax_class_id: Optional[int] = None


class PriceListResponse(CamelModel):
    id: int
    name: str
    currency: str
    is_default: bool
    status: str
    pricing_tax_mode: Optional[str] = None
    tax_class_id: Optional[int] = None
    created_at: datetime
    is_active: bool
    has_tax_mode: bool
    conditions: List[PriceListConditionResponse] = []


class PriceListsResponse(CamelModel):
    price_lists: List[PriceListResponse]

