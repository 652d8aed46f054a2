import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidConditionConfiguration, NotFound
from app.enums.price_list import DiscountType
from app.models.price_list import PriceList, PriceListCondition
from app.schemas.price_list import PriceListConditionCreate, PriceListConditionUpdate
from app.services.price_list.registry import normalize_pagination, total_pages
from app.services.pricing_service.condition_rules import parse_rule

logger = logging.getLogger(__name__)


def _get_price_list(db: Session, price_list_id: int, organization_id: int) -> PriceList:
    price_list = (
        db.query(PriceList)
        .filter(PriceList.id == price_list_id, PriceList.organization_id == organization_id)
        .first()
    )
    if not price_list:
        raise NotFound(f"Price list {price_list_id} not found")
    return price_list


def _validate(values: Dict[str, Any]) -> None:
    """Write-time checks for a condition's merged field values."""
    parse_rule(values["condition_type"], values["operator"], values["condition_value"])

    valid_from, valid_to = values.get("valid_from"), values.get("valid_to")
    if valid_from is not None and valid_to is not None and valid_from > valid_to:
        raise InvalidConditionConfiguration("validFrom must not be later than validTo")

    discount_value = Decimal(values.get("discount_value") or 0)
    if discount_value < 0:
        raise InvalidConditionConfiguration("discountValue must not be negative")
    if values.get("discount_type") == DiscountType.percentage.value and discount_value > 100:
        raise InvalidConditionConfiguration("percentage discountValue must not exceed 100")


# ---------- LIST / GET ----------

def list_conditions(
    db: Session,
    price_list_id: int,
    organization_id: int,
    page: Any = 1,
    limit: Any = None,
    status: Optional[str] = None,
) -> Tuple[List[PriceListCondition], Dict[str, int]]:
    """
    Returns (conditions, pagination) ordered by priority then id.
    """
    _get_price_list(db, price_list_id, organization_id)
    page_n, limit_n = normalize_pagination(page, limit)

    query = db.query(PriceListCondition).filter(
        PriceListCondition.price_list_id == price_list_id,
        PriceListCondition.organization_id == organization_id,
    )
    if status:
        query = query.filter(PriceListCondition.status == status)

    total = query.with_entities(func.count(PriceListCondition.id)).scalar() or 0
    items = (
        query.order_by(PriceListCondition.priority.asc(), PriceListCondition.id.asc())
        .offset((page_n - 1) * limit_n)
        .limit(limit_n)
        .all()
    )
    pagination = {
        "page": page_n,
        "limit": limit_n,
        "total_pages": total_pages(total, limit_n),
        "total_count": total,
    }
    return items, pagination


def get_condition(
    db: Session,
    price_list_id: int,
    condition_id: int,
    organization_id: int,
) -> PriceListCondition:
    condition = (
        db.query(PriceListCondition)
        .filter(
            PriceListCondition.id == condition_id,
            PriceListCondition.price_list_id == price_list_id,
            PriceListCondition.organization_id == organization_id,
        )
        .first()
    )
    if not condition:
        raise NotFound(f"Condition {condition_id} not found in price list {price_list_id}")
    return condition


# ---------- CREATE / UPDATE / DELETE ----------

def create_condition(
    db: Session,
    price_list_id: int,
    data: PriceListConditionCreate,
    organization_id: int,
) -> PriceListCondition:
    price_list = _get_price_list(db, price_list_id, organization_id)
    values = data.model_dump()
    _validate(values)

    condition = PriceListCondition(
        organization_id=organization_id,
        price_list_id=price_list.id,
        **values,
    )
    db.add(condition)
    db.commit()
    db.refresh(condition)

    logger.info(
        "created %s condition %s on price list %s", condition.condition_type, condition.id, price_list.id
    )
    return condition


def update_condition(
    db: Session,
    price_list_id: int,
    condition_id: int,
    data: PriceListConditionUpdate,
    organization_id: int,
) -> PriceListCondition:
    condition = get_condition(db, price_list_id, condition_id, organization_id)
    changes = data.model_dump(exclude_unset=True)

    # these columns are NOT NULL
    for key in ("condition_type", "operator", "condition_value", "discount_type",
                "discount_value", "priority", "status"):
        if key in changes and changes[key] is None:
            raise InvalidConditionConfiguration(f"{key} cannot be null")

    merged = {
        "condition_type": condition.condition_type,
        "operator": condition.operator,
        "condition_value": condition.condition_value,
        "discount_type": condition.discount_type,
        "discount_value": condition.discount_value,
        "valid_from": condition.valid_from,
        "valid_to": condition.valid_to,
    }
    merged.update({k: v for k, v in changes.items() if k in merged})
    _validate(merged)

    for key, value in changes.items():
        setattr(condition, key, value)

    db.commit()
    db.refresh(condition)
    logger.info("updated condition %s on price list %s", condition.id, price_list_id)
    return condition


def delete_condition(
    db: Session,
    price_list_id: int,
    condition_id: int,
    organization_id: int,
) -> None:
    condition = get_condition(db, price_list_id, condition_id, organization_id)
    db.delete(condition)
    db.commit()
    logger.info("deleted condition %s from price list %s", condition_id, price_list_id)
