import logging
import math
import re
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.core.exceptions import NotFound, ValidationError
from app.enums.price_list import PricingTaxMode
from app.models.price_list import PriceList, PriceListCondition
from app.schemas.common import to_naive_utc
from app.schemas.price_list import PriceListCreate, PriceListUpdate
from app.schemas.pricing import EvaluationContext
from app.services import product_service
from app.services.price_list import default_guard
from app.services.pricing_service.condition_evaluator import evaluate
from app.services.pricing_service.discount_resolver import resolve

logger = logging.getLogger(__name__)

CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
DEFAULT_PAGE = 1


# --------------------------
# HELPERS
# --------------------------
def normalize_pagination(page: Any, limit: Any) -> Tuple[int, int]:
    """
    page/limit as integers >= 1. Anything malformed falls back to
    page=1 / limit=DEFAULT_PAGE_LIMIT; limit is capped at MAX_PAGE_LIMIT.
    """
    page_n = _positive_int(page, DEFAULT_PAGE)
    limit_n = _positive_int(limit, settings.DEFAULT_PAGE_LIMIT)
    return page_n, min(limit_n, settings.MAX_PAGE_LIMIT)


def _positive_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


def _validate_currency(currency: Optional[str]) -> str:
    if currency is None or not str(currency).strip():
        raise ValidationError("currency is required")
    code = str(currency).strip()
    if not CURRENCY_RE.match(code):
        raise ValidationError(
            f"currency must be a three-letter upper-case ISO 4217 code, got '{currency}'"
        )
    return code


def _ensure_unique_name(db: Session, organization_id: int, name: str, exclude_id: Optional[int] = None):
    query = db.query(PriceList.id).filter(
        PriceList.organization_id == organization_id,
        PriceList.name == name,
    )
    if exclude_id is not None:
        query = query.filter(PriceList.id != exclude_id)
    if query.first():
        raise ValidationError(f"A price list named '{name}' already exists")


def _load(db: Session, price_list_id: int, organization_id: int) -> PriceList:
    price_list = (
        db.query(PriceList)
        .options(selectinload(PriceList.conditions))
        .filter(PriceList.id == price_list_id, PriceList.organization_id == organization_id)
        .first()
    )
    if not price_list:
        raise NotFound(f"Price list {price_list_id} not found")
    return price_list


# --------------------------
# LIST / GET
# --------------------------
def list_price_lists(db: Session, organization_id: int, status: Optional[str] = None) -> List[PriceList]:
    query = (
        db.query(PriceList)
        .options(selectinload(PriceList.conditions))
        .filter(PriceList.organization_id == organization_id)
    )
    if status:
        query = query.filter(PriceList.status == status)
    return query.order_by(PriceList.created_at.asc(), PriceList.id.asc()).all()


def get_price_list(db: Session, price_list_id: int, organization_id: int) -> PriceList:
    return _load(db, price_list_id, organization_id)


# --------------------------
# CREATE
# --------------------------
def create_price_list(db: Session, data: PriceListCreate, organization_id: int) -> PriceList:
    currency = _validate_currency(data.currency)
    name = data.name.strip()

    with default_guard.default_list_transaction(db, organization_id):
        _ensure_unique_name(db, organization_id, name)
        price_list = PriceList(
            organization_id=organization_id,
            name=name,
            currency=currency,
            status=data.status,
            pricing_tax_mode=data.pricing_tax_mode,
            tax_class_id=data.tax_class_id,
        )
        default_guard.apply_default_on_create(
            db, organization_id, price_list, bool(data.is_default)
        )

    db.refresh(price_list)
    logger.info(
        "created price list %s '%s' for organization %s (default=%s)",
        price_list.id, price_list.name, organization_id, price_list.is_default,
    )
    return price_list


# --------------------------
# UPDATE
# --------------------------
def update_price_list(
    db: Session,
    price_list_id: int,
    data: PriceListUpdate,
    organization_id: int,
) -> PriceList:
    changes = data.model_dump(exclude_unset=True)
    is_default = changes.pop("is_default", None)

    with default_guard.default_list_transaction(db, organization_id):
        price_list = _load(db, price_list_id, organization_id)

        # default flag first, so a rejected hand-off leaves every field untouched
        default_guard.apply_default_on_update(db, organization_id, price_list, is_default)

        if "currency" in changes:
            changes["currency"] = _validate_currency(changes["currency"])
        if changes.get("name") is not None:
            changes["name"] = changes["name"].strip()
            _ensure_unique_name(db, organization_id, changes["name"], exclude_id=price_list.id)

        for key, value in changes.items():
            if value is None and key in ("name", "status"):
                continue
            setattr(price_list, key, value)

    db.refresh(price_list)
    logger.info("updated price list %s for organization %s", price_list.id, organization_id)
    return price_list


# --------------------------
# DELETE
# --------------------------
def delete_price_list(db: Session, price_list_id: int, organization_id: int) -> None:
    with default_guard.default_list_transaction(db, organization_id):
        price_list = _load(db, price_list_id, organization_id)
        default_guard.check_delete(price_list)
        db.delete(price_list)

    logger.info("deleted price list %s for organization %s", price_list_id, organization_id)


# --------------------------
# PRODUCTS WITH PRICES
# --------------------------
def get_products_with_prices(
    db: Session,
    price_list_id: int,
    organization_id: int,
    page: Any = DEFAULT_PAGE,
    limit: Any = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    page_n, limit_n = normalize_pagination(page, limit)
    price_list = _load(db, price_list_id, organization_id)

    term = search.strip() if search else None
    now = datetime.utcnow()
    items, total = product_service.search_products(
        db,
        organization_id,
        term=term or None,
        page=page_n,
        limit=limit_n,
        price_list_id=price_list.id,
        at=now,
    )
    prices = product_service.get_list_prices(
        db, [product.id for product in items], price_list.id, organization_id, at=now
    )
    rows = [(product, prices[product.id]) for product in items]

    products = [
        {
            "id": product.id,
            "name": product.name,
            "sku": product.sku,
            "base_price": product.base_price,
            "price": price.amount,
            "currency": price.currency,
            "tax_included": price.tax_included,
        }
        for product, price in rows
    ]

    return {
        "products": products,
        "total": total,
        "page": page_n,
        "limit": limit_n,
        "total_pages": total_pages(total, limit_n),
    }


# --------------------------
# QUOTE
# --------------------------
def quote_product_price(
    db: Session,
    price_list_id: int,
    organization_id: int,
    product_id: int,
    quantity: int = 1,
    customer_type: Optional[str] = None,
    cart_amount: Optional[Decimal] = None,
    at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Price `quantity` units of a product under a price list.

    The unit price comes from the list's product price valid at `at`,
    falling back to the product's base price. cart_amount defaults to the
    line amount when the caller does not know the whole cart.
    """
    if quantity < 1:
        raise ValidationError("quantity must be at least 1")

    price_list = _load(db, price_list_id, organization_id)
    product = product_service.get_product(db, product_id, organization_id)
    if not product:
        raise NotFound(f"Product {product_id} not found")

    moment = to_naive_utc(at) if at else datetime.utcnow()
    list_price = product_service.get_list_price(
        db, product.id, price_list.id, organization_id, at=moment
    )
    unit_price = Decimal(list_price.amount if list_price else product.base_price)
    base_amount = unit_price * quantity

    context = EvaluationContext(
        cart_amount=base_amount if cart_amount is None else cart_amount,
        quantity=quantity,
        at=moment,
        customer_type=customer_type,
    )
    final_amount, applied_ids = resolve(price_list, price_list.conditions, context, base_amount)

    return {
        "product_id": product.id,
        "price_list_id": price_list.id,
        "currency": price_list.currency,
        "unit_price": unit_price,
        "quantity": quantity,
        "base_amount": base_amount,
        "final_amount": final_amount,
        "applied_condition_ids": applied_ids,
        "pricing_tax_mode": price_list.pricing_tax_mode,
        "tax_included": price_list.pricing_tax_mode == PricingTaxMode.tax_included.value,
    }


# --------------------------
# APPLICABLE PRICE LIST
# --------------------------
def find_applicable_price_list(
    db: Session,
    organization_id: int,
    context: EvaluationContext,
) -> PriceList:
    """
    Pick the price list a purchase context falls into.

    Active non-default lists are tried in order of their lowest condition
    priority (then id); the first one whose active conditions all hold wins.
    Lists without active conditions are never picked this way. Falls back to
    the organization's default list.
    """
    price_lists = list_price_lists(db, organization_id, status="active")

    default_list = next((pl for pl in price_lists if pl.is_default), None)
    if default_list is None:
        raise NotFound(f"Organization {organization_id} has no active default price list")

    candidates = []
    for price_list in price_lists:
        if price_list.is_default:
            continue
        active = [c for c in price_list.conditions if c.is_active]
        if not active:
            continue
        candidates.append((min(c.priority for c in active), price_list.id, price_list, active))

    candidates.sort(key=lambda item: (item[0], item[1]))

    for _, _, price_list, active in candidates:
        if all(evaluate(condition, context) for condition in active):
            logger.info(
                "price list %s '%s' applies for organization %s (conditions met)",
                price_list.id, price_list.name, organization_id,
            )
            return price_list

    logger.info(
        "price list %s '%s' applies for organization %s (default)",
        default_list.id, default_list.name, organization_id,
    )
    return default_list
