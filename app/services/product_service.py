from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from app.models.product import Product, ProductPrice


# --------------------------
# GET PRODUCT
# --------------------------
def get_product(db: Session, product_id: int, organization_id: int) -> Optional[Product]:
    return (
        db.query(Product)
        .filter(Product.id == product_id, Product.organization_id == organization_id)
        .first()
    )


# --------------------------
# SEARCH PRODUCTS
# --------------------------
def search_products(
    db: Session,
    organization_id: int,
    term: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    price_list_id: Optional[int] = None,
    at: Optional[datetime] = None,
) -> Tuple[List[Product], int]:
    """
    Returns (items, total_count). page is 1-based.
    `term` matches product name, case-insensitively.
    With `price_list_id`, only products carrying a price valid at `at`
    (default now) in that list are returned.
    """
    query = db.query(Product).filter(Product.organization_id == organization_id)
    if price_list_id is not None:
        query = query.filter(_priced_in(price_list_id, organization_id, at or datetime.utcnow()))
    if term:
        query = query.filter(_name_matches(term))

    total = query.with_entities(func.count(Product.id)).scalar() or 0
    items = (
        query.order_by(Product.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


# --------------------------
# PRICES IN A PRICE LIST
# --------------------------
def price_valid_at(moment: datetime):
    """Filter for ProductPrice rows whose validity window contains `moment`."""
    return and_(
        or_(ProductPrice.valid_from.is_(None), ProductPrice.valid_from <= moment),
        or_(ProductPrice.valid_to.is_(None), ProductPrice.valid_to >= moment),
    )


def get_list_price(
    db: Session,
    product_id: int,
    price_list_id: int,
    organization_id: int,
    at: Optional[datetime] = None,
) -> Optional[ProductPrice]:
    moment = at or datetime.utcnow()
    return (
        db.query(ProductPrice)
        .filter(
            ProductPrice.organization_id == organization_id,
            ProductPrice.price_list_id == price_list_id,
            ProductPrice.product_id == product_id,
            price_valid_at(moment),
        )
        .first()
    )


def get_list_prices(
    db: Session,
    product_ids: List[int],
    price_list_id: int,
    organization_id: int,
    at: Optional[datetime] = None,
) -> Dict[int, ProductPrice]:
    """Prices valid at `at` in one price list, keyed by product id."""
    if not product_ids:
        return {}
    moment = at or datetime.utcnow()
    rows = (
        db.query(ProductPrice)
        .filter(
            ProductPrice.organization_id == organization_id,
            ProductPrice.price_list_id == price_list_id,
            ProductPrice.product_id.in_(product_ids),
            price_valid_at(moment),
        )
        .all()
    )
    return {row.product_id: row for row in rows}


def _priced_in(price_list_id: int, organization_id: int, moment: datetime):
    return (
        select(ProductPrice.id)
        .where(
            ProductPrice.product_id == Product.id,
            ProductPrice.organization_id == organization_id,
            ProductPrice.price_list_id == price_list_id,
            price_valid_at(moment),
        )
        .exists()
    )


def _name_matches(term: str):
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return Product.name.ilike(f"%{escaped}%", escape="\\")
