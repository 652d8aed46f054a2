from datetime import datetime
from decimal import Decimal
from typing import Optional

from app.models.price_list import PriceList, PriceListCondition
from app.models.product import Product, ProductPrice


def make_condition(
    id: int = 1,
    price_list_id: int = 1,
    condition_type: str = "amount",
    operator: str = "greater_or_equal",
    condition_value: Optional[dict] = None,
    discount_type: str = "percentage",
    discount_value="10",
    priority: int = 10,
    status: str = "active",
    valid_from: Optional[datetime] = None,
    valid_to: Optional[datetime] = None,
) -> PriceListCondition:
    """Transient condition row; column defaults only apply on insert, so set everything."""
    return PriceListCondition(
        id=id,
        organization_id=1,
        price_list_id=price_list_id,
        condition_type=condition_type,
        operator=operator,
        condition_value=condition_value if condition_value is not None else {"min_amount": 0},
        discount_type=discount_type,
        discount_value=Decimal(str(discount_value)),
        priority=priority,
        status=status,
        valid_from=valid_from,
        valid_to=valid_to,
    )


def make_price_list(id: int = 1, pricing_tax_mode: Optional[str] = "tax_included") -> PriceList:
    return PriceList(
        id=id,
        organization_id=1,
        name=f"List {id}",
        currency="CLP",
        is_default=False,
        status="active",
        pricing_tax_mode=pricing_tax_mode,
    )


def add_product(
    db,
    organization_id: int,
    name: str,
    base_price="1000",
    sku: Optional[str] = None,
    price_list_id: Optional[int] = None,
    list_amount=None,
    valid_from: Optional[datetime] = None,
    valid_to: Optional[datetime] = None,
) -> Product:
    product = Product(
        organization_id=organization_id,
        name=name,
        sku=sku or name.upper().replace(" ", "-"),
        base_price=Decimal(str(base_price)),
    )
    db.add(product)
    db.flush()

    if price_list_id is not None:
        db.add(
            ProductPrice(
                organization_id=organization_id,
                product_id=product.id,
                price_list_id=price_list_id,
                currency="CLP",
                amount=Decimal(str(list_amount if list_amount is not None else base_price)),
                tax_included=True,
                valid_from=valid_from,
                valid_to=valid_to,
            )
        )
    db.commit()
    return product
