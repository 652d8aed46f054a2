from decimal import Decimal

import pytest

from app.core.exceptions import CannotDeleteDefaultList, CannotRemoveOnlyDefault
from app.routes.price_list_conditions import create_condition_route, list_conditions_route
from app.routes.price_lists import (
    applicable_price_list_route,
    create_price_list_route,
    delete_price_list_route,
    list_price_lists_route,
    quote_route,
    update_price_list_route,
)
from app.schemas.price_list import PriceListConditionCreate, PriceListCreate, PriceListUpdate
from app.schemas.pricing import EvaluationContext
from tests.helpers import add_product

ORG = 7


def _setup_lists(db):
    retail = create_price_list_route(
        PriceListCreate(name="Retail", currency="CLP", is_default=True), db=db, organization_id=ORG
    )
    wholesale = create_price_list_route(
        PriceListCreate(name="Wholesale", currency="CLP"), db=db, organization_id=ORG
    )
    return retail, wholesale


@pytest.mark.order(1)
def test_create_and_list_price_lists_route_handlers(db):
    retail, wholesale = _setup_lists(db)

    listed = list_price_lists_route(status_filter=None, db=db, organization_id=ORG)["price_lists"]

    assert [pl.name for pl in listed] == ["Retail", "Wholesale"]
    assert [pl.is_default for pl in listed] == [True, False]


@pytest.mark.order(2)
def test_conditions_feed_the_quote(db):
    retail, _ = _setup_lists(db)
    product = add_product(db, ORG, "Sofa", base_price=100000, price_list_id=retail.id)

    create_condition_route(
        retail.id,
        PriceListConditionCreate(
            condition_type="amount", operator="greater_or_equal",
            condition_value={"min_amount": 50000}, discount_type="percentage",
            discount_value=Decimal("10"), priority=2,
        ),
        db=db, organization_id=ORG,
    )
    create_condition_route(
        retail.id,
        PriceListConditionCreate(
            condition_type="quantity", operator="greater_or_equal",
            condition_value={"min_quantity": 1}, discount_type="fixed_amount",
            discount_value=Decimal("5000"), priority=1,
        ),
        db=db, organization_id=ORG,
    )

    listed = list_conditions_route(retail.id, page=None, limit=None, status_filter=None, db=db, organization_id=ORG)
    assert [c.priority for c in listed["conditions"]] == [1, 2]
    assert listed["pagination"]["total_count"] == 2

    quote = quote_route(retail.id, product.id, quantity=1, customer_type=None, cart_amount=None,
                        db=db, organization_id=ORG)
    assert quote["final_amount"] == Decimal("85500")


@pytest.mark.order(3)
def test_default_hand_off_through_route_handlers(db):
    retail, wholesale = _setup_lists(db)

    with pytest.raises(CannotRemoveOnlyDefault):
        update_price_list_route(retail.id, PriceListUpdate(is_default=False), db=db, organization_id=ORG)
    with pytest.raises(CannotDeleteDefaultList):
        delete_price_list_route(retail.id, db=db, organization_id=ORG)

    promoted = update_price_list_route(wholesale.id, PriceListUpdate(is_default=True), db=db, organization_id=ORG)
    assert promoted.is_default is True

    response = delete_price_list_route(retail.id, db=db, organization_id=ORG)
    assert response.status_code == 204

    remaining = list_price_lists_route(status_filter=None, db=db, organization_id=ORG)["price_lists"]
    assert [(pl.name, pl.is_default) for pl in remaining] == [("Wholesale", True)]


@pytest.mark.order(4)
def test_applicable_price_list_route_handler(db):
    retail, wholesale = _setup_lists(db)
    create_condition_route(
        wholesale.id,
        PriceListConditionCreate(
            condition_type="quantity", operator="greater_or_equal", condition_value={"min_quantity": 50},
        ),
        db=db, organization_id=ORG,
    )

    small = applicable_price_list_route(EvaluationContext(quantity=3), db=db, organization_id=ORG)
    bulk = applicable_price_list_route(EvaluationContext(quantity=60), db=db, organization_id=ORG)

    assert small.id == retail.id
    assert bulk.id == wholesale.id
