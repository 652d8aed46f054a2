from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.database.connection import get_db
from app.dependencies.organization import get_organization_id
from app.enums.price_list import PriceListStatus
from app.schemas.price_list import (
    PriceListCreate,
    PriceListResponse,
    PriceListsResponse,
    PriceListUpdate,
)
from app.schemas.pricing import EvaluationContext, PriceQuoteResponse, ProductsWithPricesResponse
from app.services.price_list.registry import (
    create_price_list,
    delete_price_list,
    find_applicable_price_list,
    get_price_list,
    get_products_with_prices,
    list_price_lists,
    quote_product_price,
    update_price_list,
)

router = APIRouter(prefix="/price-lists", tags=["Price Lists"])


# LIST
@router.get("/", response_model=PriceListsResponse)
def list_price_lists_route(
    status_filter: Optional[PriceListStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    status_value = status_filter.value if status_filter else None
    return {"price_lists": list_price_lists(db, organization_id, status=status_value)}


# CREATE
@router.post("/", response_model=PriceListResponse, status_code=status.HTTP_201_CREATED)
def create_price_list_route(
    data: PriceListCreate,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    return create_price_list(db, data, organization_id)


# APPLICABLE PRICE LIST FOR A PURCHASE CONTEXT
@router.post("/applicable", response_model=PriceListResponse)
def applicable_price_list_route(
    context: EvaluationContext,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    return find_applicable_price_list(db, organization_id, context)


# GET BY ID
@router.get("/{price_list_id}", response_model=PriceListResponse)
def get_price_list_route(
    price_list_id: int,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    return get_price_list(db, price_list_id, organization_id)


# UPDATE
@router.patch("/{price_list_id}", response_model=PriceListResponse)
def update_price_list_route(
    price_list_id: int,
    data: PriceListUpdate,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    return update_price_list(db, price_list_id, data, organization_id)


# DELETE
@router.delete("/{price_list_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_price_list_route(
    price_list_id: int,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    delete_price_list(db, price_list_id, organization_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PRODUCTS WITH PRICES
@router.get("/{price_list_id}/products", response_model=ProductsWithPricesResponse)
def products_with_prices_route(
    price_list_id: int,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    # page/limit stay strings so malformed values fall back instead of failing
    return get_products_with_prices(
        db, price_list_id, organization_id, page=page, limit=limit, search=search
    )


# QUOTE
@router.get("/{price_list_id}/products/{product_id}/quote", response_model=PriceQuoteResponse)
def quote_route(
    price_list_id: int,
    product_id: int,
    quantity: int = 1,
    customer_type: Optional[str] = Query(default=None, alias="customerType"),
    cart_amount: Optional[Decimal] = Query(default=None, alias="cartAmount", ge=0),
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    return quote_product_price(
        db,
        price_list_id,
        organization_id,
        product_id,
        quantity=quantity,
        customer_type=customer_type,
        cart_amount=cart_amount,
    )
