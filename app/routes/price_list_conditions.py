from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.database.connection import get_db
from app.dependencies.organization import get_organization_id
from app.enums.price_list import ConditionStatus
from app.schemas.price_list import (
    PriceListConditionCreate,
    PriceListConditionResponse,
    PriceListConditionsResponse,
    PriceListConditionUpdate,
)
from app.services.price_list.condition_service import (
    create_condition,
    delete_condition,
    get_condition,
    list_conditions,
    update_condition,
)

router = APIRouter(prefix="/price-lists/{price_list_id}/conditions", tags=["Price List Conditions"])


@router.get("/", response_model=PriceListConditionsResponse)
def list_conditions_route(
    price_list_id: int,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    status_filter: Optional[ConditionStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    conditions, pagination = list_conditions(
        db,
        price_list_id,
        organization_id,
        page=page,
        limit=limit,
        status=status_filter.value if status_filter else None,
    )
    return {"conditions": conditions, "pagination": pagination}


@router.post("/", response_model=PriceListConditionResponse, status_code=status.HTTP_201_CREATED)
def create_condition_route(
    price_list_id: int,
    data: PriceListConditionCreate,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    return create_condition(db, price_list_id, data, organization_id)


@router.get("/{condition_id}", response_model=PriceListConditionResponse)
def get_condition_route(
    price_list_id: int,
    condition_id: int,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    return get_condition(db, price_list_id, condition_id, organization_id)


@router.patch("/{condition_id}", response_model=PriceListConditionResponse)
def update_condition_route(
    price_list_id: int,
    condition_id: int,
    data: PriceListConditionUpdate,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    return update_condition(db, price_list_id, condition_id, data, organization_id)


@router.delete("/{condition_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_condition_route(
    price_list_id: int,
    condition_id: int,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    delete_condition(db, price_list_id, condition_id, organization_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
