import logging
from decimal import Decimal
from typing import Iterable, List, NamedTuple

from app.core.exceptions import InvalidConditionConfiguration
from app.enums.price_list import DiscountType
from app.models.price_list import PriceList, PriceListCondition
from app.schemas.pricing import EvaluationContext
from app.services.pricing_service.condition_evaluator import evaluate

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class Resolution(NamedTuple):
    final_amount: Decimal
    applied_condition_ids: List[int]


def resolve(
    price_list: PriceList,
    conditions: Iterable[PriceListCondition],
    context: EvaluationContext,
    base_amount: Decimal,
) -> Resolution:
    """
    Fold the applicable conditions of one price list into a final amount.

    Business rules:
    - Only conditions for which evaluate() is True take part.
    - Order is priority ascending (lower number first), then id ascending.
    - Each discount is computed on the running amount: percentages compound,
      fixed amounts subtract a flat value.
    - The amount never goes below zero.
    - No tax is added here. With tax_excluded the result is net and the
      caller adds tax; with tax_included it is already the gross price.
    """
    applicable: List[PriceListCondition] = []
    for condition in conditions:
        if condition.price_list_id != price_list.id:
            raise InvalidConditionConfiguration(
                f"Condition {condition.id} belongs to price list {condition.price_list_id}, "
                f"not {price_list.id}"
            )
        if evaluate(condition, context):
            applicable.append(condition)

    applicable.sort(key=lambda c: (c.priority, c.id))

    amount = Decimal(base_amount)
    applied_ids: List[int] = []

    for condition in applicable:
        amount = _apply_discount(amount, condition)
        applied_ids.append(condition.id)

    logger.debug(
        "price list %s: base=%s final=%s applied=%s tax_mode=%s",
        price_list.id, base_amount, amount, applied_ids, price_list.pricing_tax_mode,
    )
    return Resolution(final_amount=amount, applied_condition_ids=applied_ids)


# ===================== DISCOUNT HELPERS =====================


def _apply_discount(amount: Decimal, condition: PriceListCondition) -> Decimal:
    """
    percentage:   amount=100, value=10 -> 90
    fixed_amount: amount=100, value=10 -> 90
    """
    value = Decimal(condition.discount_value or 0)

    if condition.discount_type == DiscountType.percentage.value:
        amount = amount * (Decimal("1") - value / HUNDRED)
    elif condition.discount_type == DiscountType.fixed_amount.value:
        amount = amount - value
    else:
        raise InvalidConditionConfiguration(
            f"Condition {condition.id} has unknown discount type '{condition.discount_type}'"
        )

    return max(amount, ZERO)
