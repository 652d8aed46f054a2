import logging

from app.models.price_list import PriceListCondition
from app.schemas.pricing import EvaluationContext
from app.services.pricing_service.condition_rules import parse_rule

logger = logging.getLogger(__name__)


def evaluate(condition: PriceListCondition, context: EvaluationContext) -> bool:
    """
    Return True when `condition` applies to `context`.

    - Inactive conditions, and conditions outside [valid_from, valid_to] at
      context.at, never apply.
    - The payload is decoded into its typed variant; a bad operator/type
      combination raises InvalidConditionConfiguration instead of returning
      False.
    """
    if not condition.is_valid_at(context.at):
        return False

    rule = parse_rule(condition.condition_type, condition.operator, condition.condition_value)
    matched = rule.matches(context)

    logger.debug(
        "condition %s (%s %s) -> %s",
        condition.id, condition.condition_type, condition.operator, matched,
    )
    return matched
