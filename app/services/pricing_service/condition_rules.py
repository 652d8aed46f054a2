"""
Typed condition variants.

A PriceListCondition row stores its comparison payload as free-form JSON.
Before anything compares against it, the (condition_type, operator,
condition_value) triple is decoded into exactly one of the variants below.
Each variant knows its legal operators and its typed comparison value, so an
illegal combination fails at decode time instead of silently evaluating to
False.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Literal, Optional, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator, model_validator

from app.core.exceptions import InvalidConditionConfiguration
from app.enums.price_list import ConditionOperator, ConditionType
from app.schemas.common import to_naive_utc

Op = ConditionOperator

NUMERIC_OPERATORS: FrozenSet[ConditionOperator] = frozenset({
    Op.equals,
    Op.greater_than,
    Op.greater_or_equal,
    Op.less_than,
    Op.less_or_equal,
    Op.between,
})
DATE_OPERATORS: FrozenSet[ConditionOperator] = NUMERIC_OPERATORS | {Op.after, Op.before}
CUSTOMER_TYPE_OPERATORS: FrozenSet[ConditionOperator] = frozenset({Op.equals})

# date_range single-bound operators read from_date; these read to_date
_UPPER_BOUND_DATE_OPERATORS = frozenset({Op.less_than, Op.less_or_equal, Op.before})


def _compare(operator: ConditionOperator, actual, value, upper=None) -> bool:
    if operator == Op.equals:
        return actual == value
    if operator in (Op.greater_than, Op.after):
        return actual > value
    if operator == Op.greater_or_equal:
        return actual >= value
    if operator in (Op.less_than, Op.before):
        return actual < value
    if operator == Op.less_or_equal:
        return actual <= value
    if operator == Op.between:
        return value <= actual <= upper
    raise InvalidConditionConfiguration(f"Unsupported operator '{operator}'")


def _check_operator(operator: ConditionOperator, allowed: FrozenSet[ConditionOperator], condition_type: str):
    if operator not in allowed:
        raise ValueError(
            f"operator '{operator.value}' is not valid for condition type '{condition_type}'"
        )


def _check_range(operator: ConditionOperator, lower, upper, lower_key: str, upper_key: str):
    if operator != Op.between:
        return
    if lower is None or upper is None:
        raise ValueError(f"operator 'between' requires both '{lower_key}' and '{upper_key}'")
    if lower > upper:
        raise ValueError(f"'{lower_key}' must not be greater than '{upper_key}'")


class _Rule(BaseModel):
    operator: ConditionOperator

    class Config:
        extra = "ignore"
        frozen = True


class AmountRule(_Rule):
    condition_type: Literal["amount"] = "amount"
    min_amount: Decimal
    max_amount: Optional[Decimal] = None

    @model_validator(mode="after")
    def _validate(self):
        _check_operator(self.operator, NUMERIC_OPERATORS, self.condition_type)
        _check_range(self.operator, self.min_amount, self.max_amount, "min_amount", "max_amount")
        return self

    def matches(self, context) -> bool:
        return _compare(self.operator, context.cart_amount, self.min_amount, self.max_amount)


class QuantityRule(_Rule):
    condition_type: Literal["quantity"] = "quantity"
    min_quantity: int
    max_quantity: Optional[int] = None

    @model_validator(mode="after")
    def _validate(self):
        _check_operator(self.operator, NUMERIC_OPERATORS, self.condition_type)
        _check_range(self.operator, self.min_quantity, self.max_quantity, "min_quantity", "max_quantity")
        return self

    def matches(self, context) -> bool:
        return _compare(self.operator, context.quantity, self.min_quantity, self.max_quantity)


class DateRangeRule(_Rule):
    condition_type: Literal["date_range"] = "date_range"
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None

    @field_validator("from_date", "to_date")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    @model_validator(mode="after")
    def _validate(self):
        _check_operator(self.operator, DATE_OPERATORS, self.condition_type)
        if self.operator == Op.between:
            _check_range(self.operator, self.from_date, self.to_date, "from_date", "to_date")
        elif self.operator in _UPPER_BOUND_DATE_OPERATORS:
            if self.to_date is None:
                raise ValueError(f"operator '{self.operator.value}' requires 'to_date'")
        elif self.from_date is None:
            raise ValueError(f"operator '{self.operator.value}' requires 'from_date'")
        return self

    def matches(self, context) -> bool:
        if self.operator == Op.between:
            return _compare(self.operator, context.at, self.from_date, self.to_date)
        if self.operator in _UPPER_BOUND_DATE_OPERATORS:
            return _compare(self.operator, context.at, self.to_date)
        return _compare(self.operator, context.at, self.from_date)


class CustomerTypeRule(_Rule):
    condition_type: Literal["customer_type"] = "customer_type"
    customer_type: str

    @field_validator("customer_type")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("'customer_type' must not be empty")
        return value

    @model_validator(mode="after")
    def _validate(self):
        _check_operator(self.operator, CUSTOMER_TYPE_OPERATORS, self.condition_type)
        return self

    def matches(self, context) -> bool:
        return context.customer_type is not None and context.customer_type == self.customer_type


ConditionRule = Union[AmountRule, QuantityRule, DateRangeRule, CustomerTypeRule]

_RULES = {
    ConditionType.amount: AmountRule,
    ConditionType.quantity: QuantityRule,
    ConditionType.date_range: DateRangeRule,
    ConditionType.customer_type: CustomerTypeRule,
}


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


def parse_rule(condition_type: Any, operator: Any, condition_value: Any) -> ConditionRule:
    """
    Decode a stored or incoming condition into its typed variant.
    Raises InvalidConditionConfiguration on any mismatch.
    """
    try:
        ctype = ConditionType(condition_type)
    except ValueError:
        raise InvalidConditionConfiguration(f"Unknown condition type '{condition_type}'")

    try:
        op = ConditionOperator(operator)
    except ValueError:
        raise InvalidConditionConfiguration(f"Unknown operator '{operator}'")

    if not isinstance(condition_value, dict):
        raise InvalidConditionConfiguration(
            f"conditionValue for '{ctype.value}' must be an object"
        )

    payload: Dict[str, Any] = {**condition_value, "operator": op, "condition_type": ctype.value}
    try:
        return _RULES[ctype].model_validate(payload)
    except PydanticValidationError as exc:
        raise InvalidConditionConfiguration(
            f"Invalid {ctype.value} condition: {_describe(exc)}"
        ) from exc
