from enum import Enum


class PriceListStatus(str, Enum):
    active = "active"
    inactive = "inactive"


class PricingTaxMode(str, Enum):
    tax_included = "tax_included"
    tax_excluded = "tax_excluded"


class ConditionStatus(str, Enum):
    active = "active"
    inactive = "inactive"


class ConditionType(str, Enum):
    amount = "amount"
    quantity = "quantity"
    date_range = "date_range"
    customer_type = "customer_type"


class ConditionOperator(str, Enum):
    equals = "equals"
    greater_than = "greater_than"
    greater_or_equal = "greater_or_equal"
    less_than = "less_than"
    less_or_equal = "less_or_equal"
    between = "between"
    after = "after"
    before = "before"


class DiscountType(str, Enum):
    percentage = "percentage"
    fixed_amount = "fixed_amount"
