"""Errors raised by the premium calculation engine.

Validation errors mean the caller sent something the rules reject.
Configuration errors mean the price or contribution tables are incomplete
or hold bad data; they are never turned into a zero amount.
"""
from decimal import Decimal


class QuotationError(Exception):
    """Base class for every engine error"""


class QuotationValidationError(QuotationError):
    pass


def _pct(value: Decimal) -> str:
    return f"{value.normalize():f}"


class DiscountCapExceededError(QuotationValidationError):

    def __init__(self, requested: Decimal, cap: Decimal):
        self.requested = requested
        self.cap = cap
        self.excess = requested - cap
        super().__init__(
            f"Total discount of {_pct(requested)}% exceeds the maximum of {_pct(cap)}% "
            f"by {_pct(self.excess)}%"
        )


class PricingConfigurationError(QuotationError):
    pass


class PriceNotFoundError(PricingConfigurationError):

    def __init__(self, plan_id: int, income_type: str, band_key: str):
        self.plan_id = plan_id
        self.income_type = income_type
        self.band_key = band_key
        super().__init__(
            f"Price not found for plan={plan_id}, income_type={income_type}, band={band_key}"
        )


class ContributionNotFoundError(PricingConfigurationError):

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"Monotributo contribution not found for category: {category}")
