from decimal import Decimal
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from healthquote.core.enums import FamilyRole, IncomeType, MonotributoCategory, QuotationStatus
from healthquote.schemas.client import ClientIn

COMMERCIAL_DISCOUNTS = (Decimal("0"), Decimal("20"), Decimal("30"), Decimal("45"))
AFFINITY_DISCOUNTS = (Decimal("0"), Decimal("10"), Decimal("20"))
CARD_DISCOUNTS = (Decimal("0"), Decimal("5"))


def _check_allowed(value: Decimal, allowed: tuple, field: str) -> Decimal:
    if value not in allowed:
        options = ", ".join(str(v) for v in allowed)
        raise ValueError(f"{field} must be one of: {options}")
    return value


class FamilyMember(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: FamilyRole
    # Range is checked by the calculator so the error can name the member
    age: int


class PricedMember(FamilyMember):
    unit_price: Decimal


class QuotationInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan_id: int = Field(..., ge=1)
    income_type: IncomeType
    is_married: bool = False
    social_security_contribution: Optional[Decimal] = Field(None, ge=0)
    commercial_discount_pct: Decimal = Decimal("0")
    affinity_discount_pct: Decimal = Decimal("0")
    card_discount_pct: Decimal = Decimal("0")
    monotributo_category: Optional[MonotributoCategory] = None
    monotributo_adherents: int = Field(0, ge=0)

    @field_validator("commercial_discount_pct")
    @classmethod
    def _commercial(cls, v: Decimal) -> Decimal:
        return _check_allowed(v, COMMERCIAL_DISCOUNTS, "commercial_discount_pct")

    @field_validator("affinity_discount_pct")
    @classmethod
    def _affinity(cls, v: Decimal) -> Decimal:
        return _check_allowed(v, AFFINITY_DISCOUNTS, "affinity_discount_pct")

    @field_validator("card_discount_pct")
    @classmethod
    def _card(cls, v: Decimal) -> Decimal:
        return _check_allowed(v, CARD_DISCOUNTS, "card_discount_pct")


class QuotationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_price: Decimal
    affinity_discount_pct: Decimal
    affinity_discount_amount: Decimal
    commercial_discount_pct: Decimal
    commercial_discount_amount: Decimal
    young_discount_pct: Decimal
    young_discount_amount: Decimal
    card_discount_pct: Decimal
    card_discount_amount: Decimal
    subtotal: Decimal
    gross_salary_estimate: Decimal = Decimal("0.00")
    estimated_contribution: Decimal = Decimal("0.00")
    monotributo_contribution: Decimal = Decimal("0.00")
    vat_amount: Decimal = Decimal("0.00")
    total: Decimal


class CalculatedQuotation(QuotationInput, QuotationResult):
    """Input echoed back together with every computed amount"""


class QuotationCalculation(BaseModel):
    model_config = ConfigDict(frozen=True)

    quotation: CalculatedQuotation
    members: List[PricedMember]


class QuotationRequest(BaseModel):
    quotation_data: QuotationInput
    members_data: List[FamilyMember] = Field(..., min_length=1)


class QuotationCreate(QuotationRequest):
    client_data: ClientIn


class QuotationOut(CalculatedQuotation):
    id: int
    client_id: int
    employee_id: int
    status: QuotationStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    members: List[PricedMember]


class QuotationSummary(BaseModel):
    id: int
    plan_id: int
    client_id: int
    status: QuotationStatus
    total: Decimal
    member_count: int
    created_at: datetime
