from decimal import Decimal
from pydantic import BaseModel, Field

from healthquote.core.enums import BandKey, IncomeType, PriceListScope


class PriceEntryIn(BaseModel):
    list_name: str
    plan_id: int = Field(..., ge=1)
    income_type: IncomeType
    band_key: BandKey
    price: Decimal = Field(..., ge=0)


class PriceEntryOut(PriceEntryIn):
    id: int
    active: bool


class PriceIncreaseIn(BaseModel):
    percentage: Decimal = Field(..., gt=0)
    scope: PriceListScope


class AffectedRowsOut(BaseModel):
    message: str
    affected_rows: int
