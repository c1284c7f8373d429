from sqlalchemy import Column, String, Numeric, Boolean, Enum, ForeignKey
from sqlalchemy.orm import relationship
from healthquote.models.base import BaseModel
from healthquote.core.enums import BandKey, IncomeType


class PriceListEntry(BaseModel):
    __tablename__ = "price_list_entries"

    plan_id = Column(ForeignKey("plans.id"), nullable=False, index=True)
    plan = relationship("Plan", backref="price_entries")

    list_name = Column(String(120), nullable=False)
    # Only mandatory and voluntary lists are stored; monotributo reads the mandatory one
    income_type = Column(Enum(IncomeType, values_callable=lambda e: [m.value for m in e]), nullable=False)
    band_key = Column(Enum(BandKey, values_callable=lambda e: [m.value for m in e]), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
