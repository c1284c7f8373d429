from sqlalchemy import Column, String, Numeric
from healthquote.models.base import BaseModel

ADHERENT_CATEGORY = "Adherente"


class MonotributoContribution(BaseModel):
    __tablename__ = "monotributo_contributions"
    category = Column(String(20), nullable=False, unique=True)
    amount = Column(Numeric(12, 2), nullable=False)
