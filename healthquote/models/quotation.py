from sqlalchemy import Column, String, Integer, Numeric, Boolean, Enum, ForeignKey
from sqlalchemy.orm import relationship
from healthquote.models.base import BaseModel
from healthquote.core.enums import FamilyRole, IncomeType, QuotationStatus


def _values(enum_cls):
    return [m.value for m in enum_cls]


class Quotation(BaseModel):
    __tablename__ = "quotations"

    client_id = Column(ForeignKey("clients.id"), nullable=False, index=True)
    employee_id = Column(ForeignKey("users.id"), nullable=False, index=True)
    plan_id = Column(ForeignKey("plans.id"), nullable=False)

    client = relationship("Client", backref="quotations")
    employee = relationship("User", backref="quotations")
    plan = relationship("Plan")
    members = relationship(
        "QuotationMember",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationMember.id",
    )

    income_type = Column(Enum(IncomeType, values_callable=_values), nullable=False)
    is_married = Column(Boolean, nullable=False, default=False)
    social_security_contribution = Column(Numeric(12, 2), nullable=True)
    monotributo_category = Column(String(1), nullable=True)
    monotributo_adherents = Column(Integer, nullable=False, default=0)

    base_price = Column(Numeric(12, 2), nullable=False)
    affinity_discount_pct = Column(Numeric(5, 2), nullable=False, default=0)
    affinity_discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    commercial_discount_pct = Column(Numeric(5, 2), nullable=False, default=0)
    commercial_discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    young_discount_pct = Column(Numeric(5, 2), nullable=False, default=0)
    young_discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    card_discount_pct = Column(Numeric(5, 2), nullable=False, default=0)
    card_discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    subtotal = Column(Numeric(12, 2), nullable=False)
    gross_salary_estimate = Column(Numeric(14, 2), nullable=False, default=0)
    estimated_contribution = Column(Numeric(12, 2), nullable=False, default=0)
    monotributo_contribution = Column(Numeric(12, 2), nullable=False, default=0)
    vat_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False)

    status = Column(Enum(QuotationStatus, values_callable=_values), nullable=False, default=QuotationStatus.QUOTED)
    active = Column(Boolean, nullable=False, default=True)


class QuotationMember(BaseModel):
    __tablename__ = "quotation_members"

    quotation_id = Column(ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True)
    quotation = relationship("Quotation", back_populates="members")

    role = Column(Enum(FamilyRole, values_callable=_values), nullable=False)
    age = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
