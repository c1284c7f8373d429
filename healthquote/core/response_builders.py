from healthquote.models.client import Client
from healthquote.models.quotation import Quotation
from healthquote.schemas.client import ClientOut
from healthquote.schemas.quotation import PricedMember, QuotationOut, QuotationSummary


def build_client_response(client: Client) -> ClientOut:
    return ClientOut(
        id=client.id,
        dni=client.dni,
        first_names=client.first_names,
        last_names=client.last_names,
        email=client.email,
        phone=client.phone,
        address=client.address,
        postal_code=client.postal_code,
        city=client.city,
        province=client.province,
    )


def build_quotation_response(quotation: Quotation) -> QuotationOut:
    return QuotationOut(
        id=quotation.id,
        client_id=quotation.client_id,
        employee_id=quotation.employee_id,
        plan_id=quotation.plan_id,
        status=quotation.status,
        income_type=quotation.income_type,
        is_married=quotation.is_married,
        social_security_contribution=quotation.social_security_contribution,
        monotributo_category=quotation.monotributo_category,
        monotributo_adherents=quotation.monotributo_adherents,
        base_price=quotation.base_price,
        affinity_discount_pct=quotation.affinity_discount_pct,
        affinity_discount_amount=quotation.affinity_discount_amount,
        commercial_discount_pct=quotation.commercial_discount_pct,
        commercial_discount_amount=quotation.commercial_discount_amount,
        young_discount_pct=quotation.young_discount_pct,
        young_discount_amount=quotation.young_discount_amount,
        card_discount_pct=quotation.card_discount_pct,
        card_discount_amount=quotation.card_discount_amount,
        subtotal=quotation.subtotal,
        gross_salary_estimate=quotation.gross_salary_estimate,
        estimated_contribution=quotation.estimated_contribution,
        monotributo_contribution=quotation.monotributo_contribution,
        vat_amount=quotation.vat_amount,
        total=quotation.total,
        created_at=quotation.created_at,
        updated_at=quotation.updated_at,
        members=[
            PricedMember(role=m.role, age=m.age, unit_price=m.unit_price)
            for m in quotation.members
        ],
    )


def build_quotation_summary(quotation: Quotation, member_count: int) -> QuotationSummary:
    return QuotationSummary(
        id=quotation.id,
        plan_id=quotation.plan_id,
        client_id=quotation.client_id,
        status=quotation.status,
        total=quotation.total,
        member_count=member_count,
        created_at=quotation.created_at,
    )


def build_quotation_summary_list(rows: list) -> list:
    return [build_quotation_summary(quotation, count) for quotation, count in rows]
