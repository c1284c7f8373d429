"""Storage of calculated quotations, their members and their clients."""
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from healthquote.core.metrics import track_db_operation
from healthquote.models.client import Client
from healthquote.models.plan import Plan
from healthquote.models.quotation import Quotation, QuotationMember
from healthquote.schemas.client import ClientIn
from healthquote.schemas.quotation import QuotationCalculation

logger = logging.getLogger(__name__)


def _quotation_columns(calc: QuotationCalculation) -> dict:
    columns = calc.quotation.model_dump(exclude={"plan_id"})
    if columns["monotributo_category"] is not None:
        columns["monotributo_category"] = str(columns["monotributo_category"])
    return columns


def _member_rows(calc: QuotationCalculation) -> List[QuotationMember]:
    return [
        QuotationMember(role=m.role, age=m.age, unit_price=m.unit_price)
        for m in calc.members
    ]


@track_db_operation("select", "plans")
async def get_active_plan(db: AsyncSession, plan_id: int) -> Optional[Plan]:
    res = await db.execute(select(Plan).where(Plan.id == plan_id, Plan.active.is_(True)))
    return res.scalars().first()


async def find_client_by_dni(db: AsyncSession, dni: str) -> Optional[Client]:
    res = await db.execute(select(Client).where(Client.dni == dni))
    return res.scalars().first()


async def get_or_create_client(db: AsyncSession, client_data: ClientIn, employee_id: int) -> Client:
    client = await find_client_by_dni(db, client_data.dni)
    if client:
        return client

    client = Client(**client_data.model_dump(), captured_by=employee_id)
    db.add(client)
    await db.flush()
    logger.info(f"Client {client.id} registered by employee {employee_id}")
    return client


@track_db_operation("insert", "quotations")
async def save_quotation(
    db: AsyncSession,
    calc: QuotationCalculation,
    client_id: int,
    employee_id: int,
) -> Quotation:
    """Stage a new quotation with its members; the caller commits."""
    quotation = Quotation(
        client_id=client_id,
        employee_id=employee_id,
        plan_id=calc.quotation.plan_id,
        members=_member_rows(calc),
        **_quotation_columns(calc),
    )
    db.add(quotation)
    await db.flush()
    return quotation


@track_db_operation("update", "quotations")
async def replace_quotation(db: AsyncSession, quotation: Quotation, calc: QuotationCalculation) -> Quotation:
    """Overwrite every computed amount and replace the member list."""
    quotation.plan_id = calc.quotation.plan_id
    for field, value in _quotation_columns(calc).items():
        setattr(quotation, field, value)
    quotation.members = _member_rows(calc)
    db.add(quotation)
    await db.flush()
    return quotation


@track_db_operation("select", "quotations")
async def get_quotation(db: AsyncSession, quotation_id: int) -> Optional[Quotation]:
    res = await db.execute(
        select(Quotation)
        .where(Quotation.id == quotation_id, Quotation.active.is_(True))
        .options(selectinload(Quotation.members))
        .execution_options(populate_existing=True)
    )
    return res.scalars().first()


@track_db_operation("select", "quotations")
async def list_quotations_for(db: AsyncSession, employee_id: int, limit: int, offset: int):
    member_count = (
        select(func.count(QuotationMember.id))
        .where(QuotationMember.quotation_id == Quotation.id)
        .correlate(Quotation)
        .scalar_subquery()
    )
    res = await db.execute(
        select(Quotation, member_count.label("member_count"))
        .where(Quotation.employee_id == employee_id, Quotation.active.is_(True))
        .order_by(Quotation.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return res.all()


async def find_last_quotation_by_dni(db: AsyncSession, dni: str) -> Optional[Quotation]:
    res = await db.execute(
        select(Quotation)
        .join(Client, Quotation.client_id == Client.id)
        .where(Client.dni == dni, Quotation.active.is_(True))
        .options(selectinload(Quotation.plan), selectinload(Quotation.employee))
        .order_by(Quotation.created_at.desc())
        .limit(1)
    )
    return res.scalars().first()


async def annul_quotation(db: AsyncSession, quotation: Quotation) -> None:
    quotation.active = False
    db.add(quotation)
    await db.flush()
