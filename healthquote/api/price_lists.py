import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List

from healthquote.db.session import get_db
from healthquote.models.price_list import PriceListEntry
from healthquote.schemas.price_list import AffectedRowsOut, PriceEntryIn, PriceEntryOut, PriceIncreaseIn
from healthquote.core.security import get_current_user, require_admin
from healthquote.core.audit_log import log_audit
from healthquote.core.auth_utils import check_not_found
from healthquote.core.enums import AuditAction, IncomeType, PriceListScope
from healthquote.utils.price_version import bump_price_version

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/price-lists", tags=["price-lists"])


@router.post("/", response_model=AffectedRowsOut, status_code=201)
async def load_price_entries(
    entries: List[PriceEntryIn],
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    """Bulk load of price entries; every new entry starts active."""
    if not entries:
        raise HTTPException(status_code=400, detail="At least one price entry is required")
    if any(e.income_type == IncomeType.MONOTRIBUTO for e in entries):
        raise HTTPException(
            status_code=400,
            detail="Monotributo has no price list of its own; load Obligatorio prices instead"
        )

    db.add_all([PriceListEntry(**e.model_dump(), active=True) for e in entries])
    await log_audit(db, int(current_user.id), AuditAction.LOAD_PRICE_LIST, {"count": len(entries)})
    await db.commit()
    await bump_price_version()

    logger.info(f"{len(entries)} price entries loaded by user {current_user.id}")
    return AffectedRowsOut(message="Price entries loaded", affected_rows=len(entries))


@router.get("/plan/{plan_id}/{income_type}", response_model=List[PriceEntryOut])
async def list_plan_prices(
    plan_id: int,
    income_type: IncomeType,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    res = await db.execute(
        select(PriceListEntry)
        .where(
            PriceListEntry.plan_id == plan_id,
            PriceListEntry.income_type == income_type,
            PriceListEntry.active.is_(True),
        )
        .order_by(PriceListEntry.id)
    )
    return [
        PriceEntryOut(
            id=e.id,
            list_name=e.list_name,
            plan_id=e.plan_id,
            income_type=e.income_type,
            band_key=e.band_key,
            price=e.price,
            active=e.active,
        )
        for e in res.scalars().all()
    ]


@router.post("/increase", response_model=AffectedRowsOut)
async def increase_prices(
    payload: PriceIncreaseIn,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    """Raise every active price of the chosen lists by a percentage."""
    multiplier = 1 + payload.percentage / 100
    stmt = (
        update(PriceListEntry)
        .where(PriceListEntry.active.is_(True))
        .values(price=func.round(PriceListEntry.price * multiplier, 2))
        .execution_options(synchronize_session=False)
    )
    if payload.scope != PriceListScope.BOTH:
        stmt = stmt.where(PriceListEntry.income_type == IncomeType(payload.scope.value))

    result = await db.execute(stmt)
    await log_audit(db, int(current_user.id), AuditAction.INCREASE_PRICES, payload)
    await db.commit()
    await bump_price_version()

    logger.info(f"Prices increased {payload.percentage}% on {payload.scope} ({result.rowcount} rows)")
    return AffectedRowsOut(message="Price increase applied", affected_rows=result.rowcount)


@router.delete("/{entry_id}")
async def delete_price_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    res = await db.execute(select(PriceListEntry).where(PriceListEntry.id == entry_id))
    entry = res.scalars().first()
    check_not_found(entry, "Price entry", entry_id)

    entry.active = False
    db.add(entry)
    await log_audit(db, int(current_user.id), AuditAction.DELETE_PRICE_ENTRY, {"id": entry_id})
    await db.commit()
    await bump_price_version()

    return {"deleted": True}
