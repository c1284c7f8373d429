from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List

from healthquote.api.deps import calculate_or_raise, get_contribution_lookup, get_price_lookup
from healthquote.db.session import get_db
from healthquote.schemas.client import DniCheckOut, LastQuotationOut
from healthquote.schemas.quotation import QuotationCreate, QuotationOut, QuotationRequest, QuotationSummary
from healthquote.services import quotations as store
from healthquote.services.lookups import ContributionLookup, PriceLookup
from healthquote.core.security import get_current_user
from healthquote.core.audit_log import log_audit
from healthquote.core.rate_limit import check_rate_limit
from healthquote.core.auth_utils import check_ownership, check_not_found
from healthquote.core.response_builders import (
    build_client_response,
    build_quotation_response,
    build_quotation_summary_list,
)
from healthquote.core.enums import AuditAction
from healthquote.utils.idempotency import get_idempotent, set_idempotent

router = APIRouter(prefix="/quotations", tags=["quotations"])


async def _require_active_plan(db: AsyncSession, plan_id: int) -> None:
    if not await store.get_active_plan(db, plan_id):
        raise HTTPException(
            status_code=400,
            detail=f"Plan {plan_id} does not exist or is not active"
        )


@router.get("/verify-dni/{dni}", response_model=DniCheckOut)
async def verify_dni(
    dni: str,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    client = await store.find_client_by_dni(db, dni)
    if not client:
        return DniCheckOut(exists=False, message="Client not found. A new quotation can be created.")

    client_out = build_client_response(client)
    last = await store.find_last_quotation_by_dni(db, dni)
    if not last:
        return DniCheckOut(
            exists=True,
            quoted_by_me=True,
            message="Client found. A new quotation can be created.",
            client=client_out,
        )

    if last.employee_id == int(current_user.id):
        return DniCheckOut(
            exists=True,
            quoted_by_me=True,
            message="Client already quoted by you. Update the last quotation or create a new one.",
            client=client_out,
            last_quotation=LastQuotationOut(
                id=last.id,
                plan_name=last.plan.name,
                created_at=last.created_at,
            ),
        )

    employee = last.employee
    employee_name = " ".join(filter(None, [employee.first_name, employee.last_name])) or employee.username
    raise HTTPException(
        status_code=409,
        detail={
            "message": f"Client already quoted by {employee_name} on {last.created_at:%d/%m/%Y}",
            "quoted_by": employee_name,
            "quoted_at": last.created_at.isoformat(),
            "client": client_out.model_dump(mode="json"),
        },
    )


@router.post("/", response_model=QuotationOut, status_code=201)
async def create_quotation(
    payload: QuotationCreate,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    prices: PriceLookup = Depends(get_price_lookup),
    contributions: ContributionLookup = Depends(get_contribution_lookup),
    current_user=Depends(get_current_user)
):
    """Price a family group and store the quotation, creating the client if new."""
    await check_rate_limit(int(current_user.id))

    prev = await get_idempotent(int(current_user.id), idempotency_key)
    if prev:
        return prev

    await _require_active_plan(db, payload.quotation_data.plan_id)
    calc = await calculate_or_raise(payload, prices, contributions)

    client = await store.get_or_create_client(db, payload.client_data, int(current_user.id))
    quotation = await store.save_quotation(db, calc, client.id, int(current_user.id))
    await log_audit(db, int(current_user.id), AuditAction.CREATE_QUOTATION, payload)
    await db.commit()

    quotation = await store.get_quotation(db, quotation.id)
    out = build_quotation_response(quotation)
    await set_idempotent(int(current_user.id), idempotency_key, out.model_dump(mode="json"))
    return out


@router.get("/", response_model=List[QuotationSummary])
async def list_quotations(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    rows = await store.list_quotations_for(db, int(current_user.id), limit, offset)
    return build_quotation_summary_list(rows)


@router.get("/{quotation_id}", response_model=QuotationOut)
async def get_quotation(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    quotation = await store.get_quotation(db, quotation_id)
    check_not_found(quotation, "Quotation", quotation_id)
    check_ownership(quotation, current_user)

    return build_quotation_response(quotation)


@router.put("/{quotation_id}", response_model=QuotationOut)
async def update_quotation(
    quotation_id: int,
    payload: QuotationRequest,
    db: AsyncSession = Depends(get_db),
    prices: PriceLookup = Depends(get_price_lookup),
    contributions: ContributionLookup = Depends(get_contribution_lookup),
    current_user=Depends(get_current_user)
):
    """Recompute a quotation from new inputs and replace its members."""
    await check_rate_limit(int(current_user.id))

    quotation = await store.get_quotation(db, quotation_id)
    check_not_found(quotation, "Quotation", quotation_id)
    check_ownership(quotation, current_user, "update")
    await _require_active_plan(db, payload.quotation_data.plan_id)

    calc = await calculate_or_raise(payload, prices, contributions)
    await store.replace_quotation(db, quotation, calc)
    await log_audit(db, int(current_user.id), AuditAction.UPDATE_QUOTATION, payload)
    await db.commit()

    quotation = await store.get_quotation(db, quotation_id)
    return build_quotation_response(quotation)


@router.delete("/{quotation_id}")
async def annul_quotation(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))

    quotation = await store.get_quotation(db, quotation_id)
    check_not_found(quotation, "Quotation", quotation_id)
    check_ownership(quotation, current_user, "annul")

    await store.annul_quotation(db, quotation)
    await log_audit(db, int(current_user.id), AuditAction.ANNUL_QUOTATION, {"id": quotation_id})
    await db.commit()

    return {"annulled": True}
