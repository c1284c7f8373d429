"""Shared dependencies and engine invocation for the quotation routes"""
import logging
from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from healthquote.db.session import get_db
from healthquote.core.exceptions import PricingConfigurationError, QuotationValidationError
from healthquote.core.metrics import quotations_calculated
from healthquote.schemas.quotation import QuotationCalculation, QuotationRequest
from healthquote.services.lookups import (
    ContributionLookup,
    PriceLookup,
    SqlContributionLookup,
    SqlPriceLookup,
)
from healthquote.services.premium import calculate_quotation

logger = logging.getLogger(__name__)


def get_price_lookup(db: AsyncSession = Depends(get_db)) -> PriceLookup:
    return SqlPriceLookup(db)


def get_contribution_lookup(db: AsyncSession = Depends(get_db)) -> ContributionLookup:
    return SqlContributionLookup(db)


async def calculate_or_raise(
    payload: QuotationRequest,
    prices: PriceLookup,
    contributions: ContributionLookup,
) -> QuotationCalculation:
    income_type = str(payload.quotation_data.income_type)
    try:
        calc = await calculate_quotation(
            payload.quotation_data,
            payload.members_data,
            prices,
            contributions,
        )
    except QuotationValidationError as e:
        quotations_calculated.labels(income_type=income_type, outcome="rejected").inc()
        raise HTTPException(status_code=400, detail=str(e))
    except PricingConfigurationError as e:
        quotations_calculated.labels(income_type=income_type, outcome="misconfigured").inc()
        logger.error(f"Pricing configuration error: {e}")
        raise HTTPException(status_code=500, detail=f"Pricing configuration error: {e}")

    quotations_calculated.labels(income_type=income_type, outcome="ok").inc()
    return calc
