"""Quotation preview endpoint with Redis caching"""
import json
import logging
from fastapi import APIRouter, Depends

from healthquote.api.deps import calculate_or_raise, get_contribution_lookup, get_price_lookup
from healthquote.schemas.quotation import QuotationCalculation, QuotationRequest
from healthquote.services.lookups import ContributionLookup, PriceLookup
from healthquote.core.redis import get_redis
from healthquote.core.config import settings
from healthquote.core.metrics import preview_cache_hits, preview_cache_misses
from healthquote.core.security import get_current_user
from healthquote.utils.hashing import cache_key
from healthquote.utils.price_version import get_price_version

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.post("/calc", response_model=QuotationCalculation)
async def calc_quote(
    req: QuotationRequest,
    prices: PriceLookup = Depends(get_price_lookup),
    contributions: ContributionLookup = Depends(get_contribution_lookup),
    current_user=Depends(get_current_user),
):
    """Price a family group without storing anything."""
    redis = get_redis()
    key = None

    if redis is not None:
        try:
            # A price change bumps the version, so older entries are never read again
            version = await get_price_version()
            key = cache_key(f"quote:{version}", req.model_dump(mode="json"))
            cached = await redis.get(key)
            if cached:
                preview_cache_hits.inc()
                return QuotationCalculation.model_validate(json.loads(cached))
        except Exception as e:
            logger.warning(f"Cache retrieval failed: {e}")

    preview_cache_misses.inc()
    result = await calculate_or_raise(req, prices, contributions)

    if redis is not None and key is not None:
        try:
            await redis.set(
                key,
                json.dumps(result.model_dump(mode="json")),
                ex=settings.PRICE_CACHE_TTL
            )
        except Exception as e:
            logger.warning(f"Cache write failed: {e}")

    return result
