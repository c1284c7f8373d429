"""Price and monotributo contribution lookups used by the premium calculator."""
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from healthquote.core.enums import BandKey, IncomeType, MonotributoCategory
from healthquote.core.exceptions import ContributionNotFoundError, PriceNotFoundError
from healthquote.core.metrics import track_db_operation
from healthquote.models.monotributo import ADHERENT_CATEGORY, MonotributoContribution
from healthquote.models.price_list import PriceListEntry


class PriceLookup(Protocol):

    async def find_price(self, plan_id: int, income_type: IncomeType, band_key: BandKey) -> Decimal:
        ...


class ContributionLookup(Protocol):

    async def find_contribution_by_category(self, category: MonotributoCategory) -> Decimal:
        ...

    async def find_adherent_contribution(self) -> Decimal:
        ...


class SqlPriceLookup:
    """Reads unit prices from the active rows of `price_list_entries`"""

    def __init__(self, db: AsyncSession):
        self.db = db

    @track_db_operation("select", "price_list_entries")
    async def find_price(self, plan_id: int, income_type: IncomeType, band_key: BandKey) -> Decimal:
        res = await self.db.execute(
            select(PriceListEntry.price).where(
                PriceListEntry.plan_id == plan_id,
                PriceListEntry.income_type == income_type,
                PriceListEntry.band_key == band_key,
                PriceListEntry.active.is_(True),
            )
        )
        price = res.scalars().first()
        if price is None:
            raise PriceNotFoundError(plan_id, str(income_type), str(band_key))
        return price


class SqlContributionLookup:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find(self, category: str) -> Decimal:
        res = await self.db.execute(
            select(MonotributoContribution.amount).where(
                MonotributoContribution.category == category
            )
        )
        amount = res.scalars().first()
        if amount is None:
            raise ContributionNotFoundError(category)
        return amount

    @track_db_operation("select", "monotributo_contributions")
    async def find_contribution_by_category(self, category: MonotributoCategory) -> Decimal:
        return await self._find(str(category))

    @track_db_operation("select", "monotributo_contributions")
    async def find_adherent_contribution(self) -> Decimal:
        return await self._find(ADHERENT_CATEGORY)
