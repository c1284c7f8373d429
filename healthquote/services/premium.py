"""
Premium calculation engine.

Prices a family group for one plan: a unit price per member from the price
table, stacked discounts under a cap, and the adjustment that depends on how
the holder pays (payroll contribution, monotributo contribution or VAT).

The calculator is stateless. Its only I/O are the awaited lookups it is given.
"""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Sequence, Tuple

from healthquote.core.enums import FamilyRole, IncomeType
from healthquote.core.exceptions import (
    DiscountCapExceededError,
    PricingConfigurationError,
    QuotationValidationError,
)
from healthquote.schemas.quotation import (
    CalculatedQuotation,
    FamilyMember,
    PricedMember,
    QuotationCalculation,
    QuotationInput,
    QuotationResult,
)
from healthquote.services.age_bands import translate_age_band
from healthquote.services.lookups import ContributionLookup, PriceLookup

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")
HUNDRED = Decimal("100")

MIN_AGE = 0
MAX_AGE = 100

YOUNG_DISCOUNT_PCT = Decimal("30")
YOUNG_HOLDER_AGE_LIMIT = 26  # exclusive

DISCOUNT_CAP = Decimal("50")
DISCOUNT_CAP_WITH_CARD = Decimal("55")

SOCIAL_SECURITY_RATE = Decimal("0.03")
PLAN_CONTRIBUTION_RATE = Decimal("0.09")
GROSS_SALARY_CAP = Decimal("3500000")
VAT_RATE = Decimal("0.105")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def price_list_for(income_type: IncomeType) -> IncomeType:
    """Monotributo quotations are priced off the mandatory list."""
    if income_type == IncomeType.MONOTRIBUTO:
        return IncomeType.MANDATORY
    return IncomeType(income_type)


def is_young_discount_eligible(members: Sequence[FamilyMember], data: QuotationInput) -> bool:
    """
    The young discount applies on its own, never on request: an unmarried
    holder under 26 whose group holds no spouse.
    """
    holder = next((m for m in members if m.role == FamilyRole.HOLDER), None)
    if holder is None or data.is_married:
        return False
    if holder.age >= YOUNG_HOLDER_AGE_LIMIT:
        return False
    return all(m.role in (FamilyRole.HOLDER, FamilyRole.CHILD) for m in members)


def discount_cap(card_discount_pct: Decimal) -> Decimal:
    return DISCOUNT_CAP_WITH_CARD if card_discount_pct > 0 else DISCOUNT_CAP


def check_discount_cap(
    commercial_pct: Decimal,
    affinity_pct: Decimal,
    young_pct: Decimal,
    card_pct: Decimal,
) -> None:
    requested = commercial_pct + affinity_pct + young_pct + card_pct
    cap = discount_cap(card_pct)
    if requested > cap:
        raise DiscountCapExceededError(requested, cap)


def apply_discounts(base_price: Decimal, percentages: Sequence[Decimal]) -> Tuple[List[Decimal], Decimal]:
    """
    Apply each percentage to what is left after the previous one.

    Returns the amount taken by each step, in order, and the final remainder.
    """
    remainder = base_price
    amounts = []
    for pct in percentages:
        amount = round_money(remainder * pct / HUNDRED)
        remainder -= amount
        amounts.append(amount)
    return amounts, round_money(remainder)


def _as_amount(value: Any, source: str) -> Decimal:
    if isinstance(value, bool):
        raise PricingConfigurationError(f"{source} returned a non-numeric value: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise PricingConfigurationError(f"{source} returned a non-numeric value: {value!r}") from exc
    if not amount.is_finite() or amount < 0:
        raise PricingConfigurationError(f"{source} returned an invalid amount: {value!r}")
    return amount


def _validate(data: QuotationInput, members: Sequence[FamilyMember]) -> None:
    if not members:
        raise QuotationValidationError("A quotation needs at least one family member")

    for position, member in enumerate(members, start=1):
        age = member.age
        if isinstance(age, bool) or not isinstance(age, int) or not MIN_AGE <= age <= MAX_AGE:
            raise QuotationValidationError(
                f"Member {position} ({member.role}): age must be an integer "
                f"between {MIN_AGE} and {MAX_AGE}, got {age!r}"
            )

    holders = sum(1 for m in members if m.role == FamilyRole.HOLDER)
    if holders != 1:
        raise QuotationValidationError(
            f"A family group needs exactly one {FamilyRole.HOLDER} member, got {holders}"
        )

    if data.income_type == IncomeType.MONOTRIBUTO and data.monotributo_category is None:
        raise QuotationValidationError("monotributo_category is required for Monotributo quotations")


async def _price_members(
    data: QuotationInput,
    members: Sequence[FamilyMember],
    prices: PriceLookup,
) -> List[PricedMember]:
    price_list = price_list_for(data.income_type)
    priced = []
    for member in members:
        band = translate_age_band(member.age, member.role, data.is_married)
        if band is None:
            unit_price = ZERO
        else:
            raw = await prices.find_price(data.plan_id, price_list, band)
            unit_price = round_money(_as_amount(raw, f"Price for band {band}"))
        priced.append(PricedMember(role=member.role, age=member.age, unit_price=unit_price))
    return priced


def _mandatory_adjustment(data: QuotationInput, subtotal: Decimal) -> Tuple[Dict[str, Decimal], Decimal]:
    contribution = data.social_security_contribution or ZERO
    gross_salary = round_money(contribution / SOCIAL_SECURITY_RATE) if contribution > 0 else ZERO
    capped_salary = min(gross_salary, GROSS_SALARY_CAP)
    estimated = min(round_money(capped_salary * PLAN_CONTRIBUTION_RATE), subtotal)
    fields = {
        "gross_salary_estimate": gross_salary,
        "estimated_contribution": estimated,
    }
    return fields, subtotal - estimated


async def _monotributo_adjustment(
    data: QuotationInput,
    subtotal: Decimal,
    contributions: ContributionLookup,
) -> Tuple[Dict[str, Decimal], Decimal]:
    category_amount = _as_amount(
        await contributions.find_contribution_by_category(data.monotributo_category),
        f"Contribution for category {data.monotributo_category}",
    )
    adherent_amount = _as_amount(
        await contributions.find_adherent_contribution(),
        "Adherent contribution",
    )
    owed = round_money(category_amount + adherent_amount * data.monotributo_adherents)
    contribution = min(subtotal, owed)
    return {"monotributo_contribution": contribution}, subtotal - contribution


def _voluntary_adjustment(subtotal: Decimal) -> Tuple[Dict[str, Decimal], Decimal]:
    vat = round_money(subtotal * VAT_RATE)
    return {"vat_amount": vat}, subtotal + vat


async def calculate_quotation(
    data: QuotationInput,
    members: Sequence[FamilyMember],
    prices: PriceLookup,
    contributions: ContributionLookup,
) -> QuotationCalculation:
    """
    Price a family group.

    Args:
        data: Plan, income type and requested discounts.
        members: The family group; at least one member.
        prices: Unit price source.
        contributions: Monotributo contribution source, only queried for
            Monotributo quotations.

    Returns:
        The input echoed together with every computed amount, and the members
        with their unit prices.

    Raises:
        QuotationValidationError: Bad member age, missing monotributo category,
            or a discount total above the cap.
        PricingConfigurationError: A lookup found no row or returned a value
            that is not a usable amount.
    """
    _validate(data, members)

    young_pct = YOUNG_DISCOUNT_PCT if is_young_discount_eligible(members, data) else Decimal("0")
    check_discount_cap(
        data.commercial_discount_pct,
        data.affinity_discount_pct,
        young_pct,
        data.card_discount_pct,
    )

    priced_members = await _price_members(data, members, prices)
    base_price = round_money(sum((m.unit_price for m in priced_members), ZERO))

    (affinity_amount, commercial_amount, young_amount, card_amount), subtotal = apply_discounts(
        base_price,
        [data.affinity_discount_pct, data.commercial_discount_pct, young_pct, data.card_discount_pct],
    )

    if data.income_type == IncomeType.MANDATORY:
        adjustments, total = _mandatory_adjustment(data, subtotal)
    elif data.income_type == IncomeType.MONOTRIBUTO:
        adjustments, total = await _monotributo_adjustment(data, subtotal, contributions)
    else:
        adjustments, total = _voluntary_adjustment(subtotal)

    result = QuotationResult(
        base_price=base_price,
        affinity_discount_pct=data.affinity_discount_pct,
        affinity_discount_amount=affinity_amount,
        commercial_discount_pct=data.commercial_discount_pct,
        commercial_discount_amount=commercial_amount,
        young_discount_pct=young_pct,
        young_discount_amount=young_amount,
        card_discount_pct=data.card_discount_pct,
        card_discount_amount=card_amount,
        subtotal=subtotal,
        total=round_money(max(ZERO, total)),
        **adjustments,
    )

    logger.debug(
        f"Quotation priced: plan={data.plan_id} income_type={data.income_type} "
        f"members={len(priced_members)} base={base_price} total={result.total}"
    )

    return QuotationCalculation(
        quotation=CalculatedQuotation(**{**data.model_dump(), **result.model_dump()}),
        members=priced_members,
    )
