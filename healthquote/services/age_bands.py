"""Translation of a member's age and family role into a price-table band."""
from typing import Optional

from healthquote.core.enums import BandKey, FamilyRole

# (upper bound inclusive, band)
CHILD_BANDS = (
    (1, BandKey.CHILD_0_1),
    (20, BandKey.CHILD_2_20),
    (29, BandKey.CHILD_21_29),
    (39, BandKey.CHILD_30_39),
    (49, BandKey.CHILD_40_49),
)

ADULT_BANDS = (
    (25, BandKey.ADULT_0_25),
    (35, BandKey.ADULT_26_35),
    (40, BandKey.ADULT_36_40),
    (50, BandKey.ADULT_41_50),
    (60, BandKey.ADULT_51_60),
    (65, BandKey.ADULT_61_65),
)

MARRIED_BANDS = {
    BandKey.ADULT_0_25: BandKey.MARRIED_0_25,
    BandKey.ADULT_26_35: BandKey.MARRIED_26_35,
    BandKey.ADULT_36_40: BandKey.MARRIED_36_40,
    BandKey.ADULT_41_50: BandKey.MARRIED_41_50,
    BandKey.ADULT_51_60: BandKey.MARRIED_51_60,
    BandKey.ADULT_61_65: BandKey.MARRIED_61_65,
    BandKey.ADULT_66_UP: BandKey.MARRIED_66_UP,
}


def _adult_band(age: int) -> BandKey:
    for upper, band in ADULT_BANDS:
        if age <= upper:
            return band
    return BandKey.ADULT_66_UP


def translate_age_band(age: int, role: FamilyRole, is_married: bool) -> Optional[BandKey]:
    """
    Map a member to the band its unit price is listed under.

    Returns None for a spouse: the spouse is priced inside the holder's
    married band and must not be looked up on its own. A child aged 50 or
    more is priced as a single adult and never takes the married band.
    """
    if role == FamilyRole.SPOUSE:
        return None

    if role == FamilyRole.CHILD:
        for upper, band in CHILD_BANDS:
            if age <= upper:
                return band

    band = _adult_band(age)
    if role == FamilyRole.HOLDER and is_married:
        return MARRIED_BANDS[band]
    return band
