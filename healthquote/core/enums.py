from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    AGENT = "agent"

    def __str__(self):
        return self.value


class FamilyRole(str, Enum):
    HOLDER = "Titular"
    SPOUSE = "Conyuge"
    CHILD = "Hijo"

    def __str__(self):
        return self.value


class IncomeType(str, Enum):
    MANDATORY = "Obligatorio"
    VOLUNTARY = "Voluntario"
    MONOTRIBUTO = "Monotributo"

    def __str__(self):
        return self.value


class PriceListScope(str, Enum):
    """Target lists of a massive price increase"""
    MANDATORY = "Obligatorio"
    VOLUNTARY = "Voluntario"
    BOTH = "Ambas"

    def __str__(self):
        return self.value


class MonotributoCategory(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"
    G = "G"
    H = "H"
    I = "I"
    J = "J"
    K = "K"

    def __str__(self):
        return self.value


class BandKey(str, Enum):
    """Canonical price-table age bands.

    Child bands are only reachable through the child role; married bands
    carry the spouse's cost bundled into the holder's price.
    """
    CHILD_0_1 = "child:0-1"
    CHILD_2_20 = "child:2-20"
    CHILD_21_29 = "child:21-29"
    CHILD_30_39 = "child:30-39"
    CHILD_40_49 = "child:40-49"

    ADULT_0_25 = "0-25"
    ADULT_26_35 = "26-35"
    ADULT_36_40 = "36-40"
    ADULT_41_50 = "41-50"
    ADULT_51_60 = "51-60"
    ADULT_61_65 = "61-65"
    ADULT_66_UP = "66-00"

    MARRIED_0_25 = "married:0-25"
    MARRIED_26_35 = "married:26-35"
    MARRIED_36_40 = "married:36-40"
    MARRIED_41_50 = "married:41-50"
    MARRIED_51_60 = "married:51-60"
    MARRIED_61_65 = "married:61-65"
    MARRIED_66_UP = "married:66-00"

    def __str__(self):
        return self.value


class QuotationStatus(str, Enum):
    QUOTED = "cotizado"
    SOLD = "vendido"
    EXPIRED = "vencido"

    def __str__(self):
        return self.value


class AuditAction(str, Enum):
    CREATE_QUOTATION = "create_quotation"
    UPDATE_QUOTATION = "update_quotation"
    ANNUL_QUOTATION = "annul_quotation"
    LOAD_PRICE_LIST = "load_price_list"
    INCREASE_PRICES = "increase_prices"
    DELETE_PRICE_ENTRY = "delete_price_entry"
    LOGIN = "login"

    def __str__(self):
        return self.value
