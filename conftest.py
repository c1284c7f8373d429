import pytest
from decimal import Decimal
from types import SimpleNamespace
from httpx import AsyncClient, ASGITransport

from healthquote.main import app
from healthquote.core import redis as redis_module
from healthquote.api.deps import get_contribution_lookup, get_price_lookup
from healthquote.core.security import create_access_token, get_current_user
from healthquote.core.enums import BandKey, IncomeType, UserRole
from healthquote.core.exceptions import ContributionNotFoundError, PriceNotFoundError
from healthquote.models.monotributo import ADHERENT_CATEGORY


class InMemoryPriceLookup:
    """Price table keyed by (plan, income type, band); records every lookup"""

    def __init__(self, rows=None):
        self.rows = dict(rows or {})
        self.calls = []

    def add(self, plan_id, income_type, band_key, price):
        self.rows[(plan_id, IncomeType(income_type), BandKey(band_key))] = price
        return self

    async def find_price(self, plan_id, income_type, band_key):
        self.calls.append((plan_id, income_type, band_key))
        key = (plan_id, IncomeType(income_type), BandKey(band_key))
        if key not in self.rows:
            raise PriceNotFoundError(plan_id, str(income_type), str(band_key))
        return self.rows[key]


class InMemoryContributionLookup:

    def __init__(self, categories=None, adherent=None):
        self.categories = dict(categories or {})
        self.adherent = adherent
        self.calls = []

    async def find_contribution_by_category(self, category):
        self.calls.append(str(category))
        if str(category) not in self.categories:
            raise ContributionNotFoundError(str(category))
        return self.categories[str(category)]

    async def find_adherent_contribution(self):
        self.calls.append(ADHERENT_CATEGORY)
        if self.adherent is None:
            raise ContributionNotFoundError(ADHERENT_CATEGORY)
        return self.adherent


class InMemoryRedis:
    """The slice of redis.asyncio.Redis the service uses, held in a dict"""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value if isinstance(value, bytes) else str(value).encode()
        return True

    async def incr(self, key):
        value = int(self.store.get(key, b"0")) + 1
        self.store[key] = str(value).encode()
        return value

    async def ping(self):
        return True


@pytest.fixture
def price_table():
    return (
        InMemoryPriceLookup()
        .add(1, IncomeType.VOLUNTARY, BandKey.ADULT_0_25, Decimal("10000"))
        .add(1, IncomeType.VOLUNTARY, BandKey.ADULT_26_35, Decimal("10000"))
        .add(1, IncomeType.VOLUNTARY, BandKey.CHILD_2_20, Decimal("5000"))
        .add(1, IncomeType.VOLUNTARY, BandKey.MARRIED_41_50, Decimal("30000"))
        .add(1, IncomeType.VOLUNTARY, BandKey.CHILD_0_1, Decimal("4000"))
        .add(1, IncomeType.MANDATORY, BandKey.ADULT_26_35, Decimal("12000"))
        .add(1, IncomeType.MANDATORY, BandKey.ADULT_0_25, Decimal("9000"))
        .add(1, IncomeType.MANDATORY, BandKey.MARRIED_36_40, Decimal("25000"))
        .add(1, IncomeType.MANDATORY, BandKey.CHILD_2_20, Decimal("4500"))
    )


@pytest.fixture
def contribution_table():
    return InMemoryContributionLookup(
        categories={"A": Decimal("3000"), "D": Decimal("4500.50"), "K": Decimal("90000")},
        adherent=Decimal("2500"),
    )


@pytest.fixture
def agent_user():
    return SimpleNamespace(id=1, username="asesor_1", role=UserRole.AGENT, active=True)


@pytest.fixture
def agent_token():
    return create_access_token("1", UserRole.AGENT)


@pytest.fixture
def memory_redis(monkeypatch):
    client = InMemoryRedis()
    monkeypatch.setattr(redis_module, "redis", client)
    return client


@pytest.fixture
async def test_client(price_table, contribution_table, agent_user):
    app.dependency_overrides[get_price_lookup] = lambda: price_table
    app.dependency_overrides[get_contribution_lookup] = lambda: contribution_table
    app.dependency_overrides[get_current_user] = lambda: agent_user

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def voluntary_request():
    return {
        "quotation_data": {
            "plan_id": 1,
            "income_type": "Voluntario",
            "is_married": False,
        },
        "members_data": [
            {"role": "Titular", "age": 20},
            {"role": "Hijo", "age": 10},
        ],
    }


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to premium calculation"
    )
    config.addinivalue_line(
        "markers", "api: marks tests that go through the HTTP layer"
    )
