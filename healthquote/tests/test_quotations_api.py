import pytest
from decimal import Decimal
from types import SimpleNamespace
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import sessionmaker

from healthquote.main import app
from healthquote.db.session import get_db
from healthquote.models.base import Base
from healthquote.models.audit import Audit
from healthquote.models.client import Client
from healthquote.models.monotributo import ADHERENT_CATEGORY, MonotributoContribution
from healthquote.models.plan import Plan
from healthquote.models.price_list import PriceListEntry
from healthquote.models.quotation import Quotation, QuotationMember
from healthquote.models.user import User
from healthquote.core.enums import BandKey, IncomeType, UserRole
from healthquote.core.security import create_access_token, hash_password

pytestmark = pytest.mark.api


@pytest.fixture
async def db_sessions(tmp_path):
    engine_test = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'healthquote.db'}", echo=False)
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    AsyncSessionTest = sessionmaker(engine_test, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with AsyncSessionTest() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield AsyncSessionTest
    app.dependency_overrides.clear()
    await engine_test.dispose()


@pytest.fixture
async def seeded(db_sessions):
    async with db_sessions() as session:
        admin = User(username="admin", password_hash=hash_password("admin-pass"), role=UserRole.ADMIN)
        agent = User(
            username="asesor_1", first_name="Laura", last_name="Gomez",
            password_hash="unused", role=UserRole.AGENT,
        )
        other = User(
            username="asesor_2", first_name="Pablo", last_name="Diaz",
            password_hash="unused", role=UserRole.AGENT,
        )
        plan = Plan(name="Plan 210", active=True)
        retired = Plan(name="Plan 110", active=False)
        session.add_all([admin, agent, other, plan, retired])
        await session.flush()

        def price(income_type, band_key, amount):
            return PriceListEntry(
                plan_id=plan.id, list_name="2026-10", income_type=income_type,
                band_key=band_key, price=Decimal(amount), active=True,
            )

        session.add_all([
            price(IncomeType.VOLUNTARY, BandKey.ADULT_0_25, "10000"),
            price(IncomeType.VOLUNTARY, BandKey.ADULT_26_35, "12000"),
            price(IncomeType.VOLUNTARY, BandKey.CHILD_2_20, "5000"),
            price(IncomeType.MANDATORY, BandKey.ADULT_26_35, "12000"),
            MonotributoContribution(category="A", amount=Decimal("3000")),
            MonotributoContribution(category=ADHERENT_CATEGORY, amount=Decimal("2500")),
        ])
        await session.commit()

        return SimpleNamespace(
            sessions=db_sessions,
            plan_id=plan.id,
            retired_plan_id=retired.id,
            agent_id=agent.id,
            admin=auth_headers(admin),
            agent=auth_headers(agent),
            other=auth_headers(other),
        )


@pytest.fixture
async def api():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}


def quotation_payload(plan_id, dni="30111222", members=None, **quotation_fields):
    return {
        "client_data": {"dni": dni, "first_names": "Ana", "last_names": "Perez", "phone": "1144556677"},
        "quotation_data": {"plan_id": plan_id, "income_type": "Voluntario", "is_married": False, **quotation_fields},
        "members_data": members or [{"role": "Titular", "age": 20}, {"role": "Hijo", "age": 10}],
    }


async def count_rows(sessions, model, *criteria):
    async with sessions() as session:
        res = await session.execute(select(func.count()).select_from(model).where(*criteria))
        return res.scalar_one()


async def create(api, seeded, headers=None, **kwargs):
    response = await api.post(
        "/quotations/", json=quotation_payload(seeded.plan_id, **kwargs), headers=headers or seeded.agent
    )
    assert response.status_code == 201
    return response.json()


class TestCreateQuotation:

    @pytest.mark.asyncio
    async def test_create_persists_quotation_members_and_client(self, api, seeded):
        response = await api.post("/quotations/", json=quotation_payload(seeded.plan_id), headers=seeded.agent)
        assert response.status_code == 201

        data = response.json()
        assert Decimal(data["total"]) == Decimal("11602.50")
        assert Decimal(data["young_discount_pct"]) == Decimal("30")
        assert data["employee_id"] == seeded.agent_id
        assert data["status"] == "cotizado"
        assert [Decimal(m["unit_price"]) for m in data["members"]] == [Decimal("10000"), Decimal("5000")]

        sessions = seeded.sessions
        assert await count_rows(sessions, QuotationMember, QuotationMember.quotation_id == data["id"]) == 2
        assert await count_rows(sessions, Client, Client.dni == "30111222", Client.captured_by == seeded.agent_id) == 1
        assert await count_rows(sessions, Audit, Audit.action == "create_quotation") == 1

    @pytest.mark.asyncio
    async def test_existing_client_is_reused(self, api, seeded):
        first = await create(api, seeded)
        second = await create(api, seeded)

        assert first["client_id"] == second["client_id"]
        assert await count_rows(seeded.sessions, Client) == 1
        assert await count_rows(seeded.sessions, Quotation) == 2

    @pytest.mark.asyncio
    async def test_inactive_plan_is_rejected(self, api, seeded):
        response = await api.post(
            "/quotations/", json=quotation_payload(seeded.retired_plan_id), headers=seeded.agent
        )
        assert response.status_code == 400
        assert "not active" in response.json()["detail"]
        assert await count_rows(seeded.sessions, Quotation) == 0

    @pytest.mark.asyncio
    async def test_rejected_calculation_stores_nothing(self, api, seeded):
        response = await api.post(
            "/quotations/",
            json=quotation_payload(seeded.plan_id, commercial_discount_pct=30),
            headers=seeded.agent,
        )
        assert response.status_code == 400
        assert await count_rows(seeded.sessions, Quotation) == 0
        assert await count_rows(seeded.sessions, Client) == 0

    @pytest.mark.asyncio
    async def test_missing_price_stores_nothing(self, api, seeded):
        payload = quotation_payload(seeded.plan_id, members=[{"role": "Titular", "age": 63}])
        response = await api.post("/quotations/", json=payload, headers=seeded.agent)
        assert response.status_code == 500
        assert await count_rows(seeded.sessions, Quotation) == 0
        assert await count_rows(seeded.sessions, Client) == 0

    @pytest.mark.asyncio
    async def test_idempotency_key_returns_first_quotation(self, api, seeded, memory_redis):
        headers = {**seeded.agent, "Idempotency-Key": "quote-30111222"}
        payload = quotation_payload(seeded.plan_id)

        first = await api.post("/quotations/", json=payload, headers=headers)
        second = await api.post("/quotations/", json=payload, headers=headers)

        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json()["id"] == second.json()["id"]
        assert await count_rows(seeded.sessions, Quotation) == 1


class TestReadQuotations:

    @pytest.mark.asyncio
    async def test_owner_reads_quotation(self, api, seeded):
        created = await create(api, seeded)

        response = await api.get(f"/quotations/{created['id']}", headers=seeded.agent)
        assert response.status_code == 200
        assert response.json()["total"] == created["total"]
        assert len(response.json()["members"]) == 2

    @pytest.mark.asyncio
    async def test_other_employee_is_forbidden(self, api, seeded):
        created = await create(api, seeded)
        response = await api.get(f"/quotations/{created['id']}", headers=seeded.other)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_quotation(self, api, seeded):
        response = await api.get("/quotations/999", headers=seeded.agent)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list_only_shows_own_quotations(self, api, seeded):
        await create(api, seeded, dni="30111222")
        await create(api, seeded, dni="30111223")
        await create(api, seeded, headers=seeded.other, dni="30111224")

        response = await api.get("/quotations/", headers=seeded.agent)
        assert response.status_code == 200
        rows = response.json()
        assert len(rows) == 2
        assert all(row["member_count"] == 2 for row in rows)


class TestUpdateQuotation:

    @pytest.mark.asyncio
    async def test_recompute_replaces_members(self, api, seeded):
        created = await create(api, seeded)
        payload = {
            "quotation_data": {"plan_id": seeded.plan_id, "income_type": "Voluntario"},
            "members_data": [{"role": "Titular", "age": 30}],
        }

        response = await api.put(f"/quotations/{created['id']}", json=payload, headers=seeded.agent)
        assert response.status_code == 200

        data = response.json()
        assert data["id"] == created["id"]
        assert Decimal(data["base_price"]) == Decimal("12000")
        assert Decimal(data["young_discount_pct"]) == Decimal("0")
        assert Decimal(data["total"]) == Decimal("13260.00")
        assert len(data["members"]) == 1
        assert await count_rows(seeded.sessions, QuotationMember) == 1
        assert await count_rows(seeded.sessions, Audit, Audit.action == "update_quotation") == 1

    @pytest.mark.asyncio
    async def test_other_employee_cannot_update(self, api, seeded):
        created = await create(api, seeded)
        payload = {
            "quotation_data": {"plan_id": seeded.plan_id, "income_type": "Voluntario"},
            "members_data": [{"role": "Titular", "age": 30}],
        }
        response = await api.put(f"/quotations/{created['id']}", json=payload, headers=seeded.other)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_ownership_is_checked_before_plan(self, api, seeded):
        created = await create(api, seeded)
        payload = {
            "quotation_data": {"plan_id": seeded.retired_plan_id, "income_type": "Voluntario"},
            "members_data": [{"role": "Titular", "age": 30}],
        }

        foreign = await api.put(f"/quotations/{created['id']}", json=payload, headers=seeded.other)
        missing = await api.put("/quotations/999", json=payload, headers=seeded.agent)
        own = await api.put(f"/quotations/{created['id']}", json=payload, headers=seeded.agent)

        assert foreign.status_code == 403
        assert missing.status_code == 404
        assert own.status_code == 400


class TestAnnulQuotation:

    @pytest.mark.asyncio
    async def test_annulled_quotation_disappears(self, api, seeded):
        created = await create(api, seeded)

        response = await api.delete(f"/quotations/{created['id']}", headers=seeded.agent)
        assert response.status_code == 200
        assert response.json() == {"annulled": True}

        assert (await api.get(f"/quotations/{created['id']}", headers=seeded.agent)).status_code == 404
        assert (await api.get("/quotations/", headers=seeded.agent)).json() == []
        # Soft delete: the row stays
        assert await count_rows(seeded.sessions, Quotation, Quotation.active.is_(False)) == 1

    @pytest.mark.asyncio
    async def test_other_employee_cannot_annul(self, api, seeded):
        created = await create(api, seeded)
        response = await api.delete(f"/quotations/{created['id']}", headers=seeded.other)
        assert response.status_code == 403


class TestVerifyDni:

    @pytest.mark.asyncio
    async def test_unknown_client(self, api, seeded):
        response = await api.get("/quotations/verify-dni/40999888", headers=seeded.agent)
        assert response.status_code == 200
        assert response.json()["exists"] is False

    @pytest.mark.asyncio
    async def test_client_quoted_by_me(self, api, seeded):
        created = await create(api, seeded)

        response = await api.get("/quotations/verify-dni/30111222", headers=seeded.agent)
        assert response.status_code == 200
        data = response.json()
        assert data["exists"] is True
        assert data["quoted_by_me"] is True
        assert data["client"]["dni"] == "30111222"
        assert data["last_quotation"]["id"] == created["id"]
        assert data["last_quotation"]["plan_name"] == "Plan 210"

    @pytest.mark.asyncio
    async def test_client_quoted_by_another_employee(self, api, seeded):
        await create(api, seeded)

        response = await api.get("/quotations/verify-dni/30111222", headers=seeded.other)
        assert response.status_code == 409

        detail = response.json()["detail"]
        assert detail["quoted_by"] == "Laura Gomez"
        assert detail["message"].startswith("Client already quoted by Laura Gomez on ")
        assert detail["client"]["dni"] == "30111222"
        assert detail["quoted_at"]


class TestPriceLists:

    @pytest.mark.asyncio
    async def test_increase_only_touches_chosen_list(self, api, seeded):
        response = await api.post(
            "/price-lists/increase", json={"percentage": "10", "scope": "Voluntario"}, headers=seeded.admin
        )
        assert response.status_code == 200
        assert response.json()["affected_rows"] == 3

        voluntary = await api.get(f"/price-lists/plan/{seeded.plan_id}/Voluntario", headers=seeded.agent)
        assert sorted(Decimal(e["price"]) for e in voluntary.json()) == [
            Decimal("5500"), Decimal("11000"), Decimal("13200"),
        ]
        mandatory = await api.get(f"/price-lists/plan/{seeded.plan_id}/Obligatorio", headers=seeded.agent)
        assert [Decimal(e["price"]) for e in mandatory.json()] == [Decimal("12000")]

    @pytest.mark.asyncio
    async def test_agent_cannot_increase_prices(self, api, seeded):
        response = await api.post(
            "/price-lists/increase", json={"percentage": "10", "scope": "Ambas"}, headers=seeded.agent
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_deleted_entry_is_no_longer_priced(self, api, seeded):
        listing = await api.get(f"/price-lists/plan/{seeded.plan_id}/Voluntario", headers=seeded.agent)
        entry = next(e for e in listing.json() if e["band_key"] == "0-25")

        response = await api.delete(f"/price-lists/{entry['id']}", headers=seeded.admin)
        assert response.status_code == 200

        listing = await api.get(f"/price-lists/plan/{seeded.plan_id}/Voluntario", headers=seeded.agent)
        assert all(e["band_key"] != "0-25" for e in listing.json())

        preview = await api.post(
            "/quotes/calc", json=quotation_payload(seeded.plan_id), headers=seeded.agent
        )
        assert preview.status_code == 500

    @pytest.mark.asyncio
    async def test_delete_missing_entry(self, api, seeded):
        response = await api.delete("/price-lists/999", headers=seeded.admin)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_bulk_load(self, api, seeded):
        entries = [{
            "plan_id": seeded.plan_id, "list_name": "2026-11", "income_type": "Obligatorio",
            "band_key": "0-25", "price": "9000",
        }]
        response = await api.post("/price-lists/", json=entries, headers=seeded.admin)
        assert response.status_code == 201
        assert response.json()["affected_rows"] == 1

        listing = await api.get(f"/price-lists/plan/{seeded.plan_id}/Obligatorio", headers=seeded.agent)
        assert len(listing.json()) == 2

    @pytest.mark.asyncio
    async def test_monotributo_list_is_rejected(self, api, seeded):
        entries = [{
            "plan_id": seeded.plan_id, "list_name": "2026-11", "income_type": "Monotributo",
            "band_key": "0-25", "price": "9000",
        }]
        response = await api.post("/price-lists/", json=entries, headers=seeded.admin)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_price_increase_reaches_cached_preview(self, api, seeded, memory_redis):
        payload = quotation_payload(seeded.plan_id)

        before = await api.post("/quotes/calc", json=payload, headers=seeded.agent)
        assert Decimal(before.json()["quotation"]["base_price"]) == Decimal("15000")

        await api.post(
            "/price-lists/increase", json={"percentage": "10", "scope": "Voluntario"}, headers=seeded.admin
        )

        after = await api.post("/quotes/calc", json=payload, headers=seeded.agent)
        assert Decimal(after.json()["quotation"]["base_price"]) == Decimal("16500")


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_issues_token(self, api, seeded):
        response = await api.post("/auth/login", data={"username": "admin", "password": "admin-pass"})
        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"

        token = response.json()["access_token"]
        listing = await api.get(
            f"/price-lists/plan/{seeded.plan_id}/Voluntario", headers={"Authorization": f"Bearer {token}"}
        )
        assert listing.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_password(self, api, seeded):
        response = await api.post("/auth/login", data={"username": "admin", "password": "nope"})
        assert response.status_code == 400
