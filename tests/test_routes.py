"""HTTP-level tests for the routers, run against the in-memory database."""

import httpx
import pytest
import pytest_asyncio

from app.database import get_db
from app.main import app
from app.middleware.rate_limit import RateLimitMiddleware
from app.services import RecencyTracker, SavedPropertyService


@pytest_asyncio.fixture
async def client(db_session, fake_storage):
    """Client wired to the test session and the fake storage service."""

    async def override_get_db():
        yield db_session

    previous_state = (
        app.state.storage,
        app.state.recency_tracker,
        app.state.saved_properties,
    )
    app.dependency_overrides[get_db] = override_get_db
    app.state.storage = fake_storage
    app.state.recency_tracker = RecencyTracker(fake_storage)
    app.state.saved_properties = SavedPropertyService(fake_storage)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.storage, app.state.recency_tracker, app.state.saved_properties = previous_state


def _as(user) -> dict:
    return {"X-User-Id": str(user.id)}


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_rate_limit_middleware_installed():
    assert any(m.cls is RateLimitMiddleware for m in app.user_middleware)


class TestPropertyRoutes:
    """Tests for /properties."""

    @pytest.mark.asyncio
    async def test_search_json(self, client, make_property):
        await make_property(city="Windhoek")
        await make_property(city="Swakopmund")
        await make_property(city="Windhoek", is_available=False)

        response = await client.get("/properties/search", params={"city": "windhoek"})

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["properties"][0]["main_image"].startswith("https://cdn.test/")

    @pytest.mark.asyncio
    async def test_search_htmx_partial(self, client, make_property):
        await make_property(title="Garden cottage")

        response = await client.get(
            "/properties/search", params={"q": "garden"}, headers={"HX-Request": "true"}
        )

        assert response.status_code == 200
        assert "Garden cottage" in response.text

    @pytest.mark.asyncio
    async def test_detail_records_view_for_signed_in_user(self, client, tenant, make_property):
        prop = await make_property()

        response = await client.get(f"/properties/{prop.id}", headers=_as(tenant))
        assert response.status_code == 200
        assert response.json()["id"] == prop.id

        feed = await client.get("/recently-viewed", headers=_as(tenant))
        assert [item["id"] for item in feed.json()["items"]] == [prop.id]

    @pytest.mark.asyncio
    async def test_detail_anonymous_does_not_record(self, client, make_property):
        prop = await make_property()

        response = await client.get(f"/properties/{prop.id}")

        assert response.status_code == 200
        feed = await client.get("/recently-viewed")
        assert feed.json() == {"count": 0, "items": []}

    @pytest.mark.asyncio
    async def test_detail_missing(self, client):
        response = await client.get("/properties/9999")
        assert response.status_code == 404


class TestRecentlyViewedRoutes:
    """Tests for /recently-viewed."""

    @pytest.mark.asyncio
    async def test_record_list_remove_clear(self, client, tenant, make_property):
        props = [await make_property() for _ in range(3)]
        for prop in props:
            response = await client.post(f"/recently-viewed/{prop.id}", headers=_as(tenant))
            assert response.json()["view_id"] is not None

        removed = await client.delete(f"/recently-viewed/{props[0].id}", headers=_as(tenant))
        assert removed.json() == {"success": True}

        cleared = await client.delete("/recently-viewed", headers=_as(tenant))
        assert cleared.json() == {"success": True, "deleted": 2}

    @pytest.mark.asyncio
    async def test_record_anonymous_is_noop(self, client, make_property):
        prop = await make_property()
        response = await client.post(f"/recently-viewed/{prop.id}")
        assert response.json() == {"view_id": None}

    @pytest.mark.asyncio
    async def test_unknown_user_header_is_anonymous(self, client, make_property):
        prop = await make_property()
        response = await client.post(f"/recently-viewed/{prop.id}", headers={"X-User-Id": "abc"})
        assert response.json() == {"view_id": None}

    @pytest.mark.asyncio
    async def test_htmx_partial_empty_renders_nothing(self, client, tenant):
        response = await client.get("/recently-viewed", headers={**_as(tenant), "HX-Request": "true"})
        assert response.status_code == 200
        assert response.text.strip() == ""


class TestSavedRoutes:
    """Tests for /saved."""

    @pytest.mark.asyncio
    async def test_toggle_and_list(self, client, tenant, make_property):
        prop = await make_property()

        toggled = await client.post(f"/saved/{prop.id}/toggle", headers=_as(tenant))
        assert toggled.json() == {"saved": True}

        state = await client.get(f"/saved/{prop.id}", headers=_as(tenant))
        assert state.json() == {"saved": True}

        listing = await client.get("/saved", headers=_as(tenant))
        assert listing.json()["count"] == 1

    @pytest.mark.asyncio
    async def test_toggle_requires_user(self, client, make_property):
        prop = await make_property()
        response = await client.post(f"/saved/{prop.id}/toggle")
        assert response.status_code == 401
        assert response.json() == {"detail": "Authentication required"}

    @pytest.mark.asyncio
    async def test_toggle_missing_property(self, client, tenant):
        response = await client.post("/saved/9999/toggle", headers=_as(tenant))
        assert response.status_code == 404


class TestLeaseRoutes:
    """Tests for /leases."""

    @pytest.mark.asyncio
    async def test_lifecycle_over_http(self, client, landlord, tenant, make_property):
        prop = await make_property()

        created = await client.post(
            "/leases",
            headers=_as(landlord),
            json={
                "property_id": prop.id,
                "tenant_id": tenant.id,
                "start_date": "2026-01-01",
                "end_date": "2026-12-31",
                "monthly_rent": 6500,
            },
        )
        assert created.status_code == 201
        lease_id = created.json()["id"]
        assert created.json()["status"] == "draft"

        sent = await client.post(f"/leases/{lease_id}/send", headers=_as(landlord))
        assert sent.json()["status"] == "sent_to_tenant"

        signed = await client.post(
            f"/leases/{lease_id}/sign", headers=_as(tenant), json={"signature_data": "sig"}
        )
        assert signed.json()["status"] == "tenant_signed"

        approved = await client.post(
            f"/leases/{lease_id}/decision", headers=_as(landlord), json={"approved": True}
        )
        assert approved.json()["status_label"] == "Active"

        mine = await client.get("/leases", headers=_as(tenant), params={"role": "tenant"})
        assert [lease["id"] for lease in mine.json()["leases"]] == [lease_id]

    @pytest.mark.asyncio
    async def test_invalid_transition_is_conflict(self, client, landlord, tenant, make_property):
        prop = await make_property()
        created = await client.post(
            "/leases",
            headers=_as(landlord),
            json={
                "property_id": prop.id,
                "tenant_id": tenant.id,
                "start_date": "2026-01-01",
                "end_date": "2026-12-31",
                "monthly_rent": 6500,
            },
        )

        response = await client.post(
            f"/leases/{created.json()['id']}/sign", headers=_as(tenant), json={"signature_data": "sig"}
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_tenant_cannot_draft(self, client, tenant, make_property):
        prop = await make_property()
        response = await client.post(
            "/leases",
            headers=_as(tenant),
            json={
                "property_id": prop.id,
                "tenant_id": tenant.id,
                "start_date": "2026-01-01",
                "end_date": "2026-12-31",
                "monthly_rent": 6500,
            },
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_end_before_start_is_bad_request(self, client, landlord, tenant, make_property):
        prop = await make_property()
        response = await client.post(
            "/leases",
            headers=_as(landlord),
            json={
                "property_id": prop.id,
                "tenant_id": tenant.id,
                "start_date": "2026-12-31",
                "end_date": "2026-01-01",
                "monthly_rent": 6500,
            },
        )
        assert response.status_code == 400
        assert response.json() == {"detail": "Lease must end after it starts"}

    @pytest.mark.asyncio
    async def test_list_requires_user(self, client):
        response = await client.get("/leases")
        assert response.status_code == 401


class TestInquiryRoutes:
    """Tests for /inquiries."""

    @pytest.mark.asyncio
    async def test_chat_over_http(self, client, landlord, tenant, make_property):
        prop = await make_property()

        response = await client.post(
            "/inquiries",
            json={"property_id": prop.id, "message": "Still available?", "move_in_date": "2026-03-01"},
            headers=_as(tenant),
        )
        assert response.status_code == 201
        created = response.json()
        assert created["status"] == "pending"
        assert created["other_party_name"] == "Lena Landlord"
        inquiry_id = created["id"]

        response = await client.post(
            f"/inquiries/{inquiry_id}/messages", json={"content": "Yes"}, headers=_as(landlord)
        )
        assert response.status_code == 201
        assert response.json()["sender_id"] == landlord.id

        response = await client.get(f"/inquiries/{inquiry_id}/messages", headers=_as(tenant))
        assert [m["content"] for m in response.json()["messages"]] == ["Still available?", "Yes"]

        response = await client.post(f"/inquiries/{inquiry_id}/read", headers=_as(tenant))
        assert response.json() == {"marked": 1}

        response = await client.post(
            f"/inquiries/{inquiry_id}/status", json={"status": "approved"}, headers=_as(landlord)
        )
        assert response.json()["status"] == "approved"

        response = await client.get("/inquiries", params={"role": "landlord"}, headers=_as(landlord))
        data = response.json()
        assert data["count"] == 1
        assert data["inquiries"][0]["last_message"]["content"] == "Yes"

    @pytest.mark.asyncio
    async def test_open_for_property_is_idempotent(self, client, tenant, make_property):
        prop = await make_property()

        first = await client.post(f"/inquiries/property/{prop.id}", headers=_as(tenant))
        second = await client.post(f"/inquiries/property/{prop.id}", headers=_as(tenant))

        assert first.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        assert first.json()["last_message"] is None

    @pytest.mark.asyncio
    async def test_tenant_cannot_change_status(self, client, tenant, make_property):
        prop = await make_property()
        created = await client.post(
            "/inquiries", json={"property_id": prop.id, "message": "Hi"}, headers=_as(tenant)
        )

        response = await client.post(
            f"/inquiries/{created.json()['id']}/status",
            json={"status": "approved"},
            headers=_as(tenant),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_anonymous(self, client, make_property):
        prop = await make_property()

        response = await client.post("/inquiries", json={"property_id": prop.id, "message": "Hi"})
        assert response.status_code == 401

        response = await client.get("/inquiries")
        assert response.json() == {"count": 0, "inquiries": []}

    @pytest.mark.asyncio
    async def test_missing_inquiry(self, client, tenant):
        response = await client.get("/inquiries/9999", headers=_as(tenant))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, client, tenant, make_property):
        prop = await make_property()
        response = await client.post(
            "/inquiries", json={"property_id": prop.id, "message": ""}, headers=_as(tenant)
        )
        assert response.status_code == 422
