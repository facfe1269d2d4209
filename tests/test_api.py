"""HTTP tests through the FastAPI app with the session dependency overridden."""
import uuid
from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio

from api import create_app
from api.deps import get_session
from api.security import hash_password, verify_password
from db.repositories import users as users_repo

ADMIN = ("boss", "secret1")
AGENT = ("alice", "secret1")


@pytest_asyncio.fixture
async def client(session_factory):
    app = create_app()

    async def _session():
        async with session_factory() as db:
            try:
                yield db
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    app.dependency_overrides[get_session] = _session

    async with session_factory() as db:
        await users_repo.create(db, username=ADMIN[0], password_hash=hash_password(ADMIN[1]), role="admin")
        await users_repo.create(db, username=AGENT[0], password_hash=hash_password(AGENT[1]))
        await db.commit()

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _call_body(**overrides) -> dict:
    body = {
        "date": datetime.now().replace(hour=9, minute=0, second=0, microsecond=0).isoformat(),
        "customer_name": "Maria Santos",
        "phone": "09170000001",
        "order_sku": "SKU-1",
        "quantity": 1,
        "current_price": "100.00",
    }
    body.update(overrides)
    return body


class TestPasswords:
    def test_hash_round_trip(self):
        stored = hash_password("secret1")
        digest, salt = stored.split(".")
        assert len(digest) == 128
        assert verify_password("secret1", stored)
        assert not verify_password("wrong", stored)

    def test_malformed_hash_never_verifies(self):
        assert not verify_password("secret1", "nodot")


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_requires_credentials(client):
    resp = await client.get("/api/calls")
    assert resp.status_code == 401
    assert resp.json()["message"] == "Authentication required"

    resp = await client.get("/api/calls", auth=("alice", "wrong"))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_register_login_me(client):
    resp = await client.post("/api/auth/register", json={"username": "dan", "password": "secret1", "role": "admin"})
    assert resp.status_code == 201
    assert resp.json()["role"] == "agent"

    resp = await client.post("/api/auth/login", json={"username": "dan", "password": "secret1"})
    assert resp.status_code == 200

    resp = await client.get("/api/auth/me", auth=("dan", "secret1"))
    assert resp.json()["username"] == "dan"

    resp = await client.post("/api/auth/register", json={"username": "dan", "password": "secret1"})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_agents_cannot_reach_admin_routes(client):
    assert (await client.get("/api/agents", auth=AGENT)).status_code == 403
    resp = await client.post(
        "/api/products", auth=AGENT, json={"sku": "SKU-9", "name": "Nine", "price": "9.00"}
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_inactive_agent_is_refused(client):
    agents = (await client.get("/api/agents", auth=ADMIN)).json()
    alice = next(a for a in agents if a["username"] == "alice")
    resp = await client.put(f"/api/agents/{alice['id']}", auth=ADMIN, json={"is_active": False})
    assert resp.status_code == 200
    assert (await client.get("/api/calls", auth=AGENT)).status_code == 401


@pytest.mark.asyncio
async def test_create_call_and_duplicate(client):
    resp = await client.post("/api/calls", auth=AGENT, json=_call_body())
    assert resp.status_code == 201
    assert resp.json()["status"] == "new"

    resp = await client.post("/api/calls", auth=AGENT, json=_call_body(customer_name="Someone else"))
    assert resp.status_code == 409
    assert "Duplicate" in resp.json()["message"]


@pytest.mark.asyncio
async def test_invalid_body_is_400(client):
    resp = await client.post("/api/calls", auth=AGENT, json=_call_body(phone="   "))
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Invalid request data"
    assert body["errors"][0]["field"] == "phone"


@pytest.mark.asyncio
async def test_unknown_call_is_404(client):
    resp = await client.get(f"/api/calls/{uuid.uuid4()}", auth=AGENT)
    assert resp.status_code == 404
    resp = await client.post(f"/api/calls/{uuid.uuid4()}/answer", auth=AGENT)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_illegal_transition_is_400(client):
    call = (await client.post("/api/calls", auth=AGENT, json=_call_body())).json()
    resp = await client.post(f"/api/calls/{call['id']}/end", auth=AGENT, json={})
    assert resp.status_code == 400
    assert resp.json()["errors"] == [{"field": "status"}]


@pytest.mark.asyncio
async def test_upsell_flow(client):
    resp = await client.post(
        "/api/products", auth=ADMIN, json={"sku": "SKU-3", "name": "Triple pack", "price": "250.00", "units": 3}
    )
    assert resp.status_code == 201

    call = (await client.post("/api/calls", auth=AGENT, json=_call_body())).json()
    call_id = call["id"]

    resp = await client.post(f"/api/calls/{call_id}/answer", auth=AGENT)
    assert resp.json()["status"] == "in_progress"

    resp = await client.post(f"/api/calls/{call_id}/upsell", auth=AGENT, json={"new_sku": "SKU-3"})
    assert resp.status_code == 200
    assert resp.json()["revenue"] == "150.00"
    assert resp.json()["original_order_sku"] == "SKU-1"

    resp = await client.post(f"/api/calls/{call_id}/end", auth=AGENT, json={"remarks": "bundle", "duration": 30})
    ended = resp.json()
    assert ended["status"] == "completed"
    assert ended["call_remarks"] == "bundle"
    assert ended["status_label"] == "Completed"
    assert ended["order_label"] == "Purchased"

    history = (await client.get(f"/api/calls/{call_id}/history", auth=AGENT)).json()
    assert {h["action"] for h in history} == {"started", "upsell_accepted", "ended"}

    orders = (await client.get("/api/transactions", auth=AGENT)).json()
    assert [o["id"] for o in orders] == [call_id]

    stats = (await client.get("/api/dashboard/stats", auth=AGENT)).json()
    assert stats["total_calls"] == 1
    assert stats["successful_upsells"] == 1
    assert stats["conversion_rate"] == "100.00"

    board = (await client.get("/api/dashboard/agent-performance", auth=ADMIN)).json()
    assert board[0]["agent"]["username"] == "alice"
    assert board[0]["calls_handled"] == 1


@pytest.mark.asyncio
async def test_reset_undoes_call(client):
    call = (await client.post("/api/calls", auth=AGENT, json=_call_body())).json()
    await client.post(f"/api/calls/{call['id']}/answer", auth=AGENT)
    await client.post(f"/api/calls/{call['id']}/upsell/decline", auth=AGENT, json={})
    resp = await client.post(f"/api/calls/{call['id']}/reset", auth=AGENT, json={"notes": "misclick"})
    assert resp.json()["status"] == "new"
    assert resp.json()["order_confirmed"] is False
    assert resp.json()["status_label"] == "Dial"


@pytest.mark.asyncio
async def test_agent_stats_are_scoped_to_self(client):
    await client.post("/api/calls", auth=ADMIN, json=_call_body())
    other = str(uuid.uuid4())
    stats = (await client.get(f"/api/dashboard/stats?agent_id={other}", auth=AGENT)).json()
    assert stats["total_calls"] == 0
    stats = (await client.get("/api/dashboard/stats", auth=ADMIN)).json()
    assert stats["total_calls"] == 1


@pytest.mark.asyncio
async def test_csv_import(client):
    csv_text = (
        "name,phone,order,qty,price\n"
        "Ana Cruz,0917001,SKU-1,1,100\n"
        "Ana Cruz,0917001,SKU-1,1,100\n"
        "No Phone,,SKU-1,1,100\n"
    )
    files = {"file": ("calls.csv", csv_text.encode(), "text/csv")}

    resp = await client.post("/api/calls/import", auth=AGENT, files=files)
    assert resp.status_code == 403

    resp = await client.post("/api/calls/import", auth=ADMIN, files=files)
    assert resp.status_code == 200
    summary = resp.json()
    assert summary["success"] == 1
    assert summary["duplicates"] == 1
    assert summary["errors"][0]["row"] == 3

    calls = (await client.get("/api/calls", auth=ADMIN)).json()
    assert len(calls) == 1
    assert calls[0]["status"] == "new"


@pytest.mark.asyncio
async def test_edit_and_assign_call(client):
    call = (await client.post("/api/calls", auth=AGENT, json=_call_body())).json()

    resp = await client.put(f"/api/calls/{call['id']}", auth=AGENT, json={"address": "Makati"})
    assert resp.status_code == 200
    assert resp.json()["address"] == "Makati"

    agents = (await client.get("/api/agents", auth=ADMIN)).json()
    alice = next(a for a in agents if a["username"] == "alice")
    resp = await client.post(f"/api/calls/{call['id']}/assign", auth=ADMIN, json={"agent_id": alice["id"]})
    assert resp.status_code == 200
    assert resp.json()["agent_id"] == alice["id"]

    resp = await client.post(f"/api/calls/{call['id']}/assign", auth=ADMIN, json={"agent_id": str(uuid.uuid4())})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_edit_product(client):
    product = (await client.post(
        "/api/products", auth=ADMIN, json={"sku": "SKU-3", "name": "Triple pack", "price": "250.00"}
    )).json()
    resp = await client.put(f"/api/products/{product['id']}", auth=ADMIN, json={"price": "199.00"})
    assert resp.status_code == 200
    assert resp.json()["price"] == "199.00"


@pytest.mark.asyncio
async def test_null_for_required_field_is_400(client):
    call = (await client.post("/api/calls", auth=AGENT, json=_call_body())).json()
    product = (await client.post(
        "/api/products", auth=ADMIN, json={"sku": "SKU-3", "name": "Triple pack", "price": "250.00"}
    )).json()
    agents = (await client.get("/api/agents", auth=ADMIN)).json()

    for url, auth, body in [
        (f"/api/calls/{call['id']}", AGENT, {"date": None}),
        (f"/api/calls/{call['id']}", AGENT, {"phone": None}),
        (f"/api/products/{product['id']}", ADMIN, {"sku": None}),
        (f"/api/agents/{agents[0]['id']}", ADMIN, {"username": None}),
    ]:
        resp = await client.put(url, auth=auth, json=body)
        assert resp.status_code == 400, (url, body, resp.text)
        assert resp.json()["message"] == "Invalid request data"

    # Nullable columns can still be cleared
    resp = await client.put(f"/api/calls/{call['id']}", auth=AGENT, json={"address": None})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_aware_call_date_is_stored_as_local_time(client):
    sent = datetime(2026, 10, 18, 1, 0, tzinfo=timezone.utc)
    resp = await client.post("/api/calls", auth=AGENT, json=_call_body(date="2026-10-18T01:00:00Z"))
    assert resp.status_code == 201
    assert resp.json()["date"] == sent.astimezone().replace(tzinfo=None).isoformat()
