import asyncio
import random

import pytest
from fastapi.testclient import TestClient

from grovi.config import Settings
from grovi.database import Database
from grovi.database.models import Reward, RewardType, User
from grovi.main import create_app

ROOT = "root@shop.com"
PLAYER = {"X-User-Email": "player@shop.com"}


def seed(url: str, *objects) -> None:
    async def _run() -> None:
        db = Database(url)
        try:
            await db.init_models()
            async with db.session() as s:
                async with s.begin():
                    s.add_all(list(objects))
        finally:
            await db.close()

    asyncio.run(_run())


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'grovi-api.db'}"


@pytest.fixture
def client(db_url):
    settings = Settings(database_url=db_url, root_admin_emails=(ROOT,), config_refresh_seconds=0)
    with TestClient(create_app(settings, rng=random.Random(8))) as c:
        yield c


def post_order(client, order_id="wc-1", email="player@shop.com", total="30.00", status="completed"):
    return client.post(
        "/api/webhooks/orders",
        json={"orderId": order_id, "billingEmail": email, "total": total, "status": status, "lineItems": []},
    )


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_missing_identity_is_401(client):
    res = client.post("/api/spin", json={"mode": "free"})
    assert res.status_code == 401
    assert res.json()["success"] is False


def test_order_webhook_then_replay(client):
    first = post_order(client)
    assert first.status_code == 200
    assert first.json()["processed"] is True
    assert first.json()["coins"] == 30

    again = post_order(client)
    assert again.status_code == 200
    assert again.json()["processed"] is False
    assert again.json()["reason"] == "duplicate"


def test_invalid_order_payload_is_422(client):
    res = client.post("/api/webhooks/orders", json={"total": "5"})
    assert res.status_code == 422
    assert res.json()["code"] == "invalid_request"


@pytest.mark.parametrize("extra", [{"lineItems": 7}, {"total": "1e30"}])
def test_malformed_order_fields_are_422(client, extra):
    payload = {"orderId": "wc-x", "billingEmail": "a@b.com", "total": "5", "status": "completed", **extra}
    res = client.post("/api/webhooks/orders", json=payload)
    assert res.status_code == 422
    assert res.json()["code"] == "invalid_request"


def test_spin_then_cooldown(client):
    post_order(client)

    ok = client.post("/api/spin", json={"mode": "free"}, headers=PLAYER)
    assert ok.status_code == 200
    body = ok.json()
    assert body["success"] is True
    assert {"outcome", "prize", "mysteryBoxes", "totalCoins", "boxes", "spinTickets"} <= body.keys()
    assert body["totalCoins"] == 30 + body["prize"]

    blocked = client.post("/api/spin", json={"mode": "free"}, headers=PLAYER)
    assert blocked.status_code == 429
    assert blocked.json()["code"] == "cooldown"
    assert 1430 <= blocked.json()["remainingMinutes"] <= 1440


def test_bad_spin_mode_is_422(client):
    res = client.post("/api/spin", json={"mode": "turbo"}, headers=PLAYER)
    assert res.status_code == 422


def test_unknown_player_is_404(client):
    res = client.post("/api/box/open", headers={"X-User-Email": "ghost@shop.com"})
    assert res.status_code == 404
    assert res.json()["code"] == "not_found"


def test_engine_failures_map_to_400(client):
    post_order(client)

    no_box = client.post("/api/box/open", headers=PLAYER)
    assert no_box.status_code == 400
    assert no_box.json() == {"success": False, "error": "No boxes available", "code": "no_inventory"}

    top_tier = client.post("/api/box/fuse", json={"rarity": "Legendary"}, headers=PLAYER)
    assert top_tier.status_code == 400
    assert top_tier.json()["code"] == "invalid_tier"

    missing_card = client.post("/api/box/burn", json={"cardId": 12345}, headers=PLAYER)
    assert missing_card.status_code == 404


def test_redeem_box_open_and_burn(db_url):
    seed(db_url, Reward(title="Mystery Box", price_coins=20, stock=3, type=RewardType.MYSTERY_BOX))
    settings = Settings(database_url=db_url, config_refresh_seconds=0)

    with TestClient(create_app(settings, rng=random.Random(8))) as client:
        post_order(client, total="25")

        redeemed = client.post("/api/rewards/redeem", json={"rewardId": 1}, headers=PLAYER)
        assert redeemed.status_code == 200
        assert redeemed.json()["coins"] == 5
        assert redeemed.json()["boxes"] == 1
        assert redeemed.json()["reward"]["type"] == "mysteryBox"

        broke = client.post("/api/rewards/redeem", json={"rewardId": 1}, headers=PLAYER)
        assert broke.status_code == 400
        assert broke.json()["code"] == "insufficient_balance"

        opened = client.post("/api/box/open", headers=PLAYER)
        assert opened.status_code == 200
        body = opened.json()
        assert body["boxesLeft"] == 0
        assert body["totalCoins"] == 5 + body["rewardCoins"]

        burned = client.post("/api/box/burn", json={"cardId": body["card"]["id"]}, headers=PLAYER)
        assert burned.status_code == 200
        assert burned.json()["added"] == body["rewardCoins"]
        assert burned.json()["totalCoins"] == 5 + 2 * body["rewardCoins"]


def test_banned_player_is_403(db_url):
    seed(db_url, User(email="player@shop.com", coins=100, boxes=1, spin_tickets=0, banned=True))
    settings = Settings(database_url=db_url, config_refresh_seconds=0)

    with TestClient(create_app(settings)) as client:
        res = client.post("/api/box/open", headers=PLAYER)
    assert res.status_code == 403
    assert res.json()["success"] is False


def test_admin_routes_require_admin(client):
    body = {"weights": [{"type": "coins", "value": 3, "weight": 1}]}

    denied = client.put("/api/admin/spin-config", json=body, headers=PLAYER)
    assert denied.status_code == 403

    by_root = client.put("/api/admin/spin-config", json=body, headers={"X-User-Email": ROOT})
    assert by_root.status_code == 200
    assert by_root.json()["config"]["version"] == 1

    by_role = client.put(
        "/api/admin/spin-config",
        json={**body, "freeCooldownHours": 1},
        headers={"X-User-Email": "ops@shop.com", "X-User-Role": "admin"},
    )
    assert by_role.status_code == 200
    assert by_role.json()["config"]["version"] == 2
    assert by_role.json()["config"]["freeCooldownHours"] == 1


def test_published_spin_config_drives_the_wheel(client):
    post_order(client)
    client.put(
        "/api/admin/spin-config",
        json={"weights": [{"label": "+3 Coins", "type": "coins", "value": 3, "weight": 1}]},
        headers={"X-User-Email": ROOT},
    )

    res = client.post("/api/spin", json={"mode": "free"}, headers=PLAYER)
    assert res.json()["outcome"] == "+3 Coins"
    assert res.json()["totalCoins"] == 33


def test_box_config_validation(client):
    res = client.put(
        "/api/admin/box-config",
        json={"pools": [{"rarity": "Mythic", "weight": 1}]},
        headers={"X-User-Email": ROOT},
    )
    assert res.status_code == 422


def test_admin_ledger_view(client):
    post_order(client, order_id="wc-9", total="12.40")

    res = client.get("/api/admin/users/player@shop.com/ledger", headers={"X-User-Email": ROOT})
    assert res.status_code == 200
    body = res.json()
    assert body["coins"] == 12
    assert body["totals"]["coins"] == 12
    (entry,) = body["entries"]
    assert entry["source"] == "webhook"
    assert entry["ref"] == "wc-9"
    assert entry["meta"]["order_id"] == "wc-9"


def test_only_admin_role_header_grants_admin(client):
    res = client.get(
        "/api/admin/users/player@shop.com/ledger",
        headers={"X-User-Email": "clerk@shop.com", "X-User-Role": "staff"},
    )
    assert res.status_code == 403
