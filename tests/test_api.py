"""API tests with FastAPI's TestClient (httpx).

The app is built around the per-test in-memory database and a RoomDispatcher,
so websocket clients receive real broadcasts. Entering the TestClient context
runs the startup hook, which starts the broadcast worker.

Usage:
    pytest tests/test_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from live_auction.api.dependencies import OPERATOR_HEADER
from live_auction.api.main import create_app
from live_auction.auction.engine import AuctionEngine
from live_auction.broadcast import Room, RoomDispatcher
from live_auction.config.settings import Settings


def _client(ledger, config):
    room = Room()
    engine = AuctionEngine(ledger, RoomDispatcher(room))
    return TestClient(create_app(engine=engine, room=room, config=config))


@pytest.fixture
def client(ledger, config):
    with _client(ledger, config) as client:
        yield client


@pytest.fixture
def secured_client(ledger):
    config = Settings(_env_file=None, operator_token="s3cret")
    with _client(ledger, config) as client:
        yield client


@pytest.fixture
def seeded(client):
    """Two teams and one approved player created through the admin API."""
    teams = [
        client.post("/api/admin/teams", json={"name": name, "sport": "cricket"}).json()
        for name in ("Strikers", "Titans")
    ]
    player = client.post(
        "/api/admin/players",
        json={
            "name": "Arjun Mehta",
            "sport": "cricket",
            "year": "2nd",
            "stats": {"playingRole": "Batsman"},
            "status": "approved",
        },
    ).json()
    return {"team_a": teams[0], "team_b": teams[1], "player": player}


def _bid(client, seeded, team, amount, **extra):
    return client.post(
        "/api/auction/bid",
        json={"player_id": seeded["player"]["id"], "team_id": seeded[team]["id"], "amount": amount, **extra},
    )


# ========== SERVICE ENDPOINTS ==========


def test_health_and_config(client):
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["last_sequence"] == 0

    config = client.get("/api/config").json()
    assert config["default_team_budget"] == 2000
    assert config["operator_token_required"] is False
    assert "operator_token" not in config

    assert client.get("/").json()["message"] == "Live Auction API"


# ========== AUCTION FLOW ==========


def test_full_lot_lifecycle(client, seeded):
    player_id = seeded["player"]["id"]

    started = client.post("/api/auction/start", json={"player_id": player_id})
    assert started.status_code == 200
    assert started.json()["status"] == "auctioning"

    assert _bid(client, seeded, "team_a", 60).status_code == 200
    response = _bid(client, seeded, "team_b", 70)
    assert response.status_code == 200
    assert response.json()["next_min_bid"] == 80

    current = client.get("/api/auction/current").json()
    assert current["current_auction"]["leading_bid"]["team_name"] == "Titans"
    assert current["current_auction"]["current_price"] == 70
    assert current["sequence"] > 0

    sold = client.post(
        "/api/auction/sold",
        json={"player_id": player_id, "team_id": seeded["team_b"]["id"], "final_price": 70},
    )
    assert sold.status_code == 200
    assert sold.json()["team"]["remaining_budget"] == 1930

    board = client.get("/api/auction/leaderboard").json()
    assert board[0]["name"] == "Titans"
    assert board[0]["players"][0]["name"] == "Arjun Mehta"

    recent = client.get("/api/auction/bids/recent", params={"limit": 5}).json()
    assert [entry["amount"] for entry in recent] == [70, 60]


def test_unsold_skip_and_reset(client, seeded):
    player_id = seeded["player"]["id"]
    client.post("/api/auction/start", json={"player_id": player_id})
    _bid(client, seeded, "team_a", 60)

    reset = client.post("/api/auction/reset-bid")
    assert reset.json() == {"player_id": player_id, "floor_price": 50, "bids_cleared": 1}

    assert client.post("/api/auction/unsold", json={"player_id": player_id}).json()["status"] == "unsold"
    skipped = client.post("/api/auction/skip", json={"player_id": player_id}).json()
    assert skipped["status"] == "eligible"
    assert client.get("/api/auction/current").json()["current_auction"] is None


# ========== ERROR MAPPING ==========


def test_bid_errors_are_machine_readable(client, seeded):
    client.post("/api/auction/start", json={"player_id": seeded["player"]["id"]})
    _bid(client, seeded, "team_a", 70)

    too_low = _bid(client, seeded, "team_b", 40)
    assert too_low.status_code == 409
    assert too_low.json()["error"] == "bid_too_low"
    assert too_low.json()["minimum_bid"] == 80

    over_budget = _bid(client, seeded, "team_b", 5000)
    assert over_budget.status_code == 409
    assert over_budget.json() == {
        "error": "budget_exceeded",
        "message": "Not enough budget. Remaining: 2000 Pts",
        "remaining_budget": 2000,
        "team_id": seeded["team_b"]["id"],
    }

    invalid = _bid(client, seeded, "team_b", -10)
    assert invalid.status_code == 422
    assert invalid.json()["error"] == "validation_error"


def test_not_found_and_conflict(client, seeded):
    missing = client.post("/api/auction/start", json={"player_id": 9999})
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"

    no_lot = client.post("/api/auction/reset-bid")
    assert no_lot.status_code == 409
    assert no_lot.json()["error"] == "conflict"


def test_malformed_request_body(client):
    response = client.post("/api/auction/bid", json={"player_id": 1})

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "validation_error"
    assert {tuple(detail["loc"]) for detail in body["details"]} >= {
        ("body", "team_id"),
        ("body", "amount"),
    }


# ========== STATE ==========


def test_patch_state(client):
    response = client.patch(
        "/api/auction/state",
        json={"is_active": True, "bid_increment_rules": [{"threshold": 0, "increment": 20}]},
    )

    assert response.status_code == 200
    state = client.get("/api/auction/state").json()
    assert state["is_active"] is True
    assert state["bid_increment_rules"] == [{"threshold": 0, "increment": 20}]

    bad = client.patch("/api/auction/state", json={"bid_increment_rules": []})
    assert bad.status_code == 422


# ========== OPERATOR GATE ==========


def test_operator_endpoints_require_token(secured_client):
    headers = {OPERATOR_HEADER: "s3cret"}
    team = {"name": "Strikers", "sport": "cricket"}

    denied = secured_client.post("/api/admin/teams", json=team)
    assert denied.status_code == 403
    assert denied.json()["error"] == "operator_required"

    wrong = secured_client.post("/api/admin/teams", json=team, headers={OPERATOR_HEADER: "nope"})
    assert wrong.status_code == 403

    created = secured_client.post("/api/admin/teams", json=team, headers=headers)
    assert created.status_code == 201

    assert secured_client.get("/api/auction/current").status_code == 200
    assert secured_client.post("/api/auction/start", json={"player_id": 1}).status_code == 403


def test_override_is_ignored_for_bidders(secured_client):
    headers = {OPERATOR_HEADER: "s3cret"}
    team = secured_client.post(
        "/api/admin/teams", json={"name": "Strikers", "sport": "cricket"}, headers=headers
    ).json()
    player = secured_client.post(
        "/api/admin/players",
        json={"name": "Kabir", "sport": "futsal", "year": "1st", "stats": {"playingRole": "Attacker"}},
        headers=headers,
    ).json()
    secured_client.post("/api/auction/start", json={"player_id": player["id"]}, headers=headers)
    bid = {"player_id": player["id"], "team_id": team["id"], "amount": 10, "override": True}

    assert secured_client.post("/api/auction/bid", json=bid).status_code == 409
    accepted = secured_client.post("/api/auction/bid", json=bid, headers=headers)
    assert accepted.status_code == 200
    assert accepted.json()["override"] is True


def test_leaderboard_lockdown_hides_sandbox_teams(secured_client):
    headers = {OPERATOR_HEADER: "s3cret"}
    secured_client.post(
        "/api/admin/teams",
        json={"name": "Sandbox XI", "sport": "cricket", "is_test_data": True},
        headers=headers,
    )
    secured_client.patch("/api/auction/state", json={"testgrounds_locked": True}, headers=headers)

    assert secured_client.get("/api/auction/leaderboard").json() == []
    operator_view = secured_client.get("/api/auction/leaderboard", headers=headers).json()
    assert [row["name"] for row in operator_view] == ["Sandbox XI"]


# ========== ADMIN ==========


def test_wallet_administration(client, seeded):
    player_id = seeded["player"]["id"]
    team_id = seeded["team_a"]["id"]
    client.post("/api/auction/start", json={"player_id": player_id})
    client.post(
        "/api/auction/sold", json={"player_id": player_id, "team_id": team_id, "final_price": 500}
    )

    assert client.post("/api/admin/budgets/reconcile").json() == []

    released = client.post(f"/api/admin/players/{player_id}/release").json()
    assert released["status"] == "unsold"
    assert client.post(f"/api/admin/players/{player_id}/queue").json()["status"] == "eligible"

    reset = client.post(f"/api/admin/teams/{team_id}/reset-wallet").json()
    assert reset["team"]["remaining_budget"] == 2000

    assert client.post("/api/admin/wallets/reset").json()["teams_reset"] == 2


def test_min_bid_and_released_reset(client, seeded):
    updated = client.put("/api/admin/min-bids/cricket", json={"value": 90}).json()
    assert updated == {
        "sport_min_bids": {"cricket": 90, "futsal": 50, "volleyball": 50},
        "players_updated": 1,
    }

    player_id = seeded["player"]["id"]
    client.post("/api/auction/start", json={"player_id": player_id})
    client.post("/api/auction/unsold", json={"player_id": player_id})

    assert client.post("/api/admin/players/reset-released").json() == {"players_reset": 1}


def test_register_player_with_bad_stats(client):
    response = client.post(
        "/api/admin/players",
        json={"name": "Meera", "sport": "volleyball", "year": "3rd", "stats": {"preference": "Libero"}},
    )

    assert response.status_code == 422
    assert response.json()["sport"] == "volleyball"


# ========== WEBSOCKET ==========


def _receive_until(websocket, event_name):
    """Skip events published by earlier requests."""
    message = websocket.receive_json()
    while message["event"] != event_name:
        message = websocket.receive_json()
    return message


def test_websocket_receives_state_sync_then_broadcasts(client, seeded):
    player_id = seeded["player"]["id"]
    client.post("/api/auction/start", json={"player_id": player_id})

    with client.websocket_connect("/ws") as websocket:
        sync = websocket.receive_json()
        assert sync["event"] == "state-sync"
        assert sync["payload"]["current_auction"]["player"]["id"] == player_id

        _bid(client, seeded, "team_a", 60)
        message = _receive_until(websocket, "bid-accepted")

    assert message["event"] == "bid-accepted"
    assert message["sequence"] == sync["sequence"] + 1
    assert message["payload"]["team_name"] == "Strikers"
    assert message["payload"]["amount"] == 60
