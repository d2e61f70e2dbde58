import inspect

from scorekeeper.routes import router

OWNER = {"X-Owner-Id": "club-1"}


def create_players(client, names, headers=OWNER):
    return [client.post("/api/players", json={"name": n}, headers=headers).json() for n in names]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_player_crud(client):
    resp = client.post("/api/players", json={"name": "  Ann  "}, headers=OWNER)
    assert resp.status_code == 201
    ann = resp.json()
    assert ann["name"] == "Ann" and ann["points"] == 0

    resp = client.patch(f"/api/players/{ann['id']}", json={"points": 4}, headers=OWNER)
    assert resp.json()["points"] == 4
    resp = client.post(f"/api/players/{ann['id']}/points", json={"points": 3}, headers=OWNER)
    assert resp.json()["points"] == 7

    assert client.get(f"/api/players/{ann['id']}").status_code == 404
    assert len(client.get("/api/players", headers=OWNER).json()["players"]) == 1

    assert client.delete(f"/api/players/{ann['id']}", headers=OWNER).status_code == 204
    assert client.get("/api/players", headers=OWNER).json()["players"] == []


def test_blank_player_name_rejected(client):
    assert client.post("/api/players", json={"name": "   "}, headers=OWNER).status_code == 400
    assert client.post("/api/players", json={"name": ""}, headers=OWNER).status_code == 422


def test_round_robin_needs_four_players(client):
    create_players(client, ["A", "B", "C"])
    resp = client.post("/api/games/round-robin", headers=OWNER)
    assert resp.status_code == 400
    assert "At least 4 players" in resp.json()["detail"]
    assert client.get("/api/games", headers=OWNER).json()["games"] == []


def test_round_robin_creates_games(client):
    create_players(client, ["A", "B", "C", "D", "E", "F"])
    resp = client.post("/api/games/round-robin", headers=OWNER)
    assert resp.status_code == 201
    body = resp.json()
    assert body["attempted"] == body["created"] == 3
    assert body["failed"] == 0
    games = client.get("/api/games", headers=OWNER).json()["games"]
    assert len(games) == 3
    for g in games:
        assert g["status"] == "active"
        names = {g[slot]["name"] for slot in ("team1_player1", "team1_player2", "team2_player1", "team2_player2")}
        assert len(names) == 4


def test_game_scoring_flow(client):
    a, b, c, d = create_players(client, ["A", "B", "C", "D"])
    resp = client.post("/api/games", json={
        "team1_player1_id": a["id"],
        "team1_player2_id": b["id"],
        "team2_player1_id": c["id"],
        "team2_player2_id": d["id"],
    }, headers=OWNER)
    assert resp.status_code == 201
    game_id = resp.json()["id"]

    client.put(f"/api/games/{game_id}/switch-sides", json={"interval": 4}, headers=OWNER)
    resp = client.post(f"/api/games/{game_id}/teams/team1/points", json={"points": 1}, headers=OWNER)
    assert resp.json()["team1_points"] == 2
    assert resp.json()["switch_sides"] is False
    resp = client.post(f"/api/games/{game_id}/teams/team2/points", json={"points": 1}, headers=OWNER)
    assert resp.json()["total_score"] == 4
    assert resp.json()["switch_sides"] is True

    resp = client.put(f"/api/games/{game_id}/teams/team2/points", json={"points": 21}, headers=OWNER)
    assert resp.json()["team2_player1_points"] == 21

    resp = client.post(f"/api/games/{game_id}/end", headers=OWNER)
    assert resp.json()["status"] == "ended"
    assert resp.json()["ended_at"] is not None
    assert client.post(f"/api/games/{game_id}/end", headers=OWNER).status_code == 409

    board = client.get("/api/leaderboard", headers=OWNER).json()["players"]
    assert [row["game_points"] for row in board] == [21, 21, 1, 1]
    assert {row["name"] for row in board[:2]} == {"C", "D"}


def test_switch_sides_rejects_zero(client):
    game_id = client.post("/api/games", json={}, headers=OWNER).json()["id"]
    assert client.put(f"/api/games/{game_id}/switch-sides", json={"interval": 0}, headers=OWNER).status_code == 422


def test_slot_assignment_rejects_duplicate_player(client):
    a, b = create_players(client, ["A", "B"])
    game_id = client.post("/api/games", json={}, headers=OWNER).json()["id"]
    resp = client.put(f"/api/games/{game_id}/slots/team1_player1", json={"player_id": a["id"]}, headers=OWNER)
    assert resp.json()["team1_player1"]["name"] == "A"
    resp = client.put(f"/api/games/{game_id}/slots/team2_player1", json={"player_id": a["id"]}, headers=OWNER)
    assert resp.status_code == 400
    game = client.get(f"/api/games/{game_id}", headers=OWNER).json()
    assert game["team2_player1_id"] is None
    resp = client.put(f"/api/games/{game_id}/slots/team9_player1", json={"player_id": b["id"]}, headers=OWNER)
    assert resp.status_code == 404


def test_timer_endpoints(client):
    game_id = client.post("/api/games", json={}, headers=OWNER).json()["id"]
    assert client.post(f"/api/games/{game_id}/timer/pause", headers=OWNER).status_code == 409
    resp = client.post(f"/api/games/{game_id}/timer/start", headers=OWNER)
    assert resp.json()["timer"]["running"] is True
    resp = client.post(f"/api/games/{game_id}/timer/pause", headers=OWNER)
    assert resp.json()["timer"]["running"] is False
    resp = client.post(f"/api/games/{game_id}/timer/resume", headers=OWNER)
    assert resp.json()["timer"]["running"] is True
    resp = client.post(f"/api/games/{game_id}/timer/reset", headers=OWNER)
    assert resp.json()["timer"]["started_at"] is None


def test_delete_empty_and_all_games(client):
    a, = create_players(client, ["A"])
    client.post("/api/games", json={}, headers=OWNER)
    client.post("/api/games", json={"team1_player1_id": a["id"]}, headers=OWNER)
    assert client.delete("/api/games/empty", headers=OWNER).json() == {"deleted_games": 1}
    assert len(client.get("/api/games", headers=OWNER).json()["games"]) == 1
    assert client.delete("/api/games", headers=OWNER).json() == {"deleted_games": 1}


def test_delete_player_clears_slot(client):
    a, b = create_players(client, ["A", "B"])
    game_id = client.post("/api/games", json={"team1_player1_id": a["id"]}, headers=OWNER).json()["id"]
    client.delete(f"/api/players/{a['id']}", headers=OWNER)
    game = client.get(f"/api/games/{game_id}", headers=OWNER).json()
    assert game["team1_player1_id"] is None


def test_owners_are_isolated(client):
    create_players(client, ["A", "B", "C", "D"])
    assert client.get("/api/players").json()["players"] == []
    assert client.post("/api/games/round-robin").status_code == 400
    resp = client.delete("/api/players", headers=OWNER)
    assert resp.json()["deleted_players"] == 4


def test_unknown_timer_action_is_not_found(client):
    game_id = client.post("/api/games", json={}, headers=OWNER).json()["id"]
    resp = client.post(f"/api/games/{game_id}/timer/foo", headers=OWNER)
    assert resp.status_code == 404
    assert "foo" in resp.json()["detail"]


def test_db_handlers_run_in_threadpool():
    # синхронные обработчики FastAPI запускает вне event loop
    for route in router.routes:
        assert not inspect.iscoroutinefunction(route.endpoint), route.path
