"""HTTP surface for generation, result reporting, submissions, sweeps and standings."""
from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from bracketeer.services import notification_service as notify


def _setup(client: TestClient, n: int, **tournament_fields):
    payload = {"name": "Club Night", "format": "single_elimination"}
    payload.update(tournament_fields)
    tid = client.post("/api/tournaments", json=payload).json()["id"]
    ids = []
    for i in range(1, n + 1):
        response = client.post(
            f"/api/tournaments/{tid}/participants",
            json={"user_id": f"user-{i}", "display_name": f"Player {i}", "seed": i},
        )
        assert response.status_code == 201
        ids.append(response.json()["id"])
    return tid, ids


def _matches(client: TestClient, tid: int, **params):
    return {m["bracket_position"]: m for m in client.get(f"/api/tournaments/{tid}/matches", params=params).json()}


def _report(client: TestClient, tid: int, match_id: int, winner_id: int, **scores):
    return client.post(
        f"/api/tournaments/{tid}/matches/{match_id}/report-result", json={"winner_id": winner_id, **scores}
    )


def test_generate_bracket(client: TestClient):
    tid, ids = _setup(client, 4)

    response = client.post(f"/api/tournaments/{tid}/generate-bracket")
    assert response.status_code == 200
    data = response.json()
    assert data["match_count"] == 3
    assert data["bye_count"] == 0
    assert data["rounds"] == {"main": 2}
    assert data["seeded_participant_ids"] == ids
    assert len(data["activated_match_ids"]) == 2

    again = client.post(f"/api/tournaments/{tid}/generate-bracket")
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "BRACKET_ALREADY_GENERATED"

    regenerated = client.post(f"/api/tournaments/{tid}/generate-bracket", json={"regenerate": True})
    assert regenerated.status_code == 200
    assert len(_matches(client, tid)) == 3

    first_round = _matches(client, tid, round=1)
    assert sorted(first_round) == ["R1M1", "R1M2"]
    assert all(m["status"] == "active" for m in first_round.values())
    assert (first_round["R1M1"]["player1_id"], first_round["R1M1"]["player2_id"]) == (ids[0], ids[3])


def test_generate_errors(client: TestClient):
    missing = client.post("/api/tournaments/999/generate-bracket")
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "TOURNAMENT_NOT_FOUND"

    tid, _ = _setup(client, 1)
    lonely = client.post(f"/api/tournaments/{tid}/generate-bracket")
    assert lonely.status_code == 422
    assert lonely.json()["detail"]["code"] == "INVALID_PARTICIPANT_COUNT"
    assert lonely.json()["detail"]["count"] == 1

    tid, _ = _setup(client, 4, format="custom", custom_format="ladder")
    custom = client.post(f"/api/tournaments/{tid}/generate-bracket")
    assert custom.status_code == 422
    assert custom.json()["detail"]["code"] == "UNSUPPORTED_FORMAT"


def test_report_results_through_to_champion(client: TestClient, sink):
    tid, ids = _setup(client, 4)
    client.post(f"/api/tournaments/{tid}/generate-bracket")
    matches = _matches(client, tid)
    r1m1, r1m2 = matches["R1M1"], matches["R1M2"]

    response = _report(client, tid, r1m1["id"], ids[0], player1_score=2, player2_score=1)
    assert response.status_code == 200
    body = response.json()
    assert body["advanced_to_next_round"] is True
    assert body["advanced_to"] == "R2M1"
    assert body["match"]["status"] == "completed"
    assert body["match"]["player1_score"] == 2

    repeat = _report(client, tid, r1m1["id"], ids[0])
    assert repeat.status_code == 200
    assert repeat.json()["already_resolved"] is True

    conflict = _report(client, tid, r1m1["id"], ids[3])
    assert conflict.status_code == 409
    assert conflict.json()["detail"]["code"] == "ALREADY_RESOLVED"

    invalid = _report(client, tid, r1m2["id"], ids[0])
    assert invalid.status_code == 422
    assert invalid.json()["detail"]["code"] == "INVALID_WINNER"

    not_ready = _report(client, tid, matches["R2M1"]["id"], ids[0])
    assert not_ready.status_code == 409
    assert not_ready.json()["detail"]["code"] == "MATCH_NOT_READY"

    assert _report(client, tid, 9999, ids[0]).status_code == 404

    semi = _report(client, tid, r1m2["id"], ids[2]).json()
    assert semi["completed_rounds"] == ["R1"]
    assert semi["activated_match_ids"] == [matches["R2M1"]["id"]]

    final = _report(client, tid, matches["R2M1"]["id"], ids[2]).json()
    assert final["tournament_complete"] is True
    assert final["winner"] == ids[2]

    tournament = client.get(f"/api/tournaments/{tid}").json()
    assert tournament["status"] == "completed"
    assert tournament["winner_participant_id"] == ids[2]

    logs = client.get(f"/api/tournaments/{tid}/logs", params={"action_type": "tournament_complete"}).json()
    assert len(logs) == 1
    rounds = client.get(f"/api/tournaments/{tid}/rounds").json()
    assert [r["status"] for r in rounds] == ["completed", "completed"]
    assert sink.recipients(notify.TOURNAMENT_WINNER) == ["user-3"]


def test_submissions_and_verification(client: TestClient):
    tid, ids = _setup(client, 2)
    client.post(f"/api/tournaments/{tid}/generate-bracket")
    match = _matches(client, tid)["R1M1"]
    url = f"/api/tournaments/{tid}/matches/{match['id']}/submissions"

    claim = client.post(url, json={"submitted_by": ids[0], "winner_id": ids[0], "player1_score": 3, "player2_score": 0})
    assert claim.status_code == 201
    assert claim.json()["resolved"] is False
    assert claim.json()["submission"]["status"] == "pending"

    counter = client.post(url, json={"submitted_by": ids[1], "winner_id": ids[1]})
    assert counter.json()["resolved"] is False

    outsider = client.post(url, json={"submitted_by": 999, "winner_id": ids[0]})
    assert outsider.status_code == 422
    assert outsider.json()["detail"]["code"] == "INVALID_SUBMISSION"

    verified = client.post(f"{url}/{claim.json()['submission']['id']}/verify", json={"approve": True})
    assert verified.status_code == 200
    data = verified.json()
    assert data["resolved"] is True
    assert data["submission"]["status"] == "approved"
    assert data["progression"]["tournament_complete"] is True
    assert data["progression"]["match"]["player1_score"] == 3

    missing = client.post(f"{url}/999/verify", json={"approve": False})
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "SUBMISSION_NOT_FOUND"


def test_sweep_and_override(client: TestClient, sink):
    tid, ids = _setup(client, 4)
    client.post(f"/api/tournaments/{tid}/generate-bracket")
    matches = _matches(client, tid)
    deadline = datetime.fromisoformat(matches["R1M1"]["deadline"])

    early = client.post(f"/api/tournaments/{tid}/sweep-forfeits", json={"now": (deadline - timedelta(hours=1)).isoformat()})
    assert early.json() == []

    client.post(
        f"/api/tournaments/{tid}/matches/{matches['R1M2']['id']}/submissions",
        json={"submitted_by": ids[2], "winner_id": ids[2]},
    )
    swept = client.post(f"/api/tournaments/{tid}/sweep-forfeits", json={"now": (deadline + timedelta(hours=1)).isoformat()})
    assert swept.status_code == 200
    outcomes = {r["bracket_position"]: r for r in swept.json()}
    assert outcomes["R1M1"]["outcome"] == "double_forfeit"
    assert outcomes["R1M2"]["outcome"] == "forfeit"
    assert outcomes["R1M2"]["winner_id"] == ids[2]
    assert outcomes["R1M2"]["advanced_to"] == "R2M1"
    assert sink.recipients(notify.MATCH_FORFEITED) == ["user-1", "user-4"]

    not_forfeit = client.post(
        f"/api/tournaments/{tid}/matches/{matches['R1M2']['id']}/override-winner", json={"winner_id": ids[2]}
    )
    assert not_forfeit.status_code == 409
    assert not_forfeit.json()["detail"]["code"] == "NOT_DOUBLE_FORFEIT"

    override = client.post(
        f"/api/tournaments/{tid}/matches/{matches['R1M1']['id']}/override-winner",
        json={"winner_id": ids[3], "admin_notes": "Player 1 conceded"},
    )
    assert override.status_code == 200
    assert override.json()["advanced_to"] == "R2M1"

    final = _matches(client, tid)["R2M1"]
    assert (final["player1_id"], final["player2_id"], final["status"]) == (ids[3], ids[2], "active")


def test_send_reminders(client: TestClient, sink):
    tid, _ = _setup(client, 2)
    client.post(f"/api/tournaments/{tid}/generate-bracket")
    deadline = datetime.fromisoformat(_matches(client, tid)["R1M1"]["deadline"])

    body = {"now": (deadline - timedelta(hours=6)).isoformat()}
    first = client.post(f"/api/tournaments/{tid}/send-reminders", json=body)
    assert first.json() == {"tournament_id": tid, "queued": 2}
    assert client.post(f"/api/tournaments/{tid}/send-reminders", json=body).json()["queued"] == 0
    assert sink.recipients(notify.DEADLINE_REMINDER) == ["user-1", "user-2"]

    assert client.post("/api/tournaments/999/send-reminders").status_code == 404


def test_round_robin_standings(client: TestClient):
    tid, ids = _setup(client, 3, format="round_robin")
    generated = client.post(f"/api/tournaments/{tid}/generate-bracket").json()
    assert generated["match_count"] == 3

    for match in _matches(client, tid).values():
        winner = min(match["player1_id"], match["player2_id"])
        assert _report(client, tid, match["id"], winner).status_code == 200

    standings = client.get(f"/api/tournaments/{tid}/standings").json()
    table = standings["overall"]
    assert [row["participant_id"] for row in table] == ids
    assert [row["points"] for row in table] == [6, 3, 0]
    assert standings["groups"] == {}

    tournament = client.get(f"/api/tournaments/{tid}").json()
    assert tournament["status"] == "completed"
    assert tournament["winner_participant_id"] == ids[0]
