"""
Integration tests for the live scoring API.
Balls are recorded through the HTTP layer and state is read back by replay.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.engine.deliveries import ExtraType
from app.models.match import Ball
from main import app

BATTING_ORDER = ["A", "B", "C", "D"]


@pytest.fixture
def client():
    """Test client backed by an in-memory database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture
def match_id(client):
    response = client.post("/api/matches", json={"name": "Final", "venue": "Oval", "overs": 20})
    assert response.status_code == 200
    return response.json()["id"]


def start(client, match_id, innings_number=1, order=None, striker="A", non_striker="B", bowler="X"):
    return client.post(f"/api/matches/{match_id}/start", json={
        "innings_number": innings_number,
        "batting_order": order if order is not None else BATTING_ORDER,
        "striker_id": striker,
        "non_striker_id": non_striker,
        "bowler_id": bowler,
    })


def bowl(client, match_id, striker="A", **fields):
    payload = {"striker_id": striker, "bowler_id": "X"}
    payload.update(fields)
    return client.post(f"/api/matches/{match_id}/balls", json=payload)


@pytest.fixture
def live_match(client, match_id):
    assert start(client, match_id).status_code == 200
    return match_id


class TestMatchSetup:
    def test_create_and_get_match(self, client, match_id):
        response = client.get(f"/api/matches/{match_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Final"
        assert data["status"] == "scheduled"
        assert data["current_innings"] is None

    def test_unknown_match(self, client):
        assert client.get("/api/matches/999").status_code == 404
        assert client.get("/api/matches/999/current-state").status_code == 404

    def test_start_innings_returns_opening_state(self, client, match_id):
        response = start(client, match_id)

        assert response.status_code == 200
        data = response.json()
        assert data["innings_number"] == 1
        assert data["balls_recorded"] == 0
        assert data["state"] == {
            "striker": "A", "non_striker": "B", "bowler": "X",
            "over": 1, "ball_in_over": 1, "legal_balls_in_over": 0, "overs": "0.0",
        }
        match = client.get(f"/api/matches/{match_id}").json()
        assert match["status"] == "live"
        assert match["current_innings"] == 1

    def test_same_opener_twice_rejected(self, client, match_id):
        response = start(client, match_id, striker="A", non_striker="A")
        assert response.status_code == 422

    def test_state_before_innings_started(self, client, match_id):
        assert client.get(f"/api/matches/{match_id}/current-state").status_code == 404
        assert bowl(client, match_id).status_code == 404


class TestRecordBall:
    def test_single_rotates_strike(self, client, live_match):
        response = bowl(client, live_match, runs=1)

        assert response.status_code == 200
        data = response.json()
        assert data["ball"]["over"] == 1
        assert data["ball"]["ball_number"] == 1
        assert data["ball"]["is_legal"] is True
        assert data["current"]["state"]["striker"] == "B"
        assert data["current"]["state"]["ball_in_over"] == 2

    def test_wide_is_stored_as_illegal(self, client, live_match):
        data = bowl(client, live_match, extras="wide", extra_runs=1).json()

        assert data["ball"]["extras"] == "wide"
        assert data["ball"]["is_legal"] is False
        assert data["current"]["state"]["striker"] == "A"
        assert data["current"]["state"]["legal_balls_in_over"] == 0

    def test_wicket_brings_in_next_batsman(self, client, live_match):
        data = bowl(client, live_match, is_wicket=True, wicket_type="caught").json()

        assert data["current"]["state"]["striker"] == "C"
        assert data["current"]["wickets"] == 1
        assert data["current"]["all_out"] is False

    def test_over_completes(self, client, live_match):
        for _ in range(6):
            bowl(client, live_match)

        state = client.get(f"/api/matches/{live_match}/current-state").json()["state"]

        assert state["over"] == 2
        assert state["overs"] == "1.0"
        assert state["striker"] == "B"

    def test_balls_listed_in_order(self, client, live_match):
        bowl(client, live_match, runs=1)
        bowl(client, live_match, striker="B", runs=2)

        balls = client.get(f"/api/matches/{live_match}/balls").json()

        assert [b["sequence"] for b in balls] == [1, 2]
        assert [b["striker_id"] for b in balls] == ["A", "B"]
        assert [b["ball_number"] for b in balls] == [1, 2]

    def test_no_ball_after_all_out(self, client, match_id):
        start(client, match_id, order=["A", "B", "C"])
        bowl(client, match_id, is_wicket=True, wicket_type="bowled")
        data = bowl(client, match_id, striker="C", is_wicket=True, wicket_type="bowled").json()

        assert data["current"]["all_out"] is True
        assert data["current"]["wickets"] == 2

        response = bowl(client, match_id, striker="C")
        assert response.status_code == 400

    def test_wicket_naming_non_striker_rejected(self, client, live_match):
        response = bowl(client, live_match, striker="B", is_wicket=True, wicket_type="run-out")

        assert response.status_code == 400
        current = client.get(f"/api/matches/{live_match}/current-state").json()
        assert current["balls_recorded"] == 0
        assert current["wickets"] == 0
        assert current["all_out"] is False

    def test_run_out_by_striker_keeps_innings_open(self, client, live_match):
        data = bowl(client, live_match, is_wicket=True, wicket_type="run-out", runs=1).json()

        assert data["current"]["state"]["striker"] == "B"
        assert data["current"]["state"]["non_striker"] == "C"
        assert data["current"]["all_out"] is False
        assert bowl(client, live_match, striker="B", runs=2).status_code == 200

    def test_legality_follows_extras(self):
        ball = Ball(extras=ExtraType.LEG_BYE)
        assert ball.is_legal is True

        ball.extras = ExtraType.NO_BALL
        assert ball.is_legal is False


class TestBallValidation:
    def test_negative_runs_rejected(self, client, live_match):
        assert bowl(client, live_match, runs=-1).status_code == 422

    def test_wicket_type_required_for_wicket(self, client, live_match):
        assert bowl(client, live_match, is_wicket=True).status_code == 422

    def test_wicket_type_without_wicket_rejected(self, client, live_match):
        assert bowl(client, live_match, wicket_type="bowled").status_code == 422

    def test_unknown_extra_type_rejected(self, client, live_match):
        assert bowl(client, live_match, extras="penalty").status_code == 422

    def test_missing_striker_rejected(self, client, live_match):
        response = client.post(f"/api/matches/{live_match}/balls", json={"bowler_id": "X"})
        assert response.status_code == 422


class TestPreview:
    def test_preview_does_not_record(self, client, live_match):
        bowl(client, live_match, runs=1)

        response = client.post(
            f"/api/matches/{live_match}/next-state",
            json={"striker_id": "B", "bowler_id": "X", "is_wicket": True, "wicket_type": "run-out", "runs": 1},
        )

        assert response.status_code == 200
        preview = response.json()
        assert preview["striker"] == "A"
        assert preview["non_striker"] == "C"

        current = client.get(f"/api/matches/{live_match}/current-state").json()
        assert current["balls_recorded"] == 1
        assert current["state"]["striker"] == "B"

    def test_preview_matches_recording(self, client, live_match):
        payload = {"striker_id": "A", "bowler_id": "Y", "extras": "leg-bye", "extra_runs": 1}

        preview = client.post(f"/api/matches/{live_match}/next-state", json=payload).json()
        recorded = client.post(f"/api/matches/{live_match}/balls", json=payload).json()

        assert preview == recorded["current"]["state"]

    def test_preview_matches_recording_on_wicket(self, client, live_match):
        bowl(client, live_match, runs=1)
        payload = {"striker_id": "B", "bowler_id": "X", "is_wicket": True, "wicket_type": "caught"}

        preview = client.post(f"/api/matches/{live_match}/next-state", json=payload).json()
        recorded = client.post(f"/api/matches/{live_match}/balls", json=payload).json()

        assert preview == recorded["current"]["state"]
        assert preview["striker"] == "C"
        assert preview["non_striker"] == "A"

    def test_preview_rejects_non_striker(self, client, live_match):
        response = client.post(
            f"/api/matches/{live_match}/next-state",
            json={"striker_id": "B", "bowler_id": "X"},
        )
        assert response.status_code == 400


class TestUndo:
    def test_undo_restores_prior_state(self, client, live_match):
        for _ in range(5):
            bowl(client, live_match)
        before = client.get(f"/api/matches/{live_match}/current-state").json()
        bowl(client, live_match, runs=1)

        response = client.post(f"/api/matches/{live_match}/undo")

        assert response.status_code == 200
        data = response.json()
        assert data["current"] == before
        assert data["should_show_innings_setup"] is False
        assert len(client.get(f"/api/matches/{live_match}/balls").json()) == 5

    def test_undo_brings_dismissed_batsman_back(self, client, live_match):
        bowl(client, live_match, is_wicket=True, wicket_type="lbw")

        data = client.post(f"/api/matches/{live_match}/undo").json()

        assert data["current"]["state"]["striker"] == "A"
        assert data["current"]["wickets"] == 0

    def test_undo_with_no_balls(self, client, live_match):
        response = client.post(f"/api/matches/{live_match}/undo")
        assert response.status_code == 400

    def test_undo_only_ball_of_second_innings(self, client, live_match):
        bowl(client, live_match)
        start(client, live_match, innings_number=2, striker="C", non_striker="D", bowler="Z")
        bowl(client, live_match, striker="C")

        data = client.post(f"/api/matches/{live_match}/undo").json()

        assert data["should_show_innings_setup"] is True
        assert data["current"]["innings_number"] == 2
        assert data["current"]["balls_recorded"] == 0

        # New openers can be picked once the innings is empty again
        response = start(client, live_match, innings_number=2, striker="D", non_striker="C", bowler="Y")
        assert response.status_code == 200
        assert response.json()["state"]["striker"] == "D"

    def test_restart_innings_with_balls_rejected(self, client, live_match):
        bowl(client, live_match)
        assert start(client, live_match).status_code == 400

    def test_undo_only_ball_of_first_innings(self, client, live_match):
        bowl(client, live_match)

        data = client.post(f"/api/matches/{live_match}/undo").json()

        assert data["should_show_innings_setup"] is False
        assert data["current"]["state"]["striker"] == "A"


class TestUndoPreview:
    def test_preview_leaves_log_untouched(self, client, live_match):
        bowl(client, live_match, runs=1)
        bowl(client, live_match, striker="B", is_wicket=True, wicket_type="stumped")

        response = client.get(f"/api/matches/{live_match}/undo-preview")

        assert response.status_code == 200
        data = response.json()
        assert data["state"]["striker"] == "B"
        assert data["state"]["non_striker"] == "A"
        assert data["history_empty"] is False

        current = client.get(f"/api/matches/{live_match}/current-state").json()
        assert current["balls_recorded"] == 2
        assert current["wickets"] == 1

    def test_preview_agrees_with_undo(self, client, live_match):
        bowl(client, live_match, runs=3)
        bowl(client, live_match, striker="B")

        preview = client.get(f"/api/matches/{live_match}/undo-preview").json()
        undone = client.post(f"/api/matches/{live_match}/undo").json()

        assert preview["state"] == undone["current"]["state"]

    def test_preview_of_only_ball_resets_to_start(self, client, live_match):
        bowl(client, live_match, runs=1)

        data = client.get(f"/api/matches/{live_match}/undo-preview").json()

        assert data["history_empty"] is True
        assert data["state"]["striker"] == "A"
        assert data["state"]["overs"] == "0.0"

    def test_preview_with_no_balls(self, client, live_match):
        assert client.get(f"/api/matches/{live_match}/undo-preview").status_code == 400


class TestMatchLifecycle:
    def test_end_match(self, client, live_match):
        response = client.post(f"/api/matches/{live_match}/end")

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert bowl(client, live_match).status_code == 400
        assert client.post(f"/api/matches/{live_match}/end").status_code == 400

    def test_abandon_match(self, client, live_match):
        bowl(client, live_match)

        response = client.post(f"/api/matches/{live_match}/abandon")

        assert response.status_code == 200
        assert response.json()["status"] == "abandoned"
        assert client.post(f"/api/matches/{live_match}/undo").status_code == 400
        assert start(client, live_match, innings_number=2).status_code == 400
        assert len(client.get(f"/api/matches/{live_match}/balls").json()) == 1

    def test_list_innings(self, client, live_match):
        bowl(client, live_match, runs=1)
        bowl(client, live_match, striker="B")
        start(client, live_match, innings_number=2, striker="D", non_striker="C", bowler="Y")

        innings = client.get(f"/api/matches/{live_match}/innings").json()

        assert [i["innings_number"] for i in innings] == [1, 2]
        assert [i["balls_recorded"] for i in innings] == [2, 0]
        assert innings[1]["opening_striker_id"] == "D"
        assert innings[1]["opening_bowler_id"] == "Y"
        assert innings[0]["batting_order"] == BATTING_ORDER

    def test_no_innings_before_start(self, client, match_id):
        assert client.get(f"/api/matches/{match_id}/innings").json() == []


class TestHealth:
    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "healthy"}
        assert client.get("/").json()["status"] == "running"
