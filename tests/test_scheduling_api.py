"""Tests for the scheduling HTTP endpoints."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from coachcal.api.scheduling import get_scheduling_service
from coachcal.db.models import Program, UserWorkout, WorkoutTemplate
from coachcal.main import app
from coachcal.scheduling.service import SchedulingService


@pytest.fixture
def api(db_session, lock_manager):
    app.dependency_overrides[get_scheduling_service] = lambda: SchedulingService(lock_manager=lock_manager)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _seed_program(db_session) -> None:
    db_session.add(Program(id="prog-1", coach_id="coach-1", name="Base Block"))
    db_session.add_all(
        [WorkoutTemplate(id=f"tpl-{day}", program_id="prog-1", week_number=1, day_number=day) for day in (1, 2, 3)]
    )
    db_session.flush()


class TestAssignProgramEndpoint:
    def test_assign_program(self, api, db_session):
        _seed_program(db_session)
        api.post("/scheduling/coaches/coach-1/blocked-dates", json={"blocked_day_of_week": 0, "client_id": "c1"})

        response = api.post(
            "/scheduling/clients/c1/programs",
            json={"program_id": "prog-1", "start_date": "2024-01-06", "assigned_by": "coach-1"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["sessions_created"] == 3
        assert body["fallback_dates"] == []

    def test_unknown_program_is_404(self, api):
        response = api.post("/scheduling/clients/c1/programs", json={"program_id": "nope", "start_date": "2024-01-06"})
        assert response.status_code == 404

    def test_strict_exhaustion_is_422(self, api, db_session):
        _seed_program(db_session)
        for weekday in range(7):
            api.post("/scheduling/coaches/coach-1/blocked-dates", json={"blocked_day_of_week": weekday})

        response = api.post(
            "/scheduling/clients/c1/programs",
            json={"program_id": "prog-1", "start_date": "2024-01-06", "strict": True},
        )
        assert response.status_code == 422


class TestCompleteSessionEndpoint:
    def test_complete_reports_moved_sessions(self, api, db_session):
        db_session.add_all(
            [
                UserWorkout(id="mon", user_id="c1", workout_template_id="tpl-1", scheduled_date=date(2024, 1, 8)),
                UserWorkout(id="wed", user_id="c1", workout_template_id="tpl-1", scheduled_date=date(2024, 1, 10)),
                UserWorkout(id="done", user_id="c1", workout_template_id="tpl-1", scheduled_date=date(2024, 1, 11)),
            ]
        )
        db_session.flush()

        response = api.post("/scheduling/clients/c1/sessions/done/complete", json={"today": "2024-01-11"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["moved"] == 2
        assert [(u["session_id"], u["new_date"]) for u in body["updates"]] == [
            ("mon", "2024-01-15"),
            ("wed", "2024-01-17"),
        ]

    def test_nothing_to_move_is_noop(self, api, db_session):
        db_session.add(UserWorkout(id="done", user_id="c1", workout_template_id="tpl-1", scheduled_date=date(2024, 1, 11)))
        db_session.flush()

        response = api.post("/scheduling/clients/c1/sessions/done/complete", json={"today": "2024-01-11"})
        assert response.json()["status"] == "noop"

    def test_unknown_session_is_404(self, api):
        response = api.post("/scheduling/clients/c1/sessions/missing/complete", json={"today": "2024-01-11"})
        assert response.status_code == 404


class TestMoveSessionEndpoint:
    def test_conflict_is_409(self, api, db_session):
        db_session.add_all(
            [
                UserWorkout(id="a", user_id="c1", workout_template_id="tpl-1", scheduled_date=date(2024, 1, 8)),
                UserWorkout(id="b", user_id="c1", workout_template_id="tpl-1", scheduled_date=date(2024, 1, 9)),
            ]
        )
        db_session.flush()

        response = api.patch("/scheduling/clients/c1/sessions/a", json={"new_date": "2024-01-09"})
        assert response.status_code == 409

        response = api.patch("/scheduling/clients/c1/sessions/a", json={"new_date": "2024-01-10"})
        assert response.status_code == 200
        assert response.json()["new_date"] == "2024-01-10"


class TestBlockedDatesEndpoints:
    def test_rule_shape_validated(self, api):
        response = api.post(
            "/scheduling/coaches/coach-1/blocked-dates",
            json={"blocked_date": "2024-01-08", "blocked_day_of_week": 1},
        )
        assert response.status_code == 422

        response = api.post("/scheduling/coaches/coach-1/blocked-dates", json={"blocked_day_of_week": 9})
        assert response.status_code == 422

    def test_create_list_delete(self, api):
        created = api.post("/scheduling/coaches/coach-1/blocked-dates", json={"blocked_date": "2024-12-25", "reason": "Holiday"})
        assert created.status_code == 201
        rule_id = created.json()["id"]

        listed = api.get("/scheduling/coaches/coach-1/blocked-dates")
        assert [rule["blocked_date"] for rule in listed.json()] == ["2024-12-25"]

        assert api.delete(f"/scheduling/coaches/coach-1/blocked-dates/{rule_id}").status_code == 204
        assert api.delete(f"/scheduling/coaches/coach-1/blocked-dates/{rule_id}").status_code == 404
