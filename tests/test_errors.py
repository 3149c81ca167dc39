"""
Tests for error handling: structured error responses, HTTP status codes,
and the custom exception classes.
"""
from app.core.errors import (
    ChecklistStepNotFoundError,
    GoalTypeMismatchError,
    HabitNotFoundError,
    MissingUserError,
    ParentNotFoundError,
    ValidationFailedError,
)


# ---------------------------------------------------------------------------
# Unit tests on exception classes
# ---------------------------------------------------------------------------

class TestExceptionClasses:
    def test_habit_not_found(self):
        err = HabitNotFoundError(5)
        assert err.http_status == 404
        assert err.code == "HABIT_NOT_FOUND"
        assert err.message == "Habit 5 not found."
        assert err.to_dict()["details"] == {"id": 5}

    def test_step_not_found_message(self):
        assert ChecklistStepNotFoundError(3).message == "Checklist step 3 not found."

    def test_parent_not_found(self):
        err = ParentNotFoundError("list", 9)
        assert err.http_status == 404
        assert err.code == "PARENT_NOT_FOUND"
        assert err.details == {"parent_type": "list", "parent_id": 9}

    def test_goal_type_mismatch(self):
        err = GoalTypeMismatchError(goal_id=2, goal_type="named_steps", operation="increment")
        assert err.http_status == 409
        assert "increment" in err.message
        assert err.to_dict()["details"]["goal_type"] == "named_steps"

    def test_validation_failed_names_field(self):
        err = ValidationFailedError("target_count", "must be positive")
        assert err.http_status == 422
        assert err.code == "VALIDATION_FAILED"
        assert err.details["field"] == "target_count"

    def test_to_dict_without_details(self):
        d = MissingUserError().to_dict()
        assert d["code"] == "USER_REQUIRED"
        assert "message" in d
        assert "details" not in d


# ---------------------------------------------------------------------------
# Integration tests on HTTP error responses
# ---------------------------------------------------------------------------

class TestIdentityErrors:
    def test_missing_header(self, client):
        r = client.get("/habits")
        assert r.status_code == 401
        assert r.json()["code"] == "USER_REQUIRED"

    def test_unknown_user(self, client):
        r = client.get("/habits", headers={"X-User-Id": "999999"})
        assert r.status_code == 404
        assert r.json()["code"] == "USER_NOT_FOUND"


class TestNotFound:
    def test_habit(self, client, api_user):
        r = client.get("/habits/999999", headers=api_user)
        assert r.status_code == 404
        body = r.json()
        assert body["code"] == "HABIT_NOT_FOUND"
        assert body["details"]["id"] == 999999

    def test_habit_of_another_user(self, client, api_user):
        habit = client.post("/habits", json={"name": "Mine"}, headers=api_user).json()
        other = client.post("/users", json={"name": "other"}).json()
        r = client.get(f"/habits/{habit['id']}", headers={"X-User-Id": str(other["id"])})
        assert r.status_code == 404

    def test_goal(self, client, api_user):
        r = client.post("/goals/999999/increment", headers=api_user)
        assert r.status_code == 404
        assert r.json()["code"] == "GOAL_NOT_FOUND"

    def test_step(self, client, api_user):
        r = client.patch("/checklists/steps/999999", json={"completed": True}, headers=api_user)
        assert r.status_code == 404
        assert r.json()["code"] == "CHECKLIST_STEP_NOT_FOUND"

    def test_checklist_parent(self, client, api_user):
        r = client.post("/checklists/task/999999/steps", json={"name": "x"}, headers=api_user)
        assert r.status_code == 404
        assert r.json()["code"] == "PARENT_NOT_FOUND"


class TestValidationErrors:
    def test_empty_habit_name(self, client, api_user):
        r = client.post("/habits", json={"name": ""}, headers=api_user)
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert isinstance(body["details"]["errors"], list)

    def test_zero_daily_target(self, client, api_user):
        r = client.post("/habits", json={"name": "x", "daily_target": 0}, headers=api_user)
        assert r.status_code == 422

    def test_bad_schedule_config(self, client, api_user):
        r = client.post(
            "/habits",
            json={"name": "x", "schedule_mode": "interval", "schedule_config": {"interval": 0}},
            headers=api_user,
        )
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "VALIDATION_FAILED"
        assert body["details"]["field"] == "schedule_config.interval"

    def test_counted_goal_zero_target(self, client, api_user):
        r = client.post("/goals", json={"name": "x", "target_count": 0}, headers=api_user)
        assert r.status_code == 422
        assert r.json()["details"]["field"] == "target_count"

    def test_unknown_parent_type(self, client, api_user):
        r = client.get("/checklists/folder/1/steps", headers=api_user)
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"


class TestConflicts:
    def test_increment_steps_goal(self, client, api_user):
        goal = client.post(
            "/goals", json={"name": "x", "goal_type": "named_steps", "target_count": None},
            headers=api_user,
        ).json()
        r = client.post(f"/goals/{goal['id']}/increment", headers=api_user)
        assert r.status_code == 409
        assert r.json()["code"] == "GOAL_TYPE_MISMATCH"
