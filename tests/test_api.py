import pytest

from conftest import auth_headers
from repository import AccountScope


@pytest.fixture
def headers(client):
    return auth_headers(client, "alice")


@pytest.fixture
def habit_id(client, headers):
    resp = client.post("/api/v1/habits", headers=headers, json={
        "name": "Drink water",
        "category": "health",
        "target": 3,
        "unit": "glasses",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["habit"]["id"]


def post_progress(client, headers, habit_id, date, value, **extra):
    return client.post("/api/v1/progress", headers=headers, json={
        "habit": habit_id, "date": date, "value": value, **extra,
    })


def test_endpoints_require_auth(client):
    for method, path in [
        ("get", "/api/v1/habits"),
        ("post", "/api/v1/habits"),
        ("get", "/api/v1/progress"),
        ("get", "/api/v1/progress/stats/summary"),
    ]:
        assert getattr(client, method)(path).status_code == 401


def test_create_habit_response(client, headers, habit_id):
    habit = client.get(f"/api/v1/habits/{habit_id}", headers=headers).json()["habit"]
    assert habit["name"] == "Drink water"
    assert habit["isActive"] is True
    assert habit["color"] == "#3B82F6"
    assert habit["streak"] == {"current": 0, "longest": 0, "lastCompleted": None}
    assert habit["recentProgress"] == []


def test_validation_error_shape(client, headers):
    resp = client.post("/api/v1/habits", headers=headers, json={"name": "", "target": 0})
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation failed"
    fields = {e["field"] for e in body["errors"]}
    assert {"name", "target"} <= fields
    assert all(e["message"] for e in body["errors"])


def test_progress_create_then_update(client, headers, habit_id):
    first = post_progress(client, headers, habit_id, "2024-03-01", 2)
    assert first.status_code == 201
    assert first.json()["message"] == "Progress created successfully"
    entry = first.json()["progress"]
    assert entry["completion"]["isCompleted"] is False
    assert entry["habit"]["name"] == "Drink water"

    second = post_progress(client, headers, habit_id, "2024-03-01T20:00:00", 3, mood="good")
    assert second.status_code == 200
    assert second.json()["message"] == "Progress updated successfully"
    updated = second.json()["progress"]
    assert updated["id"] == entry["id"]
    assert updated["completion"]["isCompleted"] is True
    assert updated["completion"]["completedAt"] is not None
    assert updated["mood"] == "good"


def test_progress_rejects_future_and_bad_dates(client, headers, habit_id):
    for date in ("2999-01-01", "tomorrow-ish"):
        resp = post_progress(client, headers, habit_id, date, 1)
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "date"


def test_progress_for_unknown_habit(client, headers):
    resp = post_progress(client, headers, 12345, "2024-03-01", 1)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Habit not found"


def test_accounts_are_isolated(client, headers, habit_id):
    entry_id = post_progress(client, headers, habit_id, "2024-03-01", 3).json()["progress"]["id"]
    bob = auth_headers(client, "bob")
    assert client.get(f"/api/v1/habits/{habit_id}", headers=bob).status_code == 404
    assert client.get(f"/api/v1/progress/{entry_id}", headers=bob).status_code == 404
    assert client.delete(f"/api/v1/progress/{entry_id}", headers=bob).status_code == 404
    assert client.patch(f"/api/v1/progress/{entry_id}/toggle-completion", headers=bob).status_code == 404
    assert post_progress(client, bob, habit_id, "2024-03-02", 3).status_code == 404
    assert client.get("/api/v1/habits", headers=bob).json()["habits"] == []


def test_toggle_completion_endpoint(client, headers, habit_id):
    entry_id = post_progress(client, headers, habit_id, "2024-03-01", 1).json()["progress"]["id"]
    on = client.patch(f"/api/v1/progress/{entry_id}/toggle-completion", headers=headers)
    assert on.status_code == 200
    assert on.json()["message"] == "Progress marked as completed"
    assert on.json()["progress"]["completion"]["isCompleted"] is True
    off = client.patch(f"/api/v1/progress/{entry_id}/toggle-completion", headers=headers)
    assert off.json()["message"] == "Progress marked as incomplete"
    assert off.json()["progress"]["completion"]["completedAt"] is None


def test_update_progress_endpoint(client, headers, habit_id):
    entry_id = post_progress(client, headers, habit_id, "2024-03-01", 1).json()["progress"]["id"]
    resp = client.put(f"/api/v1/progress/{entry_id}", headers=headers, json={"value": 4, "notes": "caught up"})
    assert resp.status_code == 200
    body = resp.json()["progress"]
    assert body["value"] == 4
    assert body["notes"] == "caught up"
    assert body["completion"]["isCompleted"] is True


def test_update_progress_onto_taken_day(client, headers, habit_id):
    post_progress(client, headers, habit_id, "2024-03-01", 1)
    other = post_progress(client, headers, habit_id, "2024-03-02", 1).json()["progress"]["id"]
    resp = client.put(f"/api/v1/progress/{other}", headers=headers, json={"date": "2024-03-01"})
    assert resp.status_code == 409


def test_streak_visible_on_habit(client, headers, habit_id):
    post_progress(client, headers, habit_id, "2024-03-01", 3)
    post_progress(client, headers, habit_id, "2024-03-02", 3)
    habit = client.get(f"/api/v1/habits/{habit_id}", headers=headers).json()["habit"]
    assert habit["streak"]["current"] == 2
    assert [p["date"] for p in habit["recentProgress"]] == ["2024-03-02", "2024-03-01"]


def test_list_progress_endpoint(client, headers, habit_id):
    for day in range(1, 6):
        post_progress(client, headers, habit_id, f"2024-03-0{day}", 3 if day % 2 else 1)
    resp = client.get("/api/v1/progress", headers=headers, params={
        "habit": habit_id, "completed": "true", "limit": 2,
    })
    assert resp.status_code == 200
    body = resp.json()
    assert [p["date"] for p in body["progress"]] == ["2024-03-05", "2024-03-03"]
    assert body["pagination"]["totalEntries"] == 3
    assert body["pagination"]["totalPages"] == 2
    assert body["pagination"]["hasNextPage"] is True


def test_list_limit_is_bounded(client, headers):
    resp = client.get("/api/v1/progress", headers=headers, params={"limit": 1000})
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "limit"


def test_list_habits_endpoint(client, headers, habit_id):
    client.post("/api/v1/habits", headers=headers, json={"name": "Read", "category": "learning"})
    post_progress(client, headers, habit_id, "2024-03-01", 3)
    resp = client.get("/api/v1/habits", headers=headers, params={"sortBy": "name", "sortOrder": "asc"})
    assert resp.status_code == 200
    body = resp.json()
    assert [h["name"] for h in body["habits"]] == ["Drink water", "Read"]
    water = body["habits"][0]
    assert water["completionRate"] == 100
    assert water["progress"] == 1
    assert body["pagination"]["totalHabits"] == 2

    resp = client.get("/api/v1/habits", headers=headers, params={"category": "learning"})
    assert [h["name"] for h in resp.json()["habits"]] == ["Read"]


def test_update_and_toggle_habit(client, headers, habit_id):
    resp = client.put(f"/api/v1/habits/{habit_id}", headers=headers, json={"target": 8, "color": "#10b981"})
    assert resp.status_code == 200
    assert resp.json()["habit"]["target"] == 8
    assert resp.json()["habit"]["color"] == "#10b981"

    resp = client.put(f"/api/v1/habits/{habit_id}/toggle", headers=headers)
    assert resp.json()["message"] == "Habit deactivated successfully"
    assert resp.json()["habit"]["isActive"] is False
    resp = client.put(f"/api/v1/habits/{habit_id}/toggle", headers=headers)
    assert resp.json()["message"] == "Habit activated successfully"


def test_delete_habit_cascades(client, headers, habit_id):
    entry_id = post_progress(client, headers, habit_id, "2024-03-01", 3).json()["progress"]["id"]
    resp = client.delete(f"/api/v1/habits/{habit_id}", headers=headers)
    assert resp.status_code == 200
    assert client.get(f"/api/v1/habits/{habit_id}", headers=headers).status_code == 404
    assert client.get(f"/api/v1/progress/{entry_id}", headers=headers).status_code == 404


def test_delete_progress(client, headers, habit_id):
    entry_id = post_progress(client, headers, habit_id, "2024-03-01", 3).json()["progress"]["id"]
    resp = client.delete(f"/api/v1/progress/{entry_id}", headers=headers)
    assert resp.status_code == 200
    assert client.delete(f"/api/v1/progress/{entry_id}", headers=headers).status_code == 404


def test_calendar_endpoint(client, headers, habit_id):
    post_progress(client, headers, habit_id, "2024-02-10", 3)
    resp = client.get("/api/v1/progress/calendar", headers=headers, params={"year": 2024, "month": 2})
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["calendarData"]) == 29
    day = body["calendarData"][9]
    assert day["date"] == "2024-02-10"
    assert day["completedHabits"] == 1
    assert day["completionRate"] == 100


@pytest.mark.parametrize("params", [
    {"year": 2024, "month": 13},
    {"year": 1900, "month": 1},
    {"month": 1},
])
def test_calendar_rejects_bad_month(client, headers, params):
    resp = client.get("/api/v1/progress/calendar", headers=headers, params=params)
    assert resp.status_code == 400


def test_summary_endpoint(client, headers, habit_id):
    resp = client.get("/api/v1/progress/stats/summary", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["period"] == "30 days"
    assert body["totalEntries"] == 0
    assert body["completionRate"] == 0
    assert body["categoryStats"]["health"]["total"] == 0
    assert client.get("/api/v1/progress/stats/summary", headers=headers, params={"days": 0}).status_code == 400


def test_overview_endpoint(client, headers, habit_id):
    resp = client.get("/api/v1/habits/stats/overview", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["totalHabits"] == 1
    assert body["activeHabits"] == 1
    assert body["categoryStats"] == [{"category": "health", "count": 1}]


def test_lost_insert_race_returns_409(client, headers, habit_id, monkeypatch):
    entry_id = post_progress(client, headers, habit_id, "2024-03-01", 1).json()["progress"]["id"]
    monkeypatch.setattr(AccountScope, "entry_for_day", lambda self, *a, **k: None)
    resp = post_progress(client, headers, habit_id, "2024-03-01", 3)
    assert resp.status_code == 409
    assert resp.json() == {"message": "Progress already exists for this habit and date"}
    monkeypatch.undo()

    listing = client.get("/api/v1/progress", headers=headers).json()
    assert listing["pagination"]["totalEntries"] == 1
    retry = post_progress(client, headers, habit_id, "2024-03-01", 3)
    assert retry.status_code == 200
    assert retry.json()["progress"]["id"] == entry_id


def test_progress_percentage_is_capped(client, headers, habit_id):
    partial = post_progress(client, headers, habit_id, "2024-03-01", 2).json()["progress"]
    assert partial["progressPercentage"] == round(2 / 3 * 100, 2)
    over = post_progress(client, headers, habit_id, "2024-03-02", 5).json()["progress"]
    assert over["progressPercentage"] == 100
