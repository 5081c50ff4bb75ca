from conftest import make_token

PLAN_BODY = {
    "planName": "Finals",
    "planData": {
        "dailyPlan": [
            {
                "date": "2024-03-02",
                "tasks": [{"text": "Organic reactions flashcards", "subject": "Chemistry", "timeEstimate": 40}],
                "hours": 1,
            },
            {
                "date": "2024-03-01",
                "tasks": [
                    {"text": "Solve 10 integrals", "subject": "Math", "timeEstimate": 60},
                    {"text": "Read chapter 4", "subject": "Math", "timeEstimate": 30},
                ],
                "hours": 2,
            },
        ],
        "tips": ["Start early"],
        "completedTasks": {"stale": True},
    },
}


def create_plan(client, headers):
    response = client.post("/study-plans", json=PLAN_BODY, headers=headers)
    assert response.status_code == 200
    return response.json()["plan"]


def test_requires_bearer_token(client):
    response = client.get("/study-plans")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}

    response = client.get("/study-plans", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_no_plan_yet(client, auth_headers):
    response = client.get("/study-plans", headers=auth_headers)
    assert response.json() == {"plan": None}


def test_create_sorts_days_assigns_ids_and_resets_completion(client, auth_headers):
    plan = create_plan(client, auth_headers)

    assert plan["planName"] == "Finals"
    assert plan["startDate"] == "2024-03-01"
    assert plan["endDate"] == "2024-03-02"
    assert plan["isActive"] is True

    days = plan["planData"]["dailyPlan"]
    assert [d["date"] for d in days] == ["2024-03-01", "2024-03-02"]
    assert days[0]["day"] == "Friday"
    assert all(task["id"] for day in days for task in day["tasks"])
    assert plan["planData"]["completedTasks"] == {}

    fetched = client.get("/study-plans", headers=auth_headers).json()["plan"]
    assert fetched["id"] == plan["id"]


def test_plans_are_private(client, auth_headers):
    create_plan(client, auth_headers)
    other = {"Authorization": f"Bearer {make_token('user-2')}"}
    assert client.get("/study-plans", headers=other).json() == {"plan": None}


def test_update_completion_and_merge_plan_data(client, auth_headers):
    plan = create_plan(client, auth_headers)
    task_id = plan["planData"]["dailyPlan"][0]["tasks"][0]["id"]

    response = client.put(
        "/study-plans",
        json={"planId": plan["id"], "completedTasks": {task_id: True}},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["plan"]["planData"]["completedTasks"] == {task_id: True}

    response = client.put(
        "/study-plans",
        json={"planId": plan["id"], "planData": {"tips": ["Sleep well"]}},
        headers=auth_headers,
    )
    updated = response.json()["plan"]["planData"]
    assert updated["tips"] == ["Sleep well"]
    assert updated["completedTasks"] == {task_id: True}
    assert len(updated["dailyPlan"]) == 2


def test_update_daily_plan_keeps_ids_and_fills_missing(client, auth_headers):
    plan = create_plan(client, auth_headers)
    days = plan["planData"]["dailyPlan"]
    days[1]["tasks"].append({"text": "Past paper", "subject": "Chemistry", "timeEstimate": 90})

    response = client.put(
        "/study-plans",
        json={"planId": plan["id"], "planData": {"dailyPlan": days}},
        headers=auth_headers,
    )

    tasks = response.json()["plan"]["planData"]["dailyPlan"][1]["tasks"]
    assert tasks[0]["id"] == days[1]["tasks"][0]["id"]
    assert tasks[1]["text"] == "Past paper"
    assert tasks[1]["id"]


def test_update_rejects_bad_daily_plan(client, auth_headers):
    plan = create_plan(client, auth_headers)
    response = client.put(
        "/study-plans",
        json={"planId": plan["id"], "planData": {"dailyPlan": [{"date": "soon", "tasks": []}]}},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert "error" in response.json()


def test_update_rejects_bad_fields_and_keeps_stored_plan(client, auth_headers):
    plan = create_plan(client, auth_headers)

    for bad in ({"tips": "oops"}, {"tips": [{}]}, {"tips": None}):
        response = client.put(
            "/study-plans", json={"planId": plan["id"], "planData": bad}, headers=auth_headers
        )
        assert response.status_code == 400

    response = client.get("/study-plans", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["plan"]["planData"] == plan["planData"]
    assert client.get("/study-plans/progress", headers=auth_headers).status_code == 200


def test_update_missing_plan(client, auth_headers):
    response = client.put("/study-plans", json={"planId": 999, "completedTasks": {}}, headers=auth_headers)
    assert response.status_code == 404


def test_progress(client, auth_headers):
    plan = create_plan(client, auth_headers)
    task_id = plan["planData"]["dailyPlan"][0]["tasks"][0]["id"]
    client.put("/study-plans", json={"planId": plan["id"], "completedTasks": {task_id: True}}, headers=auth_headers)

    response = client.get("/study-plans/progress", params={"today": "2024-03-02"}, headers=auth_headers)

    body = response.json()
    assert body["planId"] == plan["id"]
    assert body["overall"] == {"completed": 1, "total": 3, "percent": 33}
    assert body["subjects"] == {"Math": 50, "Chemistry": 0}
    assert body["today"]["date"] == "2024-03-02"


def test_progress_without_plan(client, auth_headers):
    assert client.get("/study-plans/progress", headers=auth_headers).status_code == 404


def test_delete(client, auth_headers):
    plan = create_plan(client, auth_headers)

    assert client.delete("/study-plans", headers=auth_headers).status_code == 400
    assert client.delete("/study-plans", params={"planId": 999}, headers=auth_headers).status_code == 404

    response = client.delete("/study-plans", params={"planId": plan["id"]}, headers=auth_headers)
    assert response.json() == {"success": True}
    assert client.get("/study-plans", headers=auth_headers).json() == {"plan": None}
