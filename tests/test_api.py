def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["timestamp"]


def test_unknown_route_keeps_status_with_error_body(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}


def test_malformed_json_is_a_bad_request(client):
    resp = client.post("/api/register", content="{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_unexpected_error_is_internal_server_error(client, monkeypatch):
    def boom():
        raise RuntimeError("disk on fire")

    monkeypatch.setattr("blinky.plugins.users.api.list_users", boom)
    resp = client.get("/api/users")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}


def test_cors_allows_extension_origin(client):
    resp = client.get("/health", headers={"Origin": "chrome-extension://abc"})
    assert resp.headers["access-control-allow-origin"] == "*"


def test_tasks_endpoint(client, blinky_app):
    from blinky.plugins.reminders import TASK_NAME, register_tasks

    register_tasks(blinky_app)
    blinky_app.task_manager.run_task_now(TASK_NAME)

    body = client.get("/api/tasks").json()
    row = body["db_schedules"][0]
    assert row["component_name"] == TASK_NAME
    assert row["schedule_type"] == "interval_seconds"
    assert row["last_run_at"].endswith("+00:00")
    assert body["active_timers"] == []
    assert body["last_results"][TASK_NAME] == {"identities": 0, "sent": 0, "skipped": 0, "failed": 0}
