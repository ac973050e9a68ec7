import pytest

from blinky.core.errors import NotFoundError, ValidationError
from blinky.plugins.friends.service import add_friend, get_friends, get_leaderboard, remove_friend
from blinky.plugins.screentime.service import AppUsage, store_screentime
from blinky.plugins.users.service import upsert_user


@pytest.fixture
def people(db):
    for email in ("a@x.com", "b@x.com", "c@x.com"):
        upsert_user(email)


def _emails(user_email):
    return [f["email"] for f in get_friends(user_email)]


def test_friendship_is_symmetric(people):
    add_friend("a@x.com", "b@x.com")
    assert _emails("a@x.com") == ["b@x.com"]
    assert _emails("b@x.com") == ["a@x.com"]

    remove_friend("a@x.com", "b@x.com")
    assert _emails("a@x.com") == []
    assert _emails("b@x.com") == []


def test_adding_twice_keeps_one_pair(people):
    add_friend("a@x.com", "b@x.com")
    add_friend("b@x.com", "a@x.com")
    assert _emails("a@x.com") == ["b@x.com"]
    assert _emails("b@x.com") == ["a@x.com"]


def test_cannot_befriend_self(people):
    with pytest.raises(ValidationError):
        add_friend("a@x.com", "a@x.com")


def test_unknown_friend_is_not_found(people):
    with pytest.raises(NotFoundError):
        add_friend("a@x.com", "ghost@x.com")


def test_both_emails_required(people):
    with pytest.raises(ValidationError):
        add_friend("a@x.com", None)
    with pytest.raises(ValidationError):
        remove_friend(None, "b@x.com")


def test_removing_missing_friendship_succeeds(people):
    assert remove_friend("a@x.com", "c@x.com")["success"] is True


def test_friends_newest_first(people):
    add_friend("a@x.com", "b@x.com")
    add_friend("a@x.com", "c@x.com")
    assert _emails("a@x.com") == ["c@x.com", "b@x.com"]


def test_leaderboard_ranks_by_latest_total(db):
    store_screentime("low@x.com", [AppUsage("TikTok", 10)])
    store_screentime("high@x.com", [AppUsage("YouTube", 50)])
    store_screentime("mid@x.com", [AppUsage("Instagram", 30)])

    board = get_leaderboard("mid@x.com")
    assert [e["totalMinutes"] for e in board] == [50, 30, 10]
    assert [e["rank"] for e in board] == [1, 2, 3]
    assert [e["isCurrentUser"] for e in board] == [False, True, False]


def test_leaderboard_ties_keep_first_submission_order(db):
    store_screentime("first@x.com", [AppUsage("TikTok", 20)])
    store_screentime("second@x.com", [AppUsage("TikTok", 20)])
    board = get_leaderboard("first@x.com")
    assert [e["email"] for e in board] == ["first@x.com", "second@x.com"]
    assert [e["rank"] for e in board] == [1, 2]


def test_leaderboard_uses_latest_snapshot_and_first_app(db):
    store_screentime("a@x.com", [AppUsage("TikTok", 100)], "2024-10-20")
    store_screentime("a@x.com", [AppUsage("Instagram", 15), AppUsage("YouTube", 40)], "2024-10-21")
    entry = get_leaderboard("a@x.com")[0]
    assert entry["totalMinutes"] == 55
    assert entry["topApp"] == {"name": "Instagram", "minutes": 15}
    assert entry["date"] == "2024-10-21"


def test_friend_endpoints(client):
    for email in ("a@x.com", "b@x.com"):
        client.post("/api/register", json={"email": email})

    resp = client.post("/api/friends/add", json={"userEmail": "a@x.com", "friendEmail": "b@x.com"})
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    body = client.get("/api/friends/b@x.com").json()
    assert body["count"] == 1
    assert body["friends"][0]["email"] == "a@x.com"
    assert body["friends"][0]["since"]

    client.post("/api/friends/remove", json={"userEmail": "b@x.com", "friendEmail": "a@x.com"})
    assert client.get("/api/friends/a@x.com").json()["count"] == 0


def test_add_friend_errors_over_http(client):
    client.post("/api/register", json={"email": "a@x.com"})
    resp = client.post("/api/friends/add", json={"userEmail": "a@x.com", "friendEmail": "ghost@x.com"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Friend email not found in system"}

    resp = client.post("/api/friends/add", json={"userEmail": "a@x.com", "friendEmail": "a@x.com"})
    assert resp.status_code == 400


def test_leaderboard_endpoint(client):
    client.post("/api/screentime", json={"email": "a@x.com", "appUsage": [{"appName": "TikTok", "usageMinutes": 5}]})
    client.post("/api/screentime", json={"email": "b@x.com", "appUsage": [{"appName": "TikTok", "usageMinutes": 9}]})
    body = client.get("/api/friends/leaderboard/a@x.com").json()
    assert body["count"] == 2
    assert [e["email"] for e in body["leaderboard"]] == ["b@x.com", "a@x.com"]
    assert body["leaderboard"][1]["isCurrentUser"] is True
