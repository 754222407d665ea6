import pytest
from fastapi.testclient import TestClient

from database import Base, engine
from main import app


@pytest.fixture
def client():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with TestClient(app) as c:
        yield c


def submit(client, disk_count=3, name="abc", moves=7, time_seconds=10):
    return client.post("/leaderboard/", json={
        "disk_count": disk_count,
        "name": name,
        "moves": moves,
        "time_seconds": time_seconds,
    })


def test_root(client) -> None:
    body = client.get("/").json()
    assert body["disk_counts"] == list(range(3, 11))
    assert body["leaderboard_size"] == 10


def test_empty_leaderboard(client) -> None:
    response = client.get("/leaderboard/4")
    assert response.status_code == 200
    assert response.json() == {"disk_count": 4, "size": 10, "entries": []}


def test_leaderboard_rejects_bad_disk_count(client) -> None:
    assert client.get("/leaderboard/2").status_code == 400
    assert client.get("/leaderboard/11/qualify", params={"moves": 3000, "time": 1}).status_code == 400


def test_submission_is_sanitised_and_ranked(client) -> None:
    submit(client, name="zz", moves=9, time_seconds=40)
    response = submit(client, name="a1!b2@", moves=7, time_seconds=45)
    assert response.status_code == 200
    body = response.json()
    assert body["accepted"] is True
    assert body["name"] == "A1B"
    assert body["rank"] == 1

    entries = client.get("/leaderboard/3").json()["entries"]
    assert [(e["name"], e["moves"], e["time"]) for e in entries] == [("A1B", 7, 45), ("ZZ", 9, 40)]


@pytest.mark.parametrize(
    "payload, detail",
    [
        ({"disk_count": 12}, "Invalid disk count"),
        ({"moves": 6}, "Invalid move count"),
        ({"time_seconds": 90000}, "Invalid time"),
        ({"name": "!!!"}, "Empty name"),
    ],
)
def test_rejected_submissions(client, payload, detail) -> None:
    response = submit(client, **payload)
    assert response.status_code == 400
    assert response.json()["detail"] == detail
    assert client.get("/leaderboard/3").json()["entries"] == []


def test_list_is_capped_at_ten(client) -> None:
    for i in range(11):
        submit(client, name=f"p{i}", moves=7 + i, time_seconds=5)
    entries = client.get("/leaderboard/3").json()["entries"]
    assert len(entries) == 10
    assert entries[-1]["moves"] == 16

    late = submit(client, name="bad", moves=30, time_seconds=5).json()
    assert late["accepted"] is True
    assert late["rank"] is None


def test_qualify_endpoint(client) -> None:
    for i in range(10):
        submit(client, name=f"p{i}", moves=10, time_seconds=50)
    params = {"moves": 10, "time": 50}
    assert client.get("/leaderboard/3/qualify", params=params).json() == {
        "disk_count": 3, "qualifies": False, "rank": None}
    params = {"moves": 10, "time": 49}
    assert client.get("/leaderboard/3/qualify", params=params).json()["rank"] == 1
    assert client.get("/leaderboard/4/qualify", params={"moves": 15, "time": 1}).json()["rank"] == 1
