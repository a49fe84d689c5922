"""Location store + location API tests."""

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from sqlalchemy import func, select

from suraksha.main import app
from suraksha.models.location_sample import LocationSample
from suraksha.schemas.location import LocationUpdate
from suraksha.services import location_service
from suraksha.services.location_service import (
    get_last_location,
    get_location_history,
    purge_locations_older_than,
    record_location,
)

METERS_PER_DEGREE = 111_194.93


def _count_samples(db, user_id):
    return db.execute(select(func.count(LocationSample.id)).where(LocationSample.user_id == user_id)).scalar_one()


def test_location_requires_auth(client):
    r = client.post("/location/update", json={"latitude": 10, "longitude": 10})
    assert r.status_code == 401


def test_inactive_user_is_refused(client, make_user, auth_headers):
    user = make_user(status="SUSPENDED")
    r = client.post("/location/update", headers=auth_headers(user), json={"latitude": 10, "longitude": 10})
    assert r.status_code == 403


def test_first_location_is_always_stored(client, db, make_user, auth_headers):
    user = make_user()
    r = client.post(
        "/location/update",
        headers=auth_headers(user),
        json={"latitude": 12.9716, "longitude": 77.5946, "accuracy": 8.5, "heading": 90},
    )
    assert r.status_code == 201
    data = r.json()
    assert data["saved"] is True
    assert data["distance_from_previous"] is None
    assert data["location"]["latitude"] == 12.9716
    assert data["location"]["accuracy"] == 8.5
    assert _count_samples(db, user.id) == 1


def test_identical_coordinates_are_not_stored_twice(client, db, make_user, auth_headers):
    user = make_user()
    body = {"latitude": 12.9352, "longitude": 77.6245}
    assert client.post("/location/update", headers=auth_headers(user), json=body).status_code == 201

    r = client.post("/location/update", headers=auth_headers(user), json=body)
    assert r.status_code == 200
    data = r.json()
    assert data["saved"] is False
    assert data["distance_from_previous"] == 0
    assert data["threshold"] == 5
    assert data["location"] is None
    assert _count_samples(db, user.id) == 1


def test_movement_beyond_threshold_is_stored_with_distance(client, db, make_user, auth_headers):
    user = make_user()
    lat, lon = 13.0827, 80.2707
    client.post("/location/update", headers=auth_headers(user), json={"latitude": lat, "longitude": lon})

    r = client.post(
        "/location/update",
        headers=auth_headers(user),
        json={"latitude": lat + 25 / METERS_PER_DEGREE, "longitude": lon},
    )
    assert r.status_code == 201
    assert 24.9 < r.json()["distance_from_previous"] < 25.1
    assert _count_samples(db, user.id) == 2


def test_small_movement_is_discarded(client, make_user, auth_headers):
    user = make_user()
    lat, lon = 22.5726, 88.3639
    client.post("/location/update", headers=auth_headers(user), json={"latitude": lat, "longitude": lon})
    r = client.post(
        "/location/update",
        headers=auth_headers(user),
        json={"latitude": lat + 4.9 / METERS_PER_DEGREE, "longitude": lon},
    )
    assert r.status_code == 200
    assert r.json()["saved"] is False
    assert 4.8 < r.json()["distance_from_previous"] < 5.0


def test_threshold_is_strictly_less_than_five_meters(db, make_user, monkeypatch):
    """Exactly 5.00 m is stored; 4.99 m is discarded."""
    user = make_user()
    record_location(db, user.id, LocationUpdate(latitude=1.0, longitude=1.0))

    monkeypatch.setattr(location_service, "distance_meters", lambda *args: 4.99)
    result = record_location(db, user.id, LocationUpdate(latitude=1.1, longitude=1.1))
    assert result.saved is False
    assert result.distance_from_previous == 4.99

    monkeypatch.setattr(location_service, "distance_meters", lambda *args: 5.0)
    result = record_location(db, user.id, LocationUpdate(latitude=1.2, longitude=1.2))
    assert result.saved is True
    assert result.distance_from_previous == 5.0
    assert _count_samples(db, user.id) == 2


def test_out_of_range_coordinates_are_rejected(client, db, make_user, auth_headers):
    user = make_user()
    for body in (
        {"latitude": 91, "longitude": 0},
        {"latitude": 0, "longitude": -181},
        {"latitude": 0, "longitude": 0, "heading": 361},
        {"latitude": 0, "longitude": 0, "speed": -1},
        {"longitude": 0},
    ):
        r = client.post("/location/update", headers=auth_headers(user), json=body)
        assert r.status_code == 422, body
    assert _count_samples(db, user.id) == 0


def test_current_location_404_when_none(client, make_user, auth_headers):
    user = make_user()
    r = client.get("/location/current", headers=auth_headers(user))
    assert r.status_code == 404


def test_current_location_and_history_newest_first(client, db, make_user, auth_headers):
    user = make_user()
    now = datetime.now(timezone.utc)
    points = [(26.9124, 75.7873), (26.9134, 75.7873), (26.9144, 75.7873)]
    for i, (lat, lon) in enumerate(points):
        r = client.post(
            "/location/update",
            headers=auth_headers(user),
            json={"latitude": lat, "longitude": lon, "timestamp": (now - timedelta(minutes=10 - i)).isoformat()},
        )
        assert r.status_code == 201

    current = client.get("/location/current", headers=auth_headers(user)).json()
    assert current["latitude"] == 26.9144

    history = client.get("/location/history", headers=auth_headers(user)).json()
    assert history["count"] == 3
    assert [loc["latitude"] for loc in history["locations"]] == [26.9144, 26.9134, 26.9124]

    limited = client.get("/location/history?limit=2", headers=auth_headers(user)).json()
    assert limited["count"] == 2


def test_timestamps_are_normalized_to_utc(db, make_user):
    user = make_user()
    local = datetime(2026, 3, 1, 10, 0, tzinfo=timezone(timedelta(hours=5, minutes=30)))
    result = record_location(db, user.id, LocationUpdate(latitude=10.0, longitude=10.0, timestamp=local))
    stored = result.location.timestamp
    if stored.tzinfo is None:
        stored = stored.replace(tzinfo=timezone.utc)
    assert stored == datetime(2026, 3, 1, 4, 30, tzinfo=timezone.utc)


def test_last_location_and_history_service(db, make_user):
    user = make_user()
    assert get_last_location(db, user.id) is None
    assert get_location_history(db, user.id) == []

    record_location(db, user.id, LocationUpdate(latitude=-1.2921, longitude=36.8219))
    record_location(db, user.id, LocationUpdate(latitude=-1.2821, longitude=36.8219))
    assert get_last_location(db, user.id).latitude == -1.2821
    assert len(get_location_history(db, user.id, limit=1)) == 1


def test_purge_removes_only_old_samples(db, make_user):
    user = make_user()
    old = datetime.now(timezone.utc) - timedelta(days=45)
    record_location(db, user.id, LocationUpdate(latitude=48.8566, longitude=2.3522, timestamp=old))
    record_location(db, user.id, LocationUpdate(latitude=48.8666, longitude=2.3522))

    deleted = purge_locations_older_than(db, days=30)

    assert deleted >= 1
    remaining = get_location_history(db, user.id)
    assert len(remaining) == 1
    assert remaining[0].latitude == 48.8666


def test_startup_purges_samples_past_retention(db, make_user):
    user = make_user()
    old = datetime.now(timezone.utc) - timedelta(days=60)
    record_location(db, user.id, LocationUpdate(latitude=-22.9068, longitude=-43.1729, timestamp=old))
    assert _count_samples(db, user.id) == 1

    with TestClient(app):
        pass

    db.expire_all()
    assert _count_samples(db, user.id) == 0
