"""Nearby users API tests."""

METERS_PER_DEGREE = 111_194.93


def _post_location(client, headers, lat, lon):
    r = client.post("/location/update", headers=headers, json={"latitude": lat, "longitude": lon})
    assert r.status_code in (200, 201)


def test_nearby_returns_users_in_radius_sorted_excluding_caller(client, make_user, auth_headers):
    base_lat, base_lon = 64.1466, -21.9426  # Reykjavik
    caller = make_user(name="Caller")
    close = make_user(name="Close")
    closer = make_user(name="Closer")
    outside = make_user(name="Outside")

    _post_location(client, auth_headers(caller), base_lat, base_lon)
    _post_location(client, auth_headers(close), base_lat + 400 / METERS_PER_DEGREE, base_lon)
    _post_location(client, auth_headers(closer), base_lat + 100 / METERS_PER_DEGREE, base_lon)
    _post_location(client, auth_headers(outside), base_lat + 800 / METERS_PER_DEGREE, base_lon)

    r = client.post(
        "/location/nearby",
        headers=auth_headers(caller),
        json={"latitude": base_lat, "longitude": base_lon},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["radius"] == 500
    ids = [u["user_id"] for u in data["users"]]
    assert caller.id not in ids
    assert outside.id not in ids
    assert ids.index(closer.id) < ids.index(close.id)
    assert data["count"] == len(data["users"])
    distances = [u["distance"] for u in data["users"]]
    assert distances == sorted(distances)
    assert all(d <= 500 for d in distances)

    closer_row = next(u for u in data["users"] if u["user_id"] == closer.id)
    assert closer_row["name"] == "Closer"
    assert closer_row["mobile"] == closer.mobile
    assert closer_row["email"] == closer.email


def test_nearby_custom_radius(client, make_user, auth_headers):
    base_lat, base_lon = 64.2000, -21.8000
    caller = make_user()
    other = make_user()
    _post_location(client, auth_headers(other), base_lat + 800 / METERS_PER_DEGREE, base_lon)

    small = client.post(
        "/location/nearby",
        headers=auth_headers(caller),
        json={"latitude": base_lat, "longitude": base_lon, "radius": 500},
    ).json()
    assert other.id not in [u["user_id"] for u in small["users"]]

    large = client.post(
        "/location/nearby",
        headers=auth_headers(caller),
        json={"latitude": base_lat, "longitude": base_lon, "radius": 1000},
    ).json()
    assert other.id in [u["user_id"] for u in large["users"]]


def test_nearby_validates_input(client, make_user, auth_headers):
    caller = make_user()
    for body in (
        {"latitude": -91, "longitude": 0},
        {"latitude": 0, "longitude": 200},
        {"latitude": 0, "longitude": 0, "radius": 0},
    ):
        r = client.post("/location/nearby", headers=auth_headers(caller), json=body)
        assert r.status_code == 422, body
