"""Alert history store + history API tests."""

from datetime import datetime, timedelta, timezone

from suraksha.models.alert_record import AlertRecord
from suraksha.schemas.alert import AlertLocation, SenderDetails
from suraksha.services.alert_history_service import (
    can_send_alert,
    count_recent_alerts,
    list_alerts,
    record_alert,
)


def _record(db, user, status="sent", **kwargs):
    return record_alert(
        db,
        user_id=user.id,
        recipients=["9876543210"],
        message="EMERGENCY SOS!",
        location=AlertLocation(latitude=12.0, longitude=77.0, map_link="https://maps.example/z"),
        status=status,
        sender=SenderDetails(name=user.name, mobile=user.mobile, email=user.email),
        **kwargs,
    )


def test_record_and_list_newest_first(db, make_user):
    user = make_user()
    first = _record(db, user)
    second = _record(db, user, status="failed", error="boom")

    records = list_alerts(db, user.id)
    assert [r.id for r in records] == [second.id, first.id]
    assert records[0].error == "boom"
    assert records[1].recipients == ["9876543210"]
    assert len(list_alerts(db, user.id, limit=1)) == 1


def test_recent_count_ignores_old_records(db, make_user):
    user = make_user()
    _record(db, user)
    old = AlertRecord(
        user_id=user.id,
        recipients=[],
        message="old",
        map_link="",
        status="sent",
        sender_name=user.name,
        sender_mobile=user.mobile,
        sent_at=datetime.now(timezone.utc) - timedelta(days=2),
    )
    db.add(old)
    db.commit()

    assert count_recent_alerts(db, user.id) == 1
    assert count_recent_alerts(db, user.id, hours=72) == 2


def test_can_send_alert_soft_quota(db, make_user):
    user = make_user()
    assert can_send_alert(db, user.id, max_per_hour=2) is True
    _record(db, user)
    _record(db, user)
    assert can_send_alert(db, user.id, max_per_hour=2) is False
    assert can_send_alert(db, user.id) is True


def test_history_api_shape(client, db, make_user, auth_headers):
    user = make_user(name="Kavya")
    _record(db, user, email_sent=True, guardian_email="g@test.com", channel_request_id="abc")

    r = client.get("/sos/history", headers=auth_headers(user))
    assert r.status_code == 200
    data = r.json()
    assert data["count"] == 1
    alert = data["alerts"][0]
    assert alert["location"] == {"latitude": 12.0, "longitude": 77.0, "map_link": "https://maps.example/z"}
    assert alert["sender_details"]["name"] == "Kavya"
    assert alert["email_sent"] is True
    assert alert["channel_request_id"] == "abc"


def test_history_is_per_user(client, db, make_user, auth_headers):
    owner = make_user()
    other = make_user()
    _record(db, owner)
    assert client.get("/sos/history", headers=auth_headers(other)).json()["count"] == 0


def test_quota_endpoint(client, db, make_user, auth_headers):
    user = make_user()
    _record(db, user)
    data = client.get("/sos/quota", headers=auth_headers(user)).json()
    assert data == {"recent_count": 1, "max_per_hour": 10, "can_send": True}
