import json
from unittest.mock import patch

import pika.exceptions

import config
import publisher


def test_disabled_without_host(monkeypatch):
    monkeypatch.setattr(config, "RABBITMQ_HOST", "")
    with patch("publisher.pika.BlockingConnection") as conn:
        assert publisher.publish_event("ReservationCreated", {"bookingId": 1}) is False
    conn.assert_not_called()


def test_publishes_to_fanout_exchange(monkeypatch):
    monkeypatch.setattr(config, "RABBITMQ_HOST", "rabbitmq")
    with patch("publisher.pika.BlockingConnection") as conn:
        assert publisher.publish_event("ReservationCancelled", {"bookingId": 3, "cancelledBy": 1}) is True
        ch = conn.return_value.channel.return_value
        ch.exchange_declare.assert_called_once_with(exchange="events", exchange_type="fanout", durable=True)
        body = json.loads(ch.basic_publish.call_args.kwargs["body"])
        assert body == {"type": "ReservationCancelled", "payload": {"bookingId": 3, "cancelledBy": 1}}
        conn.return_value.close.assert_called_once()


def test_broker_down_does_not_raise(monkeypatch):
    monkeypatch.setattr(config, "RABBITMQ_HOST", "rabbitmq")
    with patch("publisher.pika.BlockingConnection", side_effect=pika.exceptions.AMQPConnectionError("down")):
        assert publisher.publish_event("ReservationCreated", {"bookingId": 1}) is False


def test_booking_lifecycle_events(client, headers, alice, rooms):
    hdrs = headers(alice)
    with patch("api.publish_event") as publish:
        bid = client.post("/api/bookings", headers=hdrs, json={
            "room_id": rooms[0].id, "booking_date": "2026-03-02",
            "start_time": "09:00", "end_time": "10:00"}).json()["data"]["id"]
        client.delete(f"/api/bookings/{bid}", headers=hdrs)
        client.delete(f"/api/bookings/{bid}", headers=hdrs)
    types = [c.args[0] for c in publish.call_args_list]
    assert types == ["ReservationCreated", "ReservationCancelled"]
    assert publish.call_args_list[0].args[1]["start"] == "09:00"


def test_conflict_publishes_nothing(client, headers, alice, rooms):
    hdrs = headers(alice)
    body = {"room_id": rooms[0].id, "booking_date": "2026-03-02", "start_time": "09:00", "end_time": "10:00"}
    client.post("/api/bookings", headers=hdrs, json=body)
    with patch("api.publish_event") as publish:
        assert client.post("/api/bookings", headers=hdrs, json=body).status_code == 409
    publish.assert_not_called()
