import pytest
from sqlmodel import select

from models import ChatMessage


def chat(client, hdrs, message):
    return client.post("/api/ai/chat", headers=hdrs, json={"message": message})


def test_available_rooms_today(client, headers, alice, rooms):
    hdrs = headers(alice)
    client.post("/api/bookings", headers=hdrs, json={
        "room_id": rooms[0].id, "booking_date": "2026-03-02", "start_time": "09:00", "end_time": "10:00"})
    r = chat(client, hdrs, "Which rooms are free?")
    assert r.json()["response"] == (
        "Currently available rooms today: Classroom 302, Classroom 303. You can book them from the Rooms page!")


def test_my_bookings(client, headers, alice, rooms):
    hdrs = headers(alice)
    assert "don't have any active bookings" in chat(client, hdrs, "show my bookings").json()["response"]
    client.post("/api/bookings", headers=hdrs, json={
        "room_id": rooms[1].id, "booking_date": "2026-03-04", "start_time": "13:00", "end_time": "14:30"})
    reply = chat(client, hdrs, "my booking please").json()["response"]
    assert reply == "Your upcoming bookings:\nClassroom 302 on 2026-03-04 from 13:00–14:30"


@pytest.mark.parametrize("message,expected", [
    ("How do I cancel?", "To cancel a booking"),
    ("explain the timetable", "The Schedule page"),
    ("hey there", "Hello! I'm the RRS Assistant"),
    ("HELP", "Here's what I can help with"),
    ("this is something else", "I'm here to help with room reservations!"),
])
def test_canned_replies(client, headers, alice, message, expected):
    assert chat(client, headers(alice), message).json()["response"].startswith(expected)


def test_history_is_stored(client, session, headers, alice):
    chat(client, headers(alice), "help")
    rows = session.exec(select(ChatMessage)).all()
    assert len(rows) == 1
    assert rows[0].user_id == alice.id


def test_empty_or_long_message(client, headers, alice):
    assert chat(client, headers(alice), "   ").status_code == 400
    assert chat(client, headers(alice), "x" * 501).status_code == 400
