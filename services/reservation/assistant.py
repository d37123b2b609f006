# ============================================================
# assistant.py — Assistant à réponses prédéfinies
# ------------------------------------------------------------
# Pas de vrai modèle : on cherche des mots-clés dans le message
# (premier trouvé gagne) et on répond à partir des données
# (salles libres aujourd'hui, réservations de l'utilisateur).
# Chaque échange est gardé dans ChatMessage.
# ============================================================
import re

from fastapi import APIRouter, Depends
from sqlmodel import Session

import scheduling
from api import get_clock
from auth import current_user
from db import get_session
from errors import ValidationError
from models import CONFIRMED, ChatIn, ChatMessage, User
from repository import BookingRepository, RoomRepository

router = APIRouter(prefix="/api/ai")

GREETING_RE = re.compile(r"\b(hello|hi|hey)\b")


def _has(msg: str, *words) -> bool:
    return any(w in msg for w in words)


def free_rooms_reply(rooms: RoomRepository, bookings: BookingRepository, clock) -> str:
    booked = {b.room_id for b in bookings.find_active_by_date(clock.today())}
    available = [r.name for r in rooms.find_active() if r.id not in booked]
    if available:
        return (f"Currently available rooms today: {', '.join(available)}. "
                "You can book them from the Rooms page!")
    return "All rooms appear to be booked for today. Check the Schedule page for other available time slots."


def my_bookings_reply(rooms: RoomRepository, bookings: BookingRepository, user: User) -> str:
    mine = sorted(bookings.list_for_user(user.id, status=CONFIRMED),
                  key=lambda b: (b.booking_date, b.start_time))
    if not mine:
        return "You don't have any active bookings. Head to the Rooms page to make one!"
    lines = []
    for b in mine:
        room = rooms.get(b.room_id)
        lines.append(f"{room.name if room else 'Room'} on {b.booking_date.isoformat()} "
                     f"from {scheduling.fmt_clock(b.start_time)}–{scheduling.fmt_clock(b.end_time)}")
    return "Your upcoming bookings:\n" + "\n".join(lines)


def reply(message: str, user: User, rooms: RoomRepository, bookings: BookingRepository, clock) -> str:
    msg = message.lower()

    # "my booking" contient "book" : testé avant la recherche de salles libres
    if _has(msg, "my booking", "reservation"):
        return my_bookings_reply(rooms, bookings, user)
    if _has(msg, "available", "free", "book"):
        return free_rooms_reply(rooms, bookings, clock)
    if "cancel" in msg:
        return ("To cancel a booking, go to your Account page and check your booking history. "
                "You can cancel from there.")
    if _has(msg, "schedule", "timetable"):
        return ("The Schedule page shows a color-coded grid of all room availability. "
                "Green = available to book, Blue = unoccupied, Red = booked.")
    if GREETING_RE.search(msg):
        return ("Hello! I'm the RRS Assistant. I can help you find available rooms, check your bookings, "
                "or answer questions about the reservation system. What would you like to know?")
    if "help" in msg:
        return ("Here's what I can help with:\n• Check available rooms for today\n• View your current bookings\n"
                "• Explain how the schedule works\n• Guide you through booking a room\n\nJust ask me anything!")
    return ("I'm here to help with room reservations! Try asking me about available rooms, "
            "your bookings, or how to navigate the system.")


@router.post("/chat")
def chat(body: ChatIn, user: User = Depends(current_user),
         clock: scheduling.Clock = Depends(get_clock),
         s: Session = Depends(get_session)):
    message = body.message.strip()
    if not message:
        raise ValidationError("Message cannot be empty")
    if len(message) > 500:
        raise ValidationError("Message must be at most 500 characters")
    response = reply(message, user, RoomRepository(s), BookingRepository(s), clock)
    s.add(ChatMessage(user_id=user.id, message=message, response=response))
    s.commit()
    return {"success": True, "response": response}
