# ============================================================
# Reservation API Router
# ------------------------------------------------------------
# Endpoints REST des salles et des réservations. Les règles
# (conflits, statut, annulation) sont dans scheduling.py ; ici
# on valide les entrées, on appelle le moteur, puis on publie
# les événements (RabbitMQ).
# ============================================================
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

import scheduling
from auth import admin_user, current_user
from db import get_session
from errors import NotFoundError, ValidationError
from models import Booking, BookingCreate, Room, RoomCreate, User
from publisher import publish_event
from repository import BookingRepository, RoomRepository, UserRepository

router = APIRouter(prefix="/api")


# Dépendance FastAPI : horloge murale (remplacée dans les tests)
def get_clock() -> scheduling.Clock:
    return scheduling.Clock()


def room_out(r: Room, status: Optional[str] = None) -> dict:
    out = {
        "id": r.id,
        "name": r.name,
        "number": r.number,
        "capacity": r.capacity,
        "description": r.description,
        "image_url": r.image_url,
        "is_active": r.is_active,
    }
    if status is not None:
        out["status"] = status
    return out


def booking_out(b: Booking, room: Optional[Room] = None, username: Optional[str] = None) -> dict:
    out = {
        "id": b.id,
        "user_id": b.user_id,
        "room_id": b.room_id,
        "date": b.booking_date.isoformat(),
        "start_time": scheduling.fmt_clock(b.start_time),
        "end_time": scheduling.fmt_clock(b.end_time),
        "status": b.status,
        "purpose": b.purpose,
    }
    if room is not None:
        out["room"] = {"id": room.id, "name": room.name, "number": room.number}
    if username is not None:
        out["user"] = {"id": b.user_id, "username": username}
    return out


# ------------------------------------------------------------
# GET /api/rooms — Salles actives et leur statut pour une date
# ------------------------------------------------------------
@router.get("/rooms")
def list_rooms(day: Optional[date] = Query(default=None, alias="date"),
               user: User = Depends(current_user),
               clock: scheduling.Clock = Depends(get_clock),
               s: Session = Depends(get_session)):
    day = day or clock.today()
    rows = scheduling.list_rooms_with_status(
        RoomRepository(s), BookingRepository(s), day, clock.now())
    return {"success": True, "data": [room_out(r, st) for r, st in rows]}


# ------------------------------------------------------------
# GET /api/rooms/schedule — Grille : salles + réservations du jour
# (?room_id=… : une seule salle, 404 si inconnue ou désactivée)
# ------------------------------------------------------------
@router.get("/rooms/schedule")
def rooms_schedule(day: Optional[date] = Query(default=None, alias="date"),
                   room_id: Optional[int] = Query(default=None),
                   user: User = Depends(current_user),
                   clock: scheduling.Clock = Depends(get_clock),
                   s: Session = Depends(get_session)):
    day = day or clock.today()
    rooms, bookings = scheduling.room_schedule(RoomRepository(s), BookingRepository(s), day, room_id)
    users = UserRepository(s)
    names = {}
    for b in bookings:
        if b.user_id not in names:
            u = users.get(b.user_id)
            names[b.user_id] = u.username if u else ""
    return {
        "success": True,
        "date": day.isoformat(),
        "rooms": [room_out(r) for r in rooms],
        "bookings": [booking_out(b, username=names[b.user_id]) for b in bookings],
    }


# POST /api/rooms — admin : créer une salle
@router.post("/rooms", status_code=201)
def create_room(body: RoomCreate, admin: User = Depends(admin_user),
                s: Session = Depends(get_session)):
    name, number = body.name.strip(), body.number.strip()
    if not name:
        raise ValidationError("Room name is required")
    if not number:
        raise ValidationError("Room number is required")
    if body.capacity < 1:
        raise ValidationError("Capacity must be a positive number")
    room = RoomRepository(s).create(Room(
        name=name,
        number=number,
        capacity=body.capacity,
        description=body.description,
        image_url=body.image_url,
    ))
    return {"success": True, "data": room_out(room)}


# DELETE /api/rooms/{id} — admin : désactivation (jamais de suppression)
@router.delete("/rooms/{room_id}")
def deactivate_room(room_id: int, admin: User = Depends(admin_user),
                    s: Session = Depends(get_session)):
    if not RoomRepository(s).deactivate(room_id):
        raise NotFoundError("Room not found.")
    return {"success": True, "message": "Room deactivated."}


# GET /api/bookings/my — réservations de l'utilisateur courant
@router.get("/bookings/my")
def my_bookings(user: User = Depends(current_user), s: Session = Depends(get_session)):
    rooms = RoomRepository(s)
    out = [booking_out(b, room=rooms.get(b.room_id))
           for b in BookingRepository(s).list_for_user(user.id)]
    return {"success": True, "data": out}


# ------------------------------------------------------------
# POST /api/bookings — Créer une réservation
# ------------------------------------------------------------
# - Valide le format HH:MM et l'ordre start/end
# - Vérifie le conflit et insère (sérialisé par salle + jour)
# - Publie ReservationCreated
# ------------------------------------------------------------
@router.post("/bookings", status_code=201)
def create_booking(body: BookingCreate, user: User = Depends(current_user),
                   s: Session = Depends(get_session)):
    start = scheduling.parse_clock(body.start_time, "Start time")
    end = scheduling.parse_clock(body.end_time, "End time")
    scheduling.validate_interval(start, end)

    bookings, rooms = BookingRepository(s), RoomRepository(s)
    created = scheduling.create_reservation(
        bookings, rooms, user.id, body.room_id, body.booking_date, start, end, body.purpose)

    publish_event("ReservationCreated", {
        "bookingId": created.id,
        "userId": created.user_id,
        "roomId": created.room_id,
        "date": created.booking_date.isoformat(),
        "start": scheduling.fmt_clock(created.start_time),
        "end": scheduling.fmt_clock(created.end_time),
    })
    return {"success": True, "data": booking_out(created, room=rooms.get(created.room_id))}


# ------------------------------------------------------------
# DELETE /api/bookings/{id} — Annuler (propriétaire ou admin)
# ------------------------------------------------------------
@router.delete("/bookings/{booking_id}")
def cancel_booking(booking_id: int, user: User = Depends(current_user),
                   s: Session = Depends(get_session)):
    b, changed = scheduling.cancel_reservation(BookingRepository(s), booking_id, user)
    if changed:
        publish_event("ReservationCancelled", {"bookingId": b.id, "cancelledBy": user.id})
    return {"success": True, "message": "Booking cancelled.", "data": booking_out(b)}
