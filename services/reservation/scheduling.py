# ============================================================
# scheduling.py — Moteur de règles de réservation
# ------------------------------------------------------------
# Seul endroit où vivent les règles :
#   - détection de conflit (chevauchement d'intervalles)
#   - création sérialisée par (salle, jour)
#   - statut d'une salle : available / booked / occupied
#   - annulation (propriétaire ou admin)
# Le moteur ne dépend que des méthodes des repositories et
# d'une horloge ; il ne connaît ni HTTP ni RabbitMQ.
# ============================================================
import logging
import re
import threading
import weakref
from contextlib import contextmanager
from datetime import date, datetime, time
from typing import List, Optional, Tuple

from sqlalchemy import text

from config import LOCAL_TZ
from errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from models import CANCELLED, CONFIRMED, ROLE_ADMIN, Booking, Room

log = logging.getLogger("reservation.scheduling")

AVAILABLE = "available"
BOOKED = "booked"
OCCUPIED = "occupied"

CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


# ------------------------------------------------------------
# Heures "HH:MM"
# ------------------------------------------------------------
def parse_clock(value: str, field: str = "Time") -> time:
    if not isinstance(value, str) or not CLOCK_RE.match(value):
        raise ValidationError(f"{field} must be HH:MM")
    hh, mm = value.split(":")
    return time(int(hh), int(mm))


def fmt_clock(t: time) -> str:
    return f"{t.hour:02d}:{t.minute:02d}"


def validate_interval(start: time, end: time):
    if end <= start:
        raise ValidationError("End time must be after start time")


# Horloge murale au fuseau LOCAL_TZ, à la minute près
class Clock:
    def __init__(self, tz=LOCAL_TZ):
        self.tz = tz

    def now(self) -> time:
        n = datetime.now(self.tz)
        return time(n.hour, n.minute)

    def today(self) -> date:
        return datetime.now(self.tz).date()


# Intervalles semi-ouverts : [s1, e1) et [s2, e2)
def overlaps(s1: time, e1: time, s2: time, e2: time) -> bool:
    return s1 < e2 and e1 > s2


def conflict_message(b: Booking) -> str:
    return f"Room already booked {fmt_clock(b.start_time)}–{fmt_clock(b.end_time)}."


def check_conflict(bookings, room_id: int, day: date, start: time, end: time) -> Optional[Booking]:
    """Renvoie la première réservation active qui chevauche [start, end), sinon None.

    Les réservations qui se touchent (09:00–10:00 puis 10:00–11:00) ne sont
    pas en conflit.
    """
    for b in bookings.find_active_by_room_and_date(room_id, day):
        if overlaps(start, end, b.start_time, b.end_time):
            return b
    return None


# ------------------------------------------------------------
# Sérialisation vérification + insertion
# ------------------------------------------------------------
# Deux requêtes concurrentes sur la même salle et le même jour
# passent l'une après l'autre :
#   - verrou en mémoire par (salle, jour) pour les threads du worker
#   - pg_advisory_xact_lock sous PostgreSQL pour les autres processus,
#     relâché au commit/rollback de la transaction
# ------------------------------------------------------------
_locks = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def _lock_for(room_id: int, day: date) -> threading.Lock:
    with _locks_guard:
        lock = _locks.get((room_id, day))
        if lock is None:
            lock = threading.Lock()
            _locks[(room_id, day)] = lock
        return lock


def advisory_key(room_id: int, day: date) -> int:
    return (room_id << 32) | day.toordinal()


@contextmanager
def reservation_guard(session, room_id: int, day: date):
    lock = _lock_for(room_id, day)
    with lock:
        if session.get_bind().dialect.name == "postgresql":
            session.execute(text("SELECT pg_advisory_xact_lock(:k)"),
                            {"k": advisory_key(room_id, day)})
        yield


def create_reservation(bookings, rooms, user_id: int, room_id: int, day: date,
                       start: time, end: time, purpose: str = "") -> Booking:
    validate_interval(start, end)

    room = rooms.get(room_id)
    if not room or not room.is_active:
        raise NotFoundError("Room not found.")

    with reservation_guard(bookings.session, room_id, day):
        clash = check_conflict(bookings, room_id, day, start, end)
        if clash:
            log.info("conflict room=%s date=%s %s-%s with booking %s",
                     room_id, day, fmt_clock(start), fmt_clock(end), clash.id)
            bookings.session.rollback()
            raise ConflictError(conflict_message(clash), booking=clash)
        created = bookings.create(Booking(
            user_id=user_id,
            room_id=room_id,
            booking_date=day,
            start_time=start,
            end_time=end,
            purpose=purpose or "",
            status=CONFIRMED,
        ))
    log.info("booking %s created room=%s date=%s %s-%s",
             created.id, room_id, day, fmt_clock(start), fmt_clock(end))
    return created


# ------------------------------------------------------------
# Statut d'une salle
# ------------------------------------------------------------
# Ordre de priorité :
#   1. un créneau contient now (bornes INCLUSES des deux côtés) → occupied
#   2. un créneau commence après now                           → booked
#   3. sinon                                                   → available
# Une réservation qui finit exactement à now est encore "occupied".
# ------------------------------------------------------------
def derive_room_status(room: Room, bookings: List[Booking], now: time) -> str:
    active = [b for b in bookings if b.is_active]
    if any(b.start_time <= now <= b.end_time for b in active):
        return OCCUPIED
    if any(b.start_time > now for b in active):
        return BOOKED
    return AVAILABLE


def list_rooms_with_status(rooms, bookings, day: date, now: time) -> List[Tuple[Room, str]]:
    day_bookings = bookings.find_active_by_date(day)
    by_room = {}
    for b in day_bookings:
        by_room.setdefault(b.room_id, []).append(b)
    return [(r, derive_room_status(r, by_room.get(r.id, []), now))
            for r in rooms.find_active()]


def room_schedule(rooms, bookings, day: date,
                  room_id: Optional[int] = None) -> Tuple[List[Room], List[Booking]]:
    """Salles actives et leurs réservations actives du jour, éventuellement pour une seule salle."""
    active = rooms.find_active()
    day_bookings = bookings.find_active_by_date(day)
    if room_id is None:
        return active, day_bookings
    selected = [r for r in active if r.id == room_id]
    if not selected:
        raise NotFoundError("Room not found.")
    return selected, [b for b in day_bookings if b.room_id == room_id]


def cancel_reservation(bookings, booking_id: int, requester) -> Tuple[Booking, bool]:
    """Annule une réservation ; renvoie (réservation, changement effectif).

    Annuler deux fois n'est pas une erreur : la seconde fois ne change rien.
    """
    b = bookings.get(booking_id)
    if not b:
        raise NotFoundError("Booking not found.")
    if b.user_id != requester.id and requester.role != ROLE_ADMIN:
        raise ForbiddenError("Not authorized.")
    if b.status == CANCELLED:
        return b, False
    b = bookings.update_status(b.id, CANCELLED)
    log.info("booking %s cancelled by user %s", b.id, requester.id)
    return b, True
