# ============================================================
# models.py — Modèles de données SQLModel (Reservation Service)
# ------------------------------------------------------------
# Tables :
#   1. User / AuthToken : comptes et jetons d'accès
#   2. Room : salles réservables (jamais supprimées, désactivées)
#   3. Booking : réservation d'une salle sur un créneau d'une journée
#   4. Announcement / AnnouncementReaction : annonces + likes/coeurs
#   5. ChatMessage : historique de l'assistant
# Les classes sans table=True sont les corps de requêtes.
# ============================================================
from datetime import date, datetime, time, timezone
from typing import Optional

from sqlalchemy import Index, UniqueConstraint
from sqlmodel import Field, SQLModel

# Cycle de vie : pending → confirmed → cancelled | occupied
# pending : jamais écrit par ce service (création directe en confirmed) ;
# une ligne pending venue d'ailleurs ne bloque aucun créneau
PENDING = "pending"
CONFIRMED = "confirmed"
CANCELLED = "cancelled"
OCCUPIED = "occupied"
ACTIVE_STATUSES = (CONFIRMED, OCCUPIED)

ROLE_USER = "user"
ROLE_ADMIN = "admin"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str = ROLE_USER
    profile_photo: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


# Jeton opaque, valide sur [valid_from, valid_to] tant que ACTIVE
class AuthToken(SQLModel, table=True):
    token: str = Field(primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    valid_from: datetime
    valid_to: datetime
    status: str = "ACTIVE"  # ACTIVE | REVOKED


# ------------------------------------------------------------
# Room
# ------------------------------------------------------------
# Le nom et le numéro sont uniques, salles actives ou non.
# La suppression passe is_active à False pour que l'historique
# des réservations garde une référence valide.
# ------------------------------------------------------------
class Room(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    number: str = Field(unique=True)
    capacity: int = 30
    description: str = ""
    image_url: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)


# ------------------------------------------------------------
# Booking
# ------------------------------------------------------------
# Créneau semi-ouvert [start_time, end_time) sur booking_date.
# Le statut "occupied" n'est jamais écrit : il se déduit de
# l'heure courante (voir scheduling.derive_room_status).
# ------------------------------------------------------------
class Booking(SQLModel, table=True):
    __table_args__ = (
        Index("ix_booking_room_date_status", "room_id", "booking_date", "status"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    room_id: int = Field(foreign_key="room.id")
    booking_date: date
    start_time: time
    end_time: time
    status: str = CONFIRMED
    purpose: str = ""
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class Announcement(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    content: str
    author_id: Optional[int] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=utcnow)


class AnnouncementReaction(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("announcement_id", "user_id", "kind", name="unique_reaction"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    announcement_id: int = Field(foreign_key="announcement.id", index=True)
    user_id: int = Field(foreign_key="user.id")
    kind: str  # like | heart


class ChatMessage(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    message: str
    response: str
    created_at: datetime = Field(default_factory=utcnow)


# --- corps de requêtes ---

class RegisterIn(SQLModel):
    username: str
    email: str
    password: str
    confirm_password: str


class LoginIn(SQLModel):
    email: str
    password: str


class ProfileUpdate(SQLModel):
    username: Optional[str] = None
    profile_photo: Optional[str] = None


class RoomCreate(SQLModel):
    name: str
    number: str
    capacity: int = 30
    description: str = ""
    image_url: Optional[str] = None


# Heures au format "HH:MM", validées par scheduling.parse_clock
class BookingCreate(SQLModel):
    room_id: int
    booking_date: date
    start_time: str
    end_time: str
    purpose: str = ""


class AnnouncementCreate(SQLModel):
    title: str
    content: str


class ChatIn(SQLModel):
    message: str
