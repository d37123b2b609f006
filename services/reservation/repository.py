# ============================================================
# repository.py — Accès aux données
# ------------------------------------------------------------
# Ce module implémente le design pattern "Repository" pour les
# tables du service. Il isole la logique d'accès et de
# manipulation des données des routes et du moteur de règles
# (scheduling.py), qui ne connaît que ces méthodes.
# ============================================================
from datetime import date
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, or_, select

from errors import ValidationError
from models import (
    ACTIVE_STATUSES,
    Announcement,
    AnnouncementReaction,
    AuthToken,
    Booking,
    ChatMessage,
    Room,
    User,
)


# BookingRepository
# Utilisé par les routes, le moteur de règles et l'assistant.
class BookingRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(self, b: Booking):
        self.session.add(b)
        self.session.commit()
        self.session.refresh(b)
        return b

    def get(self, booking_id: int):
        return self.session.exec(select(Booking).where(Booking.id == booking_id)).first()

    def update_status(self, booking_id: int, status: str):
        b = self.get(booking_id)
        if b:
            b.status = status
            self.session.commit()
            self.session.refresh(b)
        return b

    def find_active_by_room_and_date(self, room_id: int, day: date) -> List[Booking]:
        return list(self.session.exec(
            select(Booking)
            .where(Booking.room_id == room_id,
                   Booking.booking_date == day,
                   Booking.status.in_(ACTIVE_STATUSES))
            .order_by(Booking.start_time)
        ).all())

    def find_active_by_date(self, day: date) -> List[Booking]:
        return list(self.session.exec(
            select(Booking)
            .where(Booking.booking_date == day, Booking.status.in_(ACTIVE_STATUSES))
            .order_by(Booking.room_id, Booking.start_time)
        ).all())

    def list_for_user(self, user_id: int, status: Optional[str] = None) -> List[Booking]:
        q = select(Booking).where(Booking.user_id == user_id)
        if status:
            q = q.where(Booking.status == status)
        q = q.order_by(Booking.booking_date.desc(), Booking.start_time)
        return list(self.session.exec(q).all())


class RoomRepository:
    def __init__(self, session: Session):
        self.session = session

    # ordre naturel = ordre d'insertion
    def find_active(self) -> List[Room]:
        return list(self.session.exec(
            select(Room).where(Room.is_active == True).order_by(Room.id)  # noqa: E712
        ).all())

    def get(self, room_id: int) -> Optional[Room]:
        return self.session.get(Room, room_id)

    def create(self, room: Room) -> Room:
        # unicité vérifiée sur toutes les salles, actives ou non
        clash = self.session.exec(
            select(Room).where(or_(Room.name == room.name, Room.number == room.number))
        ).first()
        if clash:
            raise ValidationError("Room name or number already exists.")
        self.session.add(room)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ValidationError("Room name or number already exists.")
        self.session.refresh(room)
        return room

    def deactivate(self, room_id: int) -> Optional[Room]:
        room = self.get(room_id)
        if room:
            room.is_active = False
            self.session.commit()
            self.session.refresh(room)
        return room


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.email == email.lower())).first()

    def get_by_username(self, username: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.username == username)).first()

    def create(self, user: User) -> User:
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def update(self, user: User, **changes) -> User:
        for k, v in changes.items():
            setattr(user, k, v)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ValidationError("Username already taken.")
        self.session.refresh(user)
        return user

    # supprime le compte et tout ce qui lui appartient
    def delete(self, user: User):
        uid = user.id
        for model in (AuthToken, AnnouncementReaction, ChatMessage, Booking):
            for row in self.session.exec(select(model).where(model.user_id == uid)).all():
                self.session.delete(row)
        for ann in self.session.exec(select(Announcement).where(Announcement.author_id == uid)).all():
            ann.author_id = None
        self.session.flush()
        self.session.delete(user)
        self.session.commit()


class AnnouncementRepository:
    def __init__(self, session: Session):
        self.session = session

    def list_newest_first(self) -> List[Announcement]:
        return list(self.session.exec(
            select(Announcement).order_by(Announcement.created_at.desc(), Announcement.id.desc())
        ).all())

    def get(self, announcement_id: int) -> Optional[Announcement]:
        return self.session.get(Announcement, announcement_id)

    def create(self, a: Announcement) -> Announcement:
        self.session.add(a)
        self.session.commit()
        self.session.refresh(a)
        return a

    def delete(self, a: Announcement):
        for r in self.session.exec(
            select(AnnouncementReaction).where(AnnouncementReaction.announcement_id == a.id)
        ).all():
            self.session.delete(r)
        self.session.flush()
        self.session.delete(a)
        self.session.commit()

    def count_reactions(self, announcement_id: int, kind: str) -> int:
        return self.session.exec(
            select(func.count()).select_from(AnnouncementReaction).where(
                AnnouncementReaction.announcement_id == announcement_id,
                AnnouncementReaction.kind == kind,
            )
        ).one()

    # ajoute la réaction si absente, la retire sinon ; renvoie le total
    def toggle_reaction(self, announcement_id: int, user_id: int, kind: str) -> int:
        existing = self.session.exec(
            select(AnnouncementReaction).where(
                AnnouncementReaction.announcement_id == announcement_id,
                AnnouncementReaction.user_id == user_id,
                AnnouncementReaction.kind == kind,
            )
        ).first()
        if existing:
            self.session.delete(existing)
        else:
            self.session.add(AnnouncementReaction(
                announcement_id=announcement_id, user_id=user_id, kind=kind))
        self.session.commit()
        return self.count_reactions(announcement_id, kind)
