# ============================================================
# seed.py — Données initiales
# ------------------------------------------------------------
# Lancer : python seed.py (depuis services/reservation)
#   - salles "Classroom 301" à "Classroom 309"
#   - compte admin admin@phinma.edu / Admin1234
#   - quelques annonces
# Les lignes déjà présentes ne sont pas touchées.
# ============================================================
import logging
from datetime import datetime, timezone

from sqlmodel import Session, select

import db
from auth import hash_password
from models import ROLE_ADMIN, Announcement, Room, User

log = logging.getLogger("reservation.seed")

ADMIN_EMAIL = "admin@phinma.edu"
ADMIN_PASSWORD = "Admin1234"

ANNOUNCEMENTS = [
    ("New Reservation System", "We made a reservation system", datetime(1999, 12, 30, tzinfo=timezone.utc)),
    ("Day 1 Patches", "Minor Bug fixes", datetime(2000, 1, 1, tzinfo=timezone.utc)),
]


def seed(s: Session) -> dict:
    created = {"rooms": 0, "admin": 0, "announcements": 0}

    for i in range(1, 10):
        number = f"30{i}"
        if s.exec(select(Room).where(Room.number == number)).first():
            continue
        s.add(Room(name=f"Classroom {number}", number=number, capacity=40,
                   description="Lecture room on the 3rd floor"))
        created["rooms"] += 1

    admin = s.exec(select(User).where(User.email == ADMIN_EMAIL)).first()
    if not admin:
        admin = User(username="admin", email=ADMIN_EMAIL, role=ROLE_ADMIN,
                     password_hash=hash_password(ADMIN_PASSWORD))
        s.add(admin)
        s.flush()
        created["admin"] = 1

    for title, content, when in ANNOUNCEMENTS:
        if s.exec(select(Announcement).where(Announcement.title == title)).first():
            continue
        s.add(Announcement(title=title, content=content, author_id=admin.id, created_at=when))
        created["announcements"] += 1

    s.commit()
    return created


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s %(message)s")
    db.init_db()
    with Session(db.engine) as session:
        log.info("seeded %s", seed(session))
