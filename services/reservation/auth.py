# ============================================================
# auth.py — Comptes et jetons d'accès
# ------------------------------------------------------------
# - mots de passe : PBKDF2-SHA256 salé (hashlib)
# - jetons : chaîne opaque aléatoire stockée en base avec une
#   fenêtre de validité [valid_from, valid_to], comme les codes
#   d'accès ; révoquée à la déconnexion
# - dépendances FastAPI : current_user / admin_user
# ============================================================
import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header
from sqlmodel import Session, select

import config
from db import get_session
from errors import ForbiddenError, UnauthorizedError
from models import ROLE_ADMIN, AuthToken, User, utcnow

log = logging.getLogger("reservation.auth")

PBKDF2_ROUNDS = 260_000


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ROUNDS)
    return f"pbkdf2_sha256${PBKDF2_ROUNDS}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        _, rounds, salt, expected = stored.split("$")
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(rounds))
    return hmac.compare_digest(digest.hex(), expected)


# une valeur relue sans fuseau (SQLite) est de l'UTC
def as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def issue_token(s: Session, user: User) -> str:
    now = utcnow()
    tok = AuthToken(
        token=secrets.token_urlsafe(32),
        user_id=user.id,
        valid_from=now,
        valid_to=now + timedelta(hours=config.TOKEN_TTL_HOURS),
    )
    s.add(tok)
    s.commit()
    return tok.token


def resolve_token(s: Session, token: str) -> Optional[User]:
    at = s.exec(select(AuthToken).where(AuthToken.token == token)).first()
    if not at or at.status != "ACTIVE":
        return None
    if not (as_utc(at.valid_from) <= utcnow() <= as_utc(at.valid_to)):
        return None
    return s.get(User, at.user_id)


def revoke_token(s: Session, token: str):
    at = s.get(AuthToken, token)
    if at:
        at.status = "REVOKED"
        s.commit()


def bearer_token(authorization: Optional[str] = Header(default=None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Not authenticated. Please log in.")
    return authorization.split(" ", 1)[1].strip()


def current_user(token: str = Depends(bearer_token), s: Session = Depends(get_session)) -> User:
    user = resolve_token(s, token)
    if not user:
        raise UnauthorizedError("Invalid or expired token.")
    return user


def admin_user(user: User = Depends(current_user)) -> User:
    if user.role != ROLE_ADMIN:
        raise ForbiddenError("Access denied. Admins only.")
    return user


def public_user(u: User) -> dict:
    return {
        "id": u.id,
        "username": u.username,
        "email": u.email,
        "role": u.role,
        "profile_photo": u.profile_photo,
    }
