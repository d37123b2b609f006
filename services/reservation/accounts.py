# ============================================================
# accounts.py — Inscription, connexion et profil
# ------------------------------------------------------------
#   /api/auth/register, /login, /logout, /me, /delete-account
#   /api/users/profile
# ============================================================
import logging
import re

from fastapi import APIRouter, Depends
from sqlmodel import Session

from auth import (bearer_token, current_user, hash_password, issue_token,
                  public_user, revoke_token, verify_password)
from db import get_session
from errors import UnauthorizedError, ValidationError
from models import LoginIn, ProfileUpdate, RegisterIn, User
from repository import UserRepository

log = logging.getLogger("reservation.accounts")

router = APIRouter(prefix="/api")

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]{3,30}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def check_username(username: str) -> str:
    username = (username or "").strip()
    if not 3 <= len(username) <= 30:
        raise ValidationError("Username must be 3–30 characters")
    if not USERNAME_RE.match(username):
        raise ValidationError("Username can only contain letters, numbers, and underscores")
    return username


@router.post("/auth/register", status_code=201)
def register(body: RegisterIn, s: Session = Depends(get_session)):
    username = check_username(body.username)
    email = body.email.strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("Valid email is required")
    if len(body.password) < 8:
        raise ValidationError("Password must be at least 8 characters")
    if not PASSWORD_RE.match(body.password):
        raise ValidationError("Password must contain uppercase, lowercase, and a number")
    if body.confirm_password != body.password:
        raise ValidationError("Passwords do not match")

    users = UserRepository(s)
    if users.get_by_email(email):
        raise ValidationError("Email is already taken.")
    if users.get_by_username(username):
        raise ValidationError("Username is already taken.")

    user = users.create(User(username=username, email=email,
                             password_hash=hash_password(body.password)))
    log.info("user %s registered", user.id)
    return {"success": True, "token": issue_token(s, user), "user": public_user(user)}


@router.post("/auth/login")
def login(body: LoginIn, s: Session = Depends(get_session)):
    if not body.email or not body.password:
        raise ValidationError("Email and password are required")
    user = UserRepository(s).get_by_email(body.email.strip())
    if not user or not verify_password(body.password, user.password_hash):
        raise UnauthorizedError("Invalid email or password.")
    return {"success": True, "token": issue_token(s, user), "user": public_user(user)}


@router.post("/auth/logout")
def logout(token: str = Depends(bearer_token), user: User = Depends(current_user),
           s: Session = Depends(get_session)):
    revoke_token(s, token)
    return {"success": True, "message": "Logged out successfully."}


@router.get("/auth/me")
def me(user: User = Depends(current_user)):
    return {"success": True, "user": public_user(user)}


@router.delete("/auth/delete-account")
def delete_account(user: User = Depends(current_user), s: Session = Depends(get_session)):
    uid = user.id
    UserRepository(s).delete(user)
    log.info("user %s deleted", uid)
    return {"success": True, "message": "Account deleted successfully."}


# PATCH /api/users/profile — nom d'utilisateur et/ou photo (base64)
@router.patch("/users/profile")
def update_profile(body: ProfileUpdate, user: User = Depends(current_user),
                   s: Session = Depends(get_session)):
    users = UserRepository(s)
    changes = {}
    if body.username:
        username = check_username(body.username)
        other = users.get_by_username(username)
        if other and other.id != user.id:
            raise ValidationError("Username already taken.")
        changes["username"] = username
    if body.profile_photo:
        changes["profile_photo"] = body.profile_photo
    user = users.update(user, **changes)
    return {"success": True, "user": public_user(user)}
