import os

# avant tout import du service : base en mémoire, pas de RabbitMQ
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RABBITMQ_HOST"] = ""

from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

import auth
import db
import models
from api import get_clock
from app import app
from models import ROLE_ADMIN, Room, User

TODAY = date(2026, 3, 2)


class FixedClock:
    def __init__(self, now=time(10, 0), today=TODAY):
        self._now = now
        self._today = today

    def now(self):
        return self._now

    def today(self):
        return self._today


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(auth, "PBKDF2_ROUNDS", 1000)


@pytest.fixture
def session():
    SQLModel.metadata.drop_all(db.engine)
    SQLModel.metadata.create_all(db.engine)
    with Session(db.engine) as s:
        yield s


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def client(session, clock):
    def _session():
        yield session

    app.dependency_overrides[db.get_session] = _session
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
        # release the shared in-memory connection before shutdown disposes the pool
        session.close()
    app.dependency_overrides.clear()


def make_user(session, username, role=models.ROLE_USER):
    user = User(username=username, email=f"{username}@example.com", role=role,
                password_hash=auth.hash_password("Secret123"))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def bearer(session, user):
    return {"Authorization": f"Bearer {auth.issue_token(session, user)}"}


@pytest.fixture
def alice(session):
    return make_user(session, "alice")


@pytest.fixture
def bob(session):
    return make_user(session, "bob")


@pytest.fixture
def admin(session):
    return make_user(session, "admin", role=ROLE_ADMIN)


@pytest.fixture
def rooms(session):
    out = []
    for n in ("301", "302", "303"):
        r = Room(name=f"Classroom {n}", number=n, capacity=40)
        session.add(r)
        out.append(r)
    session.commit()
    for r in out:
        session.refresh(r)
    return out


@pytest.fixture
def headers(session):
    return lambda user: bearer(session, user)
