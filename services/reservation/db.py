# ============================================================
# db.py — Moteur SQLAlchemy/SQLModel du service
# ------------------------------------------------------------
# Un seul moteur (pool de connexions) par processus :
#   - créé à l'import à partir de DATABASE_URL
#   - tables créées au démarrage (init_db)
#   - libéré à l'arrêt (dispose)
# La disponibilité de la base est exposée par ping() pour /health.
# ============================================================
import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from config import DATABASE_URL

log = logging.getLogger("reservation.db")


def make_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # base en mémoire : une seule connexion partagée par tous les threads
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


engine = make_engine(DATABASE_URL)


def init_db():
    import models  # noqa: F401  enregistre les tables dans SQLModel.metadata

    SQLModel.metadata.create_all(engine)
    log.info("tables ready on %s", engine.url.render_as_string(hide_password=True))


def dispose():
    engine.dispose()


def ping() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        log.warning("database ping failed: %s", e)
        return False


# Dépendance FastAPI : fournit une Session DB par requête, auto-close
def get_session():
    with Session(engine) as s:
        yield s
