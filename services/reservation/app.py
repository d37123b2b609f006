# ============================================================
# app.py — Point d'entrée du service Reservation
# ------------------------------------------------------------
# Ce module initialise l'application FastAPI :
#   - configure les logs
#   - crée les tables au démarrage, libère le pool à l'arrêt
#   - monte les routes (comptes, salles/réservations, annonces,
#     assistant) et le handler des erreurs métier
# ============================================================
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

import config
import db
from accounts import router as accounts_router
from announcements import router as announcements_router
from api import router
from assistant import router as assistant_router
from errors import ReservationError, request_validation_handler, reservation_error_handler

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
)
log = logging.getLogger("reservation")

app = FastAPI(title="Room Reservation Service")
app.add_exception_handler(ReservationError, reservation_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)


@app.on_event("startup")
def start():
    db.init_db()
    log.info("reservation service started")


@app.on_event("shutdown")
def stop():
    db.dispose()


# Disponibilité : la base répond-elle ?
@app.get("/health")
def health():
    if not db.ping():
        return JSONResponse(status_code=503, content={"ok": False, "database": "down"})
    return {"ok": True, "database": "up"}


app.include_router(accounts_router)
app.include_router(router)
app.include_router(announcements_router)
app.include_router(assistant_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
