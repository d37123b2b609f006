# ============================================================
# errors.py — Erreurs métier du service Reservation
# ------------------------------------------------------------
# Chaque erreur porte son code HTTP. Un seul handler FastAPI
# les transforme en {"success": false, "message": ...}. Les corps
# de requête mal formés (pydantic) suivent la même enveloppe en 400.
# ============================================================
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ReservationError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ReservationError):
    status_code = 400


class UnauthorizedError(ReservationError):
    status_code = 401


class ForbiddenError(ReservationError):
    status_code = 403


class NotFoundError(ReservationError):
    status_code = 404


class ConflictError(ReservationError):
    """Un créneau actif chevauche l'intervalle demandé ; `booking` est ce créneau."""

    status_code = 409

    def __init__(self, message: str, booking=None):
        super().__init__(message)
        self.booking = booking


async def reservation_error_handler(request: Request, exc: ReservationError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message},
    )


# Corps ou paramètres invalides : première erreur pydantic, en 400
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request."
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", message)
    return JSONResponse(status_code=400, content={"success": False, "message": message})
