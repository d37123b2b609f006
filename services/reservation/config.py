# ============================================================
# config.py — Configuration du service Reservation
# ------------------------------------------------------------
# Toutes les valeurs viennent de l'environnement. Un fichier
# .env à la racine est chargé s'il existe (python-dotenv).
# ============================================================
import os
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

# Base relationnelle : SQLite embarquée par défaut, PostgreSQL en prod
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./reservations.db")

# Hôte RabbitMQ ; vide = publication d'événements désactivée
RABBITMQ_HOST = os.getenv("RABBITMQ_HOST", "")

# Fuseau de l'horloge murale (statut des salles)
LOCAL_TZ = ZoneInfo(os.getenv("LOCAL_TZ", "Asia/Manila"))

# Durée de vie d'un jeton d'authentification (7 jours par défaut)
TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", "168"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
