# ============================================================
# publisher.py — Émission d'événements RabbitMQ
# ------------------------------------------------------------
# Informe les autres services (notification, reporting...) du
# cycle de vie des réservations :
#   - ReservationCreated
#   - ReservationCancelled
# Sans RABBITMQ_HOST la publication est désactivée.
# ============================================================
import json
import logging

import pika
from pika.exceptions import AMQPError

import config

log = logging.getLogger("reservation.events")

EXCHANGE = "events"


# Publie {"type", "payload"} sur l'échange "events" en mode fanout.
# La réservation est déjà commitée : une panne du broker est
# journalisée mais ne fait pas échouer la requête.
def publish_event(event_type: str, payload: dict) -> bool:
    if not config.RABBITMQ_HOST:
        log.debug("events disabled, dropping %s %s", event_type, payload)
        return False
    try:
        conn = pika.BlockingConnection(pika.ConnectionParameters(host=config.RABBITMQ_HOST))
        try:
            ch = conn.channel()
            # durable=True pour survivre aux redémarrages RabbitMQ
            ch.exchange_declare(exchange=EXCHANGE, exchange_type="fanout", durable=True)
            message = {"type": event_type, "payload": payload}
            ch.basic_publish(exchange=EXCHANGE, routing_key="", body=json.dumps(message))
        finally:
            conn.close()
    except AMQPError as e:
        log.warning("could not publish %s: %s", event_type, e)
        return False
    log.info("[event] %s %s", event_type, payload)
    return True
