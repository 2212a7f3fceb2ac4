"""Booking event publishing to RabbitMQ."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict

import pika
from pika.exceptions import AMQPError

from .config import get_settings
from .models import Booking

logger = logging.getLogger(__name__)


def booking_event(event: str, booking: Booking, **extra: Any) -> Dict[str, Any]:
    """Snapshot the booking into a JSON-ready message.

    Built before the request session closes; the publish itself runs later.
    """
    message = {
        "event": event,
        "booking_id": booking.id,
        "hall_name": booking.hall_name,
        "status": booking.status,
        "email": booking.email,
        "department": booking.department,
        "slot_title": booking.slot_title,
        "date": booking.date,
        "start_time": booking.start_time,
        "end_time": booking.end_time,
        "start_date": booking.start_date,
        "end_date": booking.end_date,
        "day_slots": booking.day_slots,
    }
    message.update(extra)
    return message


def publish_booking_event(message: Dict[str, Any]) -> bool:
    """Send ``message`` to the durable bookings queue; never raises.

    Returns False when notifications are disabled or the broker is unreachable.
    """
    settings = get_settings()
    if not settings.notifications_enabled:
        logger.debug("Notifications disabled, dropping %s for booking %s", message["event"], message["booking_id"])
        return False

    try:
        connection = pika.BlockingConnection(pika.ConnectionParameters(host=settings.rabbitmq_host))
        try:
            channel = connection.channel()
            channel.queue_declare(queue=settings.bookings_queue, durable=True)
            channel.basic_publish(
                exchange="",
                routing_key=settings.bookings_queue,
                body=json.dumps(message),
                properties=pika.BasicProperties(delivery_mode=2),
            )
        finally:
            connection.close()
    except (AMQPError, OSError) as exc:
        logger.error("[RabbitMQ] Failed to publish %s for booking %s: %s", message["event"], message["booking_id"], exc)
        return False

    logger.info("[RabbitMQ] Published %s for booking %s", message["event"], message["booking_id"])
    return True
