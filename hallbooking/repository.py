"""Database access used by the services and the booking engine."""
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .models import Booking, Hall
from .occupancy import normalize_hall


class SqlBookingSource:
    """BookingSource reading the ``bookings`` table through a session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def bookings(self, hall: Optional[str] = None) -> List[Booking]:
        query = self.db.query(Booking)
        wanted = normalize_hall(hall)
        if wanted is not None:
            query = query.filter(func.lower(func.trim(Booking.hall_name)) == wanted)
        return query.order_by(Booking.id).all()


def find_hall(db: Session, name: Optional[str]) -> Optional[Hall]:
    wanted = normalize_hall(name)
    if wanted is None:
        return None
    return db.query(Hall).filter(func.lower(Hall.name) == wanted).first()
