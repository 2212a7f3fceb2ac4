import logging
import re
import threading
from contextlib import ExitStack, asynccontextmanager, contextmanager
from datetime import date
from typing import Any, Dict, Iterator, List, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import func
from sqlalchemy.orm import Session

from hallbooking.audit import record_action
from hallbooking.cache import SimpleTTLCache
from hallbooking.calendars import CalendarDay
from hallbooking.config import get_settings
from hallbooking.database import Base, engine, get_db
from hallbooking.dependencies import get_current_user, is_admin, require_admin
from hallbooking.engine import BookingEngine
from hallbooking.error_handlers import apply_booking_error_handler
from hallbooking.errors import BookingError
from hallbooking.logging_middleware import add_access_log_middleware, client_ip
from hallbooking.models import AuditLog, Booking, BookingStatus, User
from hallbooking.notifications import booking_event, publish_booking_event
from hallbooking.occupancy import normalize_hall
from hallbooking.rate_limit import apply_rate_limiter, limiter
from hallbooking.repository import SqlBookingSource, find_hall
from hallbooking.schemas import (
    AuditLogRead,
    Availability,
    BookingCreate,
    BookingRead,
    BookingUpdate,
    CalendarDayRead,
    CancelRequest,
)

settings = get_settings()
logger = logging.getLogger(__name__)

SHAPE_FIELDS = ("hall_name", "slot", "date", "start_time", "end_time", "start_date", "end_date", "day_slots")
STATUS_ACTIONS = {
    BookingStatus.APPROVED.value: "APPROVE_BOOKING",
    BookingStatus.REJECTED.value: "REJECT_BOOKING",
    BookingStatus.CANCELLED.value: "CANCEL_BOOKING",
    BookingStatus.CANCEL_REQUESTED.value: "CANCEL_REQUEST",
}

calendar_cache: SimpleTTLCache[List[CalendarDay]] = SimpleTTLCache(ttl=settings.calendar_cache_ttl)

_hall_locks: Dict[str, threading.Lock] = {}
_hall_locks_guard = threading.Lock()


def _hall_lock(hall_name: Optional[str]) -> threading.Lock:
    """One writer per hall inside this process: check and persist under the same lock."""
    key = normalize_hall(hall_name) or ""
    with _hall_locks_guard:
        return _hall_locks.setdefault(key, threading.Lock())


@contextmanager
def _hall_locks_held(*hall_names: Optional[str]) -> Iterator[None]:
    """Hold the locks of every named hall, taken in a fixed order."""
    keys = sorted({normalize_hall(name) or "" for name in hall_names})
    with ExitStack() as stack:
        for key in keys:
            stack.enter_context(_hall_lock(key))
        yield


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Bookings Service", version="0.3.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    apply_booking_error_handler(fastapi_app)
    add_access_log_middleware(fastapi_app, "bookings")
    Instrumentator().instrument(fastapi_app).expose(fastapi_app)
    return fastapi_app


app = create_app()


def _engine(db: Session, capped: bool = True) -> BookingEngine:
    max_days = settings.max_booking_days if capped else None
    return BookingEngine(SqlBookingSource(db), max_booking_days=max_days)


def _today() -> Optional[date]:
    return None if settings.allow_past_bookings else date.today()


def _check_contact(email: Optional[str], phone: Optional[str] = None) -> None:
    domain = settings.allowed_email_domain
    if email and domain and not email.lower().endswith("@" + domain.lower()):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid email! Must end with @{domain}")
    pattern = settings.phone_pattern
    if phone is not None and pattern and not re.fullmatch(pattern, phone.strip()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid phone number! Must match {pattern}",
        )


def _ensure_hall_exists(db: Session, hall_name: Optional[str]) -> Optional[str]:
    """Return the hall's stored name; blank names are left to the engine to reject."""
    if normalize_hall(hall_name) is None:
        return hall_name
    hall = find_hall(db, hall_name)
    if not hall:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hall not found")
    return hall.name


def _get_booking_or_404(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


def _ensure_owner_or_admin(current_user: User, booking: Booking) -> None:
    if not is_admin(current_user) and booking.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


def _after_commit(
    background_tasks: BackgroundTasks,
    request: Request,
    current_user: User,
    message: Dict[str, Any],
    action: str,
    details: str,
) -> None:
    calendar_cache.clear()
    background_tasks.add_task(publish_booking_event, message)
    background_tasks.add_task(
        record_action,
        action,
        current_user.username,
        current_user.role.value,
        message["booking_id"],
        details,
        client_ip(request),
    )


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "bookings"}


@app.post("/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
def create_booking(
    request: Request,
    booking_in: BookingCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Booking:
    _check_contact(booking_in.email, booking_in.phone)
    hall_name = _ensure_hall_exists(db, booking_in.hall_name)

    with _hall_lock(hall_name):
        _engine(db).validate_and_check(booking_in, today=_today())

        booking = Booking(**booking_in.model_dump(exclude={"status"}))
        booking.hall_name = hall_name
        booking.user_id = current_user.id
        booking.booking_name = booking.booking_name or current_user.name
        booking.email = booking.email or current_user.email
        booking.department = booking.department or current_user.department
        if is_admin(current_user):
            booking.status = (booking_in.status or BookingStatus.APPROVED).value
            booking.created_by = "ADMIN"
        else:
            booking.status = BookingStatus.PENDING.value
            booking.created_by = "DEPARTMENT"
            if not booking.remarks or not booking.remarks.strip():
                booking.remarks = "Waiting for Admin Approval"
        db.add(booking)
        db.commit()
        db.refresh(booking)

    _after_commit(
        background_tasks,
        request,
        current_user,
        booking_event("booking_created", booking),
        "CREATE_REQUEST",
        f"Requested {booking.hall_name} for {booking.slot_title or 'an event'}",
    )
    return booking


@app.get("/bookings", response_model=List[BookingRead])
@limiter.limit("30/minute")
def list_bookings(
    request: Request,
    status_filter: Optional[str] = Query(None, alias="status"),
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> List[Booking]:
    query = db.query(Booking)
    if status_filter and status_filter.strip():
        query = query.filter(func.upper(Booking.status) == status_filter.strip().upper())
    return query.order_by(Booking.applied_at.desc(), Booking.id.desc()).all()


@app.get("/bookings/me", response_model=List[BookingRead])
@limiter.limit("30/minute")
def my_bookings(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Booking]:
    return (
        db.query(Booking)
        .filter(Booking.user_id == current_user.id)
        .order_by(Booking.applied_at.desc(), Booking.id.desc())
        .all()
    )


@app.get("/bookings/summary")
@limiter.limit("30/minute")
def status_summary(
    request: Request,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    rows = db.query(func.upper(Booking.status), func.count(Booking.id)).group_by(func.upper(Booking.status)).all()
    return {booking_status or "UNKNOWN": count for booking_status, count in rows}


@app.get("/bookings/search", response_model=List[BookingRead])
@limiter.limit("30/minute")
def search_bookings(
    request: Request,
    department: Optional[str] = None,
    hall: Optional[str] = None,
    on_date: Optional[str] = Query(None, alias="date"),
    slot: Optional[str] = None,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Booking]:
    query = db.query(Booking)
    if department and department.strip():
        query = query.filter(func.lower(Booking.department) == department.strip().lower())
    if hall and hall.strip():
        query = query.filter(func.lower(Booking.hall_name) == hall.strip().lower())
    if on_date and on_date.strip():
        query = query.filter(Booking.date == on_date.strip())
    if slot and slot.strip():
        query = query.filter(Booking.slot.ilike(f"%{slot.strip()}%"))
    return query.order_by(Booking.id).all()


@app.get("/bookings/availability", response_model=Availability)
@limiter.limit("40/minute")
def check_availability(
    request: Request,
    hall_name: str,
    on_date: Optional[str] = Query(None, alias="date"),
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    exclude_id: Optional[int] = None,
    db: Session = Depends(get_db),
) -> Availability:
    candidate = {
        "hall_name": hall_name,
        "date": on_date,
        "start_time": start_time,
        "end_time": end_time,
        "start_date": start_date,
        "end_date": end_date,
    }
    try:
        _engine(db).validate_and_check(candidate, exclude_id=exclude_id, today=_today())
    except BookingError as exc:
        return Availability(available=False, code=exc.code, detail=exc.message)
    return Availability(available=True)


@app.get("/bookings/day/{day}", response_model=List[BookingRead])
@limiter.limit("60/minute")
def bookings_for_day(
    request: Request,
    day: str,
    hall_name: Optional[str] = None,
    db: Session = Depends(get_db),
) -> List[Booking]:
    return [occupant.booking for occupant in _engine(db).occupants_on(hall_name, day)]


@app.get("/bookings/{booking_id}", response_model=BookingRead)
@limiter.limit("60/minute")
def get_booking(
    request: Request,
    booking_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Booking:
    booking = _get_booking_or_404(db, booking_id)
    _ensure_owner_or_admin(current_user, booking)
    return booking


@app.put("/bookings/{booking_id}", response_model=BookingRead)
@limiter.limit("20/minute")
def update_booking(
    request: Request,
    booking_id: int,
    booking_update: BookingUpdate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Booking:
    booking = _get_booking_or_404(db, booking_id)
    _ensure_owner_or_admin(current_user, booking)

    data = booking_update.model_dump(exclude_unset=True)
    if "status" in data and not is_admin(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only admins can change booking status")
    if "email" in data or "phone" in data:
        _check_contact(data.get("email"), data.get("phone"))
    if "hall_name" in data:
        data["hall_name"] = _ensure_hall_exists(db, data["hall_name"])
    if data.get("status") is not None:
        data["status"] = data["status"].value
    else:
        data.pop("status", None)

    candidate = {name: getattr(booking, name) for name in SHAPE_FIELDS}
    candidate["id"] = booking.id
    shape_changed = False
    for name in SHAPE_FIELDS:
        if name in data and data[name] != candidate[name]:
            candidate[name] = data[name]
            shape_changed = True

    before_status = (booking.status or "UNKNOWN").upper()
    with _hall_locks_held(booking.hall_name, candidate["hall_name"]):
        _engine(db, capped=shape_changed).validate_and_check(
            candidate,
            exclude_id=booking.id,
            today=_today() if shape_changed else None,
        )
        for key, value in data.items():
            setattr(booking, key, value)
        db.commit()
        db.refresh(booking)

    after_status = (booking.status or "UNKNOWN").upper()
    if before_status != after_status:
        action = STATUS_ACTIONS.get(after_status, "UPDATE_STATUS")
        details = f"Status changed from {before_status} to {after_status}. Remarks: {booking.remarks}"
        message = booking_event("booking_status_changed", booking, previous_status=before_status)
    else:
        action = "UPDATE_DETAILS"
        details = "Updated booking details"
        message = booking_event("booking_updated", booking)
    _after_commit(background_tasks, request, current_user, message, action, details)
    return booking


@app.put("/bookings/{booking_id}/cancel-request", response_model=BookingRead)
@limiter.limit("20/minute")
def request_cancellation(
    request: Request,
    booking_id: int,
    cancel_in: CancelRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Booking:
    booking = _get_booking_or_404(db, booking_id)
    _ensure_owner_or_admin(current_user, booking)

    booking.status = BookingStatus.CANCEL_REQUESTED.value
    if cancel_in.cancellation_reason and cancel_in.cancellation_reason.strip():
        booking.cancellation_reason = cancel_in.cancellation_reason
    if cancel_in.remarks and cancel_in.remarks.strip():
        previous = booking.remarks or ""
        booking.remarks = f"{previous} | {cancel_in.remarks}" if previous.strip() else cancel_in.remarks
    db.commit()
    db.refresh(booking)

    _after_commit(
        background_tasks,
        request,
        current_user,
        booking_event("booking_cancel_requested", booking),
        "CANCEL_REQUEST",
        f"Requested cancellation. Reason: {cancel_in.cancellation_reason}",
    )
    return booking


@app.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("20/minute")
def delete_booking(
    request: Request,
    booking_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    booking = _get_booking_or_404(db, booking_id)
    _ensure_owner_or_admin(current_user, booking)

    message = booking_event("booking_deleted", booking)
    title = booking.slot_title
    with _hall_lock(booking.hall_name):
        db.delete(booking)
        db.commit()

    _after_commit(background_tasks, request, current_user, message, "DELETE_BOOKING", f"Deleted booking: {title}")


@app.get("/calendar", response_model=List[CalendarDayRead])
@limiter.limit("60/minute")
def calendar_month(
    request: Request,
    year: int,
    month: int,
    hall_name: Optional[str] = None,
    db: Session = Depends(get_db),
) -> List[CalendarDay]:
    cache_key = (normalize_hall(hall_name), year, month)
    return calendar_cache.get_or_compute(cache_key, lambda: _engine(db).calendar_summary(hall_name, year, month))


@app.get("/logs", response_model=List[AuditLogRead])
@limiter.limit("30/minute")
def audit_logs(
    request: Request,
    limit: int = Query(100, ge=1, le=500),
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> List[AuditLog]:
    return db.query(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
