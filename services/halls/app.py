from contextlib import asynccontextmanager
from typing import List, Optional

from circuitbreaker import circuit
from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import func
from sqlalchemy.orm import Session

from hallbooking.audit import record_action
from hallbooking.cache import SimpleTTLCache
from hallbooking.config import get_settings
from hallbooking.database import Base, engine, get_db
from hallbooking.dependencies import require_admin
from hallbooking.logging_middleware import add_access_log_middleware, client_ip
from hallbooking.models import Booking, Hall, User
from hallbooking.rate_limit import apply_rate_limiter, limiter
from hallbooking.schemas import HallCreate, HallRead, HallUpdate

settings = get_settings()
hall_list_cache: SimpleTTLCache[List[HallRead]] = SimpleTTLCache(ttl=settings.hall_cache_ttl)


def _hall_list_key(min_capacity: Optional[int]) -> str:
    return f"hall-list:{min_capacity or 0}"


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Halls Service", version="0.3.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    add_access_log_middleware(fastapi_app, "halls")
    return fastapi_app


app = create_app()


def _clean_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Hall name cannot be empty")
    return name.strip()


def _ensure_unique_name(db: Session, name: str, hall_id: Optional[int] = None) -> None:
    query = db.query(Hall).filter(func.lower(Hall.name) == name.lower())
    if hall_id is not None:
        query = query.filter(Hall.id != hall_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Hall '{name}' already exists")


def _get_hall_or_404(db: Session, hall_id: int) -> Hall:
    hall = db.query(Hall).filter(Hall.id == hall_id).first()
    if not hall:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hall not found")
    return hall


def _audit(background_tasks: BackgroundTasks, request: Request, admin: User, action: str, hall: Hall, details: str) -> None:
    background_tasks.add_task(
        record_action, action, admin.username, admin.role.value, hall.id, details, client_ip(request)
    )


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "halls"}


@app.post("/halls", response_model=HallRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def add_hall(
    request: Request,
    hall_in: HallCreate,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Hall:
    name = _clean_name(hall_in.name)
    _ensure_unique_name(db, name)
    hall = Hall(name=name, capacity=hall_in.capacity)
    db.add(hall)
    db.commit()
    db.refresh(hall)
    hall_list_cache.clear()
    _audit(background_tasks, request, admin, "CREATE_HALL", hall, f"Created hall {hall.name} ({hall.capacity} seats)")
    return hall


@app.get("/halls", response_model=List[HallRead])
@circuit(failure_threshold=5, recovery_timeout=60)
def list_halls(
    request: Request,
    min_capacity: Optional[int] = None,
    db: Session = Depends(get_db),
) -> List[HallRead]:
    def load() -> List[HallRead]:
        query = db.query(Hall)
        if min_capacity:
            query = query.filter(Hall.capacity >= min_capacity)
        return [HallRead.model_validate(hall) for hall in query.order_by(Hall.name).all()]

    return hall_list_cache.get_or_compute(_hall_list_key(min_capacity), load)


@app.get("/halls/{hall_id}", response_model=HallRead)
@limiter.limit("60/minute")
def get_hall(request: Request, hall_id: int, db: Session = Depends(get_db)) -> Hall:
    return _get_hall_or_404(db, hall_id)


@app.put("/halls/{hall_id}", response_model=HallRead)
@limiter.limit("15/minute")
def update_hall(
    request: Request,
    hall_id: int,
    hall_update: HallUpdate,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Hall:
    hall = _get_hall_or_404(db, hall_id)
    update_data = hall_update.model_dump(exclude_unset=True)

    if "name" in update_data:
        new_name = _clean_name(update_data["name"])
        _ensure_unique_name(db, new_name, hall.id)
        if new_name != hall.name:
            # bookings reference halls by name
            db.query(Booking).filter(func.lower(func.trim(Booking.hall_name)) == hall.name.lower()).update(
                {Booking.hall_name: new_name}, synchronize_session=False
            )
        hall.name = new_name
    if update_data.get("capacity") is not None:
        hall.capacity = update_data["capacity"]

    db.commit()
    db.refresh(hall)
    hall_list_cache.clear()
    _audit(background_tasks, request, admin, "UPDATE_HALL", hall, f"Updated hall {hall.name}")
    return hall


@app.delete("/halls/{hall_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("15/minute")
def delete_hall(
    request: Request,
    hall_id: int,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> None:
    hall = _get_hall_or_404(db, hall_id)
    in_use = db.query(Booking.id).filter(func.lower(func.trim(Booking.hall_name)) == hall.name.lower()).first()
    if in_use:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Hall has bookings and cannot be deleted")
    _audit(background_tasks, request, admin, "DELETE_HALL", hall, f"Deleted hall {hall.name}")
    db.delete(hall)
    db.commit()
    hall_list_cache.clear()
