from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from hallbooking import auth
from hallbooking.config import get_settings
from hallbooking.database import Base, engine, get_db
from hallbooking.dependencies import get_current_user, require_admin
from hallbooking.logging_middleware import add_access_log_middleware
from hallbooking.models import RoleEnum, User
from hallbooking.rate_limit import apply_rate_limiter, limiter
from hallbooking.schemas import Token, UserCreate, UserRead

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Users Service", version="0.3.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    add_access_log_middleware(fastapi_app, "users")
    return fastapi_app


app = create_app()


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "users"}


@app.post("/users/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def register_user(request: Request, user_in: UserCreate, db: Session = Depends(get_db)) -> User:
    if db.query(User).filter((User.username == user_in.username) | (User.email == user_in.email)).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username or email already exists")

    admins_exist = db.query(User).filter(User.role == RoleEnum.ADMIN).first() is not None
    if user_in.role == RoleEnum.ADMIN and admins_exist:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the first user may register as admin")
    if user_in.role == RoleEnum.DEPARTMENT and not (user_in.department and user_in.department.strip()):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Department users must name their department")

    user = User(
        name=user_in.name,
        username=user_in.username,
        email=user_in.email,
        department=user_in.department.strip() if user_in.department else None,
        role=user_in.role,
        hashed_password=auth.get_password_hash(user_in.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@app.post("/users/login", response_model=Token)
@limiter.limit("10/minute")
def login(request: Request, form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)) -> Token:
    user = auth.authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect username or password")
    return Token(access_token=auth.token_for(user))


@app.get("/users/me", response_model=UserRead)
@limiter.limit("30/minute")
def read_me(request: Request, current_user: User = Depends(get_current_user)) -> User:
    return current_user


@app.get("/users", response_model=list[UserRead])
@limiter.limit("20/minute")
def list_users(request: Request, _: User = Depends(require_admin), db: Session = Depends(get_db)) -> list[User]:
    return db.query(User).order_by(User.id).all()
