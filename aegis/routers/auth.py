from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from aegis.config import Settings
from aegis.database import get_db, get_settings
from aegis.dependencies.auth import get_current_user
from aegis.schemas.user import LoginRequest, ProfileUpdate, SignupRequest, UserPublic
from aegis.services import users
from aegis.utils.auth import create_token
from aegis.utils.response import send_success

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/signup", status_code=201)
def signup(body: SignupRequest, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    user = users.register(db, body.email, body.username, body.password)
    token = create_token(user.id, settings)
    return send_success({"token": token, "user": user.to_json()}, status_code=201)


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    user = users.authenticate(db, body.email_or_username, body.password)
    token = create_token(user.id, settings)
    return send_success({"token": token, "user": user.to_json()})


@router.get("/profile")
def get_profile(current: UserPublic = Depends(get_current_user), db: Session = Depends(get_db)):
    return send_success(users.get_profile(db, current.id).to_json())


@router.put("/profile")
def update_profile(body: ProfileUpdate, current: UserPublic = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    patch = body.model_dump(exclude_none=True)
    return send_success(users.update_profile(db, current.id, patch).to_json())
