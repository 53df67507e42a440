import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..auth import (
    DUMMY_PASSWORD_HASH,
    get_current_claims,
    hash_password,
    issue_token,
    verify_password,
)
from ..config import Settings, get_settings
from ..database import get_db
from ..errors import Conflict, InvalidCredential, NotFound

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

LOGIN_FAILED = "Invalid email or password"


def _auth_response(user, config: Settings) -> schemas.AuthResponse:
    claims = schemas.TokenClaims(user_id=user.id, email=user.email)
    return schemas.AuthResponse(
        token=issue_token(claims, config),
        user=schemas.UserOut.model_validate(user),
    )


@router.post(
    "/register",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: schemas.RegisterRequest,
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
):
    if crud.get_user_by_email(db, payload.email):
        raise Conflict("Email already in use")

    user = crud.create_user(
        db,
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
    )
    logger.info("Registered user %s", user.id)
    return _auth_response(user, config)


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
):
    user = crud.get_user_by_email(db, payload.email)
    digest = user.password_hash if user else DUMMY_PASSWORD_HASH
    if not verify_password(payload.password, digest) or not user:
        logger.info("Failed login for %s", payload.email)
        raise InvalidCredential(LOGIN_FAILED)

    logger.info("User %s logged in", user.id)
    return _auth_response(user, config)


@router.get("/user", response_model=schemas.UserOut)
def current_user(
    claims: schemas.TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    user = crud.get_user(db, claims.user_id)
    if not user:
        raise NotFound("User not found")
    return user
