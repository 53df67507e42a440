import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from pydantic import ValidationError as SchemaValidationError

from .config import Settings, get_settings, settings
from .errors import Forbidden, Unauthenticated
from .schemas import TokenClaims

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

# auto_error=False so a missing header maps onto our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


# Checked against when the email is unknown so both login failures cost one hash.
DUMMY_PASSWORD_HASH = pwd_context.hash("projecthub-no-such-user")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognised or corrupt digest; treated like a wrong password.
        logger.warning("Stored password hash could not be parsed")
        return False


def issue_token(
    claims: TokenClaims,
    config: Settings = settings,
    ttl: Optional[timedelta] = None,
) -> str:
    """Sign a bearer token carrying the user id and email."""
    now = datetime.now(timezone.utc)
    expires_at = now + (ttl if ttl is not None else timedelta(days=config.token_ttl_days))
    payload = {
        "userId": str(claims.user_id),
        "email": claims.email,
        "iat": now,
        "exp": expires_at,
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def verify_token(token: str, config: Settings = settings) -> TokenClaims:
    """Return the token's claims or raise Forbidden.

    Expired, malformed and forged tokens all produce the same error for
    the caller; only the log line tells them apart.
    """
    try:
        payload = jwt.decode(
            token,
            config.jwt_secret,
            algorithms=[config.jwt_algorithm],
            options={"require": ["exp", "userId"]},
        )
        return TokenClaims.model_validate(payload)
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected invalid token: %s", exc.__class__.__name__)
    except SchemaValidationError:
        logger.info("Rejected token with malformed claims")
    raise Forbidden("Invalid token")


def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    config: Settings = Depends(get_settings),
) -> TokenClaims:
    """Gate for protected routes: bearer token in, verified claims out."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Access token required")
    return verify_token(credentials.credentials, config)
