import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from shopsathi.config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, BCRYPT_ROUNDS, SECRET_KEY

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=['bcrypt'], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

# auto_error off: a missing header means guest, not 403
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_access_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    expires = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expires})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[int]:
    """Return the user id carried by ``token``, or None if it cannot be trusted."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        logger.warning("Expired token, continuing as guest")
        return None
    except JWTError:
        logger.warning("Invalid token, continuing as guest")
        return None
    user_id = payload.get('id')
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        logger.warning("Token without a user id, continuing as guest")
        return None
    return user_id


def get_owner_id(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Optional[int]:
    """Owner scope of the request: the authenticated user id, or None for guest.

    Credential failures never reject the request; every route stays reachable
    without a token and simply works on the guest partition.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return decode_access_token(credentials.credentials)
