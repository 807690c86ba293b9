from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from pwdlib import PasswordHash
from pwdlib.hashers.argon2 import Argon2Hasher
from pwdlib.hashers.bcrypt import BcryptHasher

from app.core.config import settings

password_hash = PasswordHash(
    (
        Argon2Hasher(),
        BcryptHasher(),
    )
)


ALGORITHM = "HS256"
SIGNED_ID_PURPOSE = "proof_blob"


def create_access_token(subject: str | Any, expires_delta: timedelta) -> str:
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject)}
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def create_signed_id(blob_id: str | Any, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.SIGNED_ID_EXPIRE_MINUTES)
    )
    to_encode = {"exp": expire, "sub": str(blob_id), "purpose": SIGNED_ID_PURPOSE}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def resolve_signed_id(signed_id: str) -> str | None:
    """Return the blob id carried by a signed id, or None when it is invalid."""
    try:
        payload = jwt.decode(signed_id, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    if payload.get("purpose") != SIGNED_ID_PURPOSE:
        return None
    return payload.get("sub")


def verify_password(
    plain_password: str, hashed_password: str
) -> tuple[bool, str | None]:
    return password_hash.verify_and_update(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return password_hash.hash(password)
