from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from config import settings

# JWT settings
SECRET_KEY = settings.jwt_secret_key
ALGORITHM = settings.jwt_algorithm
ACCESS_TOKEN_EXPIRE_MINUTES = 7 * 24 * 60  # 7 days

ROLE_LEARNER = "learner"
ROLE_INSTRUCTOR = "instructor"
ROLES = (ROLE_LEARNER, ROLE_INSTRUCTOR)


@dataclass(frozen=True)
class Identity:
    """An authenticated principal. Anonymous requests carry ``None`` instead."""

    id: str
    display_name: str
    role: str = ROLE_LEARNER

    @property
    def is_instructor(self) -> bool:
        return self.role == ROLE_INSTRUCTOR


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def token_for(identity: Identity, expires_delta: Optional[timedelta] = None) -> str:
    return create_access_token(
        {"sub": identity.id, "username": identity.display_name, "role": identity.role},
        expires_delta=expires_delta,
    )


def verify_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


def resolve_identity(token: Optional[str]) -> Optional[Identity]:
    """Identity carried by a bearer token; invalid or missing tokens mean anonymous."""
    if not token:
        return None
    payload = verify_token(token)
    if payload is None:
        return None

    user_id = payload.get("sub")
    username = payload.get("username")
    if not user_id or not username:
        return None

    role = payload.get("role")
    if role not in ROLES:
        role = ROLE_LEARNER
    return Identity(id=str(user_id), display_name=str(username), role=role)
