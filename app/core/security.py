from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _truncate(secret: str) -> str:
    # bcrypt only looks at the first 72 bytes
    return secret.encode('utf-8')[:72].decode('utf-8', errors='ignore')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(_truncate(plain_password), hashed_password)


def verify_otp(plain_otp: str, hashed_otp: str) -> bool:
    if not hashed_otp:
        return False
    return pwd_context.verify(_truncate(plain_otp), hashed_otp)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(_truncate(password))


def get_otp_hash(otp: str) -> str:
    return pwd_context.hash(_truncate(otp))


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
    return encoded_jwt


def verify_token(token: str) -> Tuple[Optional[dict], Optional[str]]:
    """Decode a JWT, returning ``(payload, error)`` with error "expired" or "invalid"."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        return payload, None
    except ExpiredSignatureError:
        return None, "expired"
    except JWTError:
        return None, "invalid"
