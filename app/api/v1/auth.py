import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Form, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.mailer import send_reset_email
from app.core.security import (
    create_access_token,
    get_otp_hash,
    get_password_hash,
    verify_otp,
    verify_password,
    verify_token,
)
from app.models.token import Token
from app.models.user import User
from app.schemas.auth import (
    ChangePasswordRequest,
    ForgetPasswordRequest,
    MessageResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    VerifyOTPRequest,
)
from app.schemas.user import RegisterResponse
from app.utils.datetime_utils import as_utc

logger = logging.getLogger(__name__)

router = APIRouter()

RESET_CODE_SENT = "If that email exists, a reset code has been sent."


def get_current_user(
    authorization: Optional[str] = Header(None), db: Session = Depends(get_db)
):
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication scheme",
                headers={"WWW-Authenticate": "Bearer"},
            )
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload, error = verify_token(token)
    if error == "expired":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    elif error == "invalid":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    email: str = payload.get("sub")
    if email is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token payload invalid",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def _code_is_valid(user: Optional[User], code: str) -> bool:
    if not user or not user.reset_code or not user.reset_code_expiration:
        return False
    if as_utc(user.reset_code_expiration) < datetime.now(timezone.utc):
        return False
    return verify_otp(code, user.reset_code)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register_user(user_data: RegisterRequest, db: Session = Depends(get_db)):
    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered"
        )
    if not user_data.name.strip() or not user_data.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="All fields are required"
        )

    db_user = User(
        name=user_data.name.strip(),
        email=user_data.email,
        passwordhash=get_password_hash(user_data.password),
    )

    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Registered user {db_user.id}")
    return {"user": db_user, "message": "User created successfully"}


@router.post("/login", response_model=TokenResponse)
def login(email: str = Form(), password: str = Form(), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.passwordhash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )

    access_token = create_access_token(data={"sub": user.email})

    refresh_token = str(uuid.uuid4())
    token_record = Token(
        token=refresh_token,
        expiry_date=datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_expire_days),
        user_id=user.id,
    )
    db.add(token_record)
    db.commit()

    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
    }


@router.post("/refresh", response_model=RefreshTokenResponse)
def refresh_token(request: RefreshTokenRequest, db: Session = Depends(get_db)):
    token_record = db.query(Token).filter(Token.token == request.refresh_token).first()
    if not token_record:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Refresh token is not in database!",
        )

    if as_utc(token_record.expiry_date) < datetime.now(timezone.utc):
        db.delete(token_record)
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Refresh token was expired. Please make a new signin request.",
        )

    access_token = create_access_token(data={"sub": token_record.user.email})
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/logout", response_model=MessageResponse)
def logout(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    db.query(Token).filter(Token.user_id == current_user.id).delete()
    db.commit()
    return {"message": "Successfully logged out"}


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    password_data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not verify_password(password_data.old_password, current_user.passwordhash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Incorrect old password"
        )

    current_user.passwordhash = get_password_hash(password_data.new_password)
    db.commit()

    return {"message": "Password changed successfully"}


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(reset_data: ForgetPasswordRequest, db: Session = Depends(get_db)):
    # Same answer whether or not the account exists
    user = db.query(User).filter(User.email == reset_data.email).first()
    if not user:
        return {"message": RESET_CODE_SENT}

    reset_code = str(secrets.randbelow(1000000)).zfill(6)
    user.reset_code = get_otp_hash(reset_code)
    user.reset_code_expiration = datetime.now(timezone.utc) + timedelta(
        minutes=settings.reset_code_expire_minutes
    )
    db.commit()

    send_reset_email(reset_data.email, reset_code)

    return {"message": RESET_CODE_SENT}


@router.post("/verify-otp", response_model=MessageResponse)
def verify_reset_code(
    verify_data: VerifyOTPRequest,
    email: str = Query(...),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.email == email).first()
    if not _code_is_valid(user, verify_data.code):
        raise HTTPException(status_code=400, detail="Invalid or expired OTP")

    return {"message": "OTP verified successfully"}


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    reset_data: ResetPasswordRequest,
    email: str = Query(...),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.email == email).first()
    if not _code_is_valid(user, reset_data.code):
        raise HTTPException(status_code=400, detail="Invalid or expired OTP")

    user.passwordhash = get_password_hash(reset_data.new_password)
    user.reset_code = None
    user.reset_code_expiration = None
    db.commit()

    return {"message": "Password reset successfully"}
