import jwt
import datetime
import logging
import os
import uuid
from typing import Optional, Dict, Any
from bcrypt import hashpw, gensalt, checkpw
from fastapi import HTTPException, Depends, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

from models.Users import RefreshToken, TokenResponse, User, UserRole
from repositories.interfaces import RefreshTokenStore

logger = logging.getLogger(__name__)

# Use environment variable for secret key
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-only-secret-key-change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")

class TokenData(BaseModel):
    sub: str  # This will store the username
    role: str
    user_id: str
    exp: Optional[datetime.datetime] = None
    type: Optional[str] = None
    jti: Optional[str] = None

    @property
    def username(self) -> str:
        return self.sub

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

def hash_password(password: str) -> str:
    """Hash a password using bcrypt"""
    return hashpw(password.encode('utf-8'), gensalt()).decode('utf-8')

def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a hashed password"""
    return checkpw(password.encode('utf-8'), hashed_password.encode('utf-8'))

def create_access_token(data: dict, expires_delta: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    """Generate a JWT access token."""
    to_encode = data.copy()
    expire = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(minutes=expires_delta)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def create_refresh_token(data: dict, token_id: str, expires_at: datetime.datetime) -> str:
    """Generate a JWT refresh token identified by token_id (the jti claim)."""
    to_encode = data.copy()
    to_encode.update({"exp": expires_at, "type": "refresh", "jti": token_id})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def _decode(token: str, expected_type: str, label: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{label} has expired"
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid {label.lower()}"
        )
    if payload.get("type") != expected_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )
    return payload

def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode a JWT token."""
    return _decode(token, "access", "Token")

def decode_refresh_token(token: str) -> Dict[str, Any]:
    """Decode a refresh token."""
    return _decode(token, "refresh", "Refresh token")

async def issue_tokens(user: User, token_store: RefreshTokenStore) -> TokenResponse:
    """Issue an access/refresh pair and record the refresh token server-side"""
    token_data = {
        "sub": user.username,
        "role": user.role,
        "user_id": user.user_id,
    }
    now = datetime.datetime.now(datetime.timezone.utc)
    record = RefreshToken(
        token_id=str(uuid.uuid4()),
        user_id=user.user_id,
        created_at=now,
        expires_at=now + datetime.timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
    )
    await token_store.create(record)

    return TokenResponse(
        access_token=create_access_token(token_data),
        refresh_token=create_refresh_token(token_data, record.token_id, record.expires_at),
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )

async def get_current_user(token: str = Depends(oauth2_scheme)) -> TokenData:
    """Get the current logged-in user from token."""
    payload = decode_access_token(token)
    return TokenData(**payload)

async def get_current_admin(current_user: TokenData = Depends(get_current_user)) -> TokenData:
    """Get the current user, requiring the admin role."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required"
        )
    return current_user

def ensure_can_act_for(user: TokenData, student_id: str) -> None:
    """Students may only act on their own records; admins on anyone's."""
    if not user.is_admin and str(user.user_id) != str(student_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized to act for this student ID"
        )
