from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone
from enum import Enum

class UserRole(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"

class User(BaseModel):
    user_id: str
    username: str = Field(..., min_length=3, max_length=50)
    password_hash: str
    role: UserRole = UserRole.STUDENT
    name: Optional[str] = ""
    is_active: bool = True

    class Config:
        use_enum_values = True

class UserInfo(BaseModel):
    user_id: str
    username: str
    role: str
    name: Optional[str] = ""

class RefreshToken(BaseModel):
    """Server-side record of an issued refresh token, keyed by its jti"""
    token_id: str
    user_id: str
    expires_at: datetime
    created_at: datetime
    revoked: bool = False
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[str] = None

    @property
    def is_expired(self) -> bool:
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) > expires_at

    @property
    def is_active(self) -> bool:
        return not self.revoked and not self.is_expired

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

class RefreshTokenRequest(BaseModel):
    refresh_token: str
