import logging
from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from dependencies import Stores, get_stores
from helpers.auth import (
    verify_password,
    decode_refresh_token,
    issue_tokens,
    get_current_user,
    TokenData
)
from models.Users import TokenResponse, RefreshTokenRequest, UserInfo

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/auth/login", response_model=TokenResponse)
async def login_user(
    form_data: OAuth2PasswordRequestForm = Depends(),
    stores: Stores = Depends(get_stores)
):
    """Authenticates user and returns JWT tokens"""
    user = await stores.user_store.get_by_username(form_data.username)

    # Check if user exists and password is correct
    if not user or not verify_password(form_data.password, user.password_hash):
        logger.info(f"Failed login attempt for {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    logger.info(f"User {user.username} logged in")
    return await issue_tokens(user, stores.refresh_token_store)

@router.post("/auth/refresh", response_model=TokenResponse)
async def refresh_token(request: RefreshTokenRequest, stores: Stores = Depends(get_stores)):
    """Rotate a refresh token: the presented token is revoked and a new pair issued"""
    payload = decode_refresh_token(request.refresh_token)

    token_id = payload.get("jti")
    if not token_id or not await stores.refresh_token_store.is_active(token_id):
        logger.info(f"Rejected refresh token for {payload.get('sub')}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token has been revoked"
        )

    user = await stores.user_store.get_by_id(payload.get("user_id", ""))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    await stores.refresh_token_store.revoke(token_id, revoked_by="rotation")
    return await issue_tokens(user, stores.refresh_token_store)

@router.post("/auth/logout")
async def logout_user(
    current_user: TokenData = Depends(get_current_user),
    stores: Stores = Depends(get_stores)
):
    """Logout user and revoke all of their refresh tokens"""
    revoked = await stores.refresh_token_store.revoke_all_for_user(current_user.user_id, revoked_by="logout")
    logger.info(f"User {current_user.username} logged out, {revoked} refresh tokens revoked")
    return {"message": "Successfully logged out", "revoked_tokens": revoked}

@router.get("/auth/me", response_model=UserInfo)
async def read_current_user(
    current_user: TokenData = Depends(get_current_user),
    stores: Stores = Depends(get_stores)
):
    user = await stores.user_store.get_by_id(current_user.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return UserInfo(user_id=user.user_id, username=user.username, role=user.role, name=user.name)
