from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from planelog.core.database import get_db
from planelog.services.auth_service import auth_service
from planelog.api.schemas import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new user and log them in"""
    token, refresh_token = auth_service.register(
        db, user_data.username, user_data.email, user_data.password)
    return RegisterResponse(
        message="Registration successful", token=token, refresh_token=refresh_token)


@router.post("/login", response_model=LoginResponse)
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Login and get an access/refresh token pair"""
    token, refresh_token, username = auth_service.login(
        db, credentials.email, credentials.password)
    return LoginResponse(
        message="Login successful",
        token=token,
        refresh_token=refresh_token,
        username=username,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout():
    """Tokens are stateless; the client just discards them"""
    return MessageResponse(message="Logout successful")


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(body: RefreshRequest):
    """Exchange a refresh token for a new access token"""
    return TokenResponse(token=auth_service.refresh_access_token(body.token))
