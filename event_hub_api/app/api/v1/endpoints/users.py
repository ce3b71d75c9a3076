"""
User endpoints for API v1.

Registration and login are public; every other route requires a
bearer token.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from event_hub_api.app.core.errors import to_http_exception
from event_hub_api.app.core.security import create_user_token, get_current_user
from event_hub_api.app.schemas.user import TokenResponse, UserCreate, UserLogin, UserRead
from event_hub_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(user: UserCreate) -> UserRead:
    """Register a new user with the ``user`` role."""
    try:
        return await UserService.create_user(user)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/login", response_model=TokenResponse)
async def login_user(credentials: UserLogin) -> TokenResponse:
    """Authenticate a user and return a bearer token."""
    db_user = await UserService.authenticate(credentials.email, credentials.password)
    if not db_user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return TokenResponse(access_token=create_user_token(db_user.id, db_user.role))


@router.get("/me", response_model=UserRead)
async def read_current_user(current_user: dict = Depends(get_current_user)) -> UserRead:
    try:
        return await UserService.get_user(current_user["user_id"])
    except LookupError as e:
        raise to_http_exception(e)
