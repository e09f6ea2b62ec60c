"""
User endpoints for API v1.

Registration, login and "who am I".  Login returns a bearer token
valid for 24 hours; clients send it back as
``Authorization: Bearer <token>``.
"""

from fastapi import APIRouter, Depends, status

from snippr_api.app.core.dependencies import get_access_controller, get_current_caller
from snippr_api.app.schemas.user import TokenResponse, UserCredentials, UserRead
from snippr_api.app.services.access_controller import AccessController, Caller


router = APIRouter()


@router.post("/user", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: UserCredentials,
    controller: AccessController = Depends(get_access_controller),
) -> UserRead:
    """Register a new user.

    Returns HTTP 409 if an account already exists for the email
    (compared case-insensitively).
    """
    user = await controller.register(payload.email, payload.password)
    return UserRead(id=user.id, email=user.email)


@router.post("/login", response_model=TokenResponse)
async def login_user(
    payload: UserCredentials,
    controller: AccessController = Depends(get_access_controller),
) -> TokenResponse:
    """Authenticate a user and return an access token.

    Unknown emails and wrong passwords produce the same 401 response.
    """
    issued = await controller.login(payload.email, payload.password)
    return TokenResponse(access_token=issued.access_token, token_type=issued.token_type, expires_at=issued.expires_at)


@router.get("/user/me", response_model=UserRead)
async def read_current_user(caller: Caller = Depends(get_current_caller)) -> UserRead:
    return UserRead(id=caller.user_id, email=caller.email)
