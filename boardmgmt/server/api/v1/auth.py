"""
Authentication Endpoints.

Account registration and password login. A successful login returns a signed
JWT to be sent as ``Authorization: Bearer <token>`` on every other request.
"""

from fastapi import APIRouter, status

from boardmgmt.core.models.io.auth import AuthUser, LoginRequest, LoginResponse, RegisterRequest
from boardmgmt.core.models.io.common import ErrorResponse
from boardmgmt.server.services.auth import AuthService
from boardmgmt.server.services.deps import SessionDep

router = APIRouter()


@router.post(
    "/register",
    response_model=AuthUser,
    status_code=status.HTTP_201_CREATED,
    summary="Register Account",
    description="Create a BoardMember account. Other roles are granted by user administrators.",
    response_description="The created user.",
    responses={400: {"model": ErrorResponse, "description": "Invalid input or email already registered"}},
)
async def register(payload: RegisterRequest, session: SessionDep) -> AuthUser:
    """
    Register a new account.

    - **email**: Login email, must be unique
    - **password**: At least 6 characters
    """
    user = await AuthService(session).register(payload.email, payload.password, payload.first_name, payload.last_name)
    return AuthUser.model_validate(user)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log In",
    description="Exchange email and password for an access token.",
    response_description="Access token, user, role names and the effective permission matrix.",
    responses={401: {"model": ErrorResponse, "description": "Invalid email or password"}},
)
async def login(payload: LoginRequest, session: SessionDep) -> LoginResponse:
    """
    Log in with email and password.

    The response carries the token together with the user's roles and the
    module-to-bitmask permission matrix so clients can adapt their UI.
    """
    return await AuthService(session).login(payload.email, payload.password)
