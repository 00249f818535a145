"""
Potluck Backend: Account Routes
================================

POST /signup   multipart form + profile image → 201 user
POST /login    form {email, password}         → 200 {token}
GET  /me       bearer token                   → 200 caller's profile

Form fields default to empty so that missing values reach UserService
and are reported as one validation_error listing every missing field.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from potluck.dependencies import get_current_identity, get_user_service, read_upload
from potluck.schemas.common import ErrorResponse
from potluck.schemas.user import LoginResponse, UserResponse
from potluck.services.tokens import Identity
from potluck.services.user_service import SignupForm, UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Accounts"])


@router.post(
    "/signup",
    response_model=UserResponse,
    status_code=201,
    responses={
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        500: {"description": "Upload or database failure", "model": ErrorResponse},
    },
    summary="Register a new user with a profile picture",
)
async def signup(
    username: str = Form(""),
    email: str = Form(""),
    date_of_birth: str = Form(""),
    password: str = Form(""),
    media: Optional[UploadFile] = File(None),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    form = SignupForm(
        username=username,
        email=email,
        date_of_birth=date_of_birth,
        password=password,
    )
    user = await users.register(form, await read_upload(media))
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Email or password missing", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Exchange email and password for a bearer token",
)
async def login(
    email: str = Form(""),
    password: str = Form(""),
    users: UserService = Depends(get_user_service),
) -> LoginResponse:
    token = await users.login(email, password)
    return LoginResponse(token=token)


@router.get("/me", response_model=UserResponse, summary="Current user's profile")
async def me(
    identity: Identity = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    return UserResponse.model_validate(await users.get_user(identity.user_id))
