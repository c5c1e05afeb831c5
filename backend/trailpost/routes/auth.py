"""
Trailpost Backend — Auth Route Handlers
=========================================

What:  POST /api/auth/register and POST /api/auth/login.
Who:   Called by the client's sign-up and sign-in screens.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from trailpost.database import commit_session, get_db_session
from trailpost.schemas.common import ErrorResponse
from trailpost.schemas.user import LoginRequest, RegisterRequest, TokenResponse
from trailpost.services.auth_service import auth_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=TokenResponse,
    responses={
        400: {"description": "Missing field or account already exists", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    token = await auth_service.register(
        db=db,
        username=body.username,
        email=body.email,
        password=body.password,
        display_name=body.display_name,
    )
    await commit_session(db)
    return token


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Exchange credentials for a bearer token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    """`username` may hold either the username or the email address."""
    return await auth_service.login(db=db, identifier=body.username, password=body.password)
