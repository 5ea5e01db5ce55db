"""
Authentication Endpoints

    POST /auth/register   public   create a client account, returns a token
    POST /auth/login      public   exchange credentials for a token
    GET  /auth/me         private  caller's profile
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from restomatch.core.errors import BadRequest, NotFound
from restomatch.core.security import (
    Claims,
    TokenService,
    get_token_service,
    hash_password,
    verify_password,
)
from restomatch.database import get_db
from restomatch.dependencies import get_current_claims
from restomatch.models import User, UserRole
from restomatch.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
    UserSummary,
)
from restomatch.validation import IsEmail, MaxLength, MinLength, NotEmpty, validated_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

REGISTER_RULES = [
    NotEmpty("name", "Name is required"),
    MaxLength("name", 100, "Name must be at most 100 characters"),
    IsEmail("email", "Please include a valid email"),
    MinLength("password", 6, "Password must be at least 6 characters"),
]

LOGIN_RULES = [
    IsEmail("email", "Please include a valid email"),
    NotEmpty("password", "Password is required"),
]


def _auth_response(user: User, tokens: TokenService) -> AuthResponse:
    token = tokens.issue(Claims(user_id=user.id, role=user.role))
    return AuthResponse(token=token, user=UserSummary.model_validate(user))


@router.post("/register", response_model=AuthResponse)
async def register(
    body: RegisterRequest = Depends(validated_body(REGISTER_RULES, RegisterRequest)),
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Create a client account. Staff and admin accounts are created by admins."""
    email = body.email.strip().lower()

    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise BadRequest("User already exists")

    user = User(
        name=body.name.strip(),
        email=email,
        password_hash=hash_password(body.password),
        role=UserRole.CLIENT,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise BadRequest("User already exists")

    logger.info(f"Registered user #{user.id} ({user.email})")
    return _auth_response(user, tokens)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest = Depends(validated_body(LOGIN_RULES, LoginRequest)),
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    result = await db.execute(select(User).where(User.email == body.email.strip().lower()))
    user = result.scalar_one_or_none()

    if not user or not user.is_active or not verify_password(body.password, user.password_hash):
        raise BadRequest("Invalid credentials")

    logger.info(f"User #{user.id} logged in")
    return _auth_response(user, tokens)


@router.get("/me", response_model=UserResponse)
async def me(
    claims: Claims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await db.get(User, claims.user_id)
    if not user:
        raise NotFound("User not found")
    return UserResponse.model_validate(user)
