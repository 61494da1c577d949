"""Auth routes and dependencies: login with the shared password, bearer-token teachers."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token, decode_access_token, verify_default_password
from app.db.session import get_db
from app.models.teacher import ROLE_ADMIN, Teacher
from app.schemas.auth import LoginOutSchema, LoginSchema, UserOutSchema
from app.services.teachers import find_active_by_email, get_teacher

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


async def get_current_teacher(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> Teacher:
    """Teacher behind the bearer token; 401 when missing or invalid."""
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")

    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is not valid")

    try:
        teacher_id = int(claims["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is not valid")

    teacher = await get_teacher(db, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Teacher not found")
    return teacher


async def require_admin(
    teacher: Annotated[Teacher, Depends(get_current_teacher)],
) -> Teacher:
    if teacher.role != ROLE_ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin privileges required")
    return teacher


@router.post("/login", response_model=LoginOutSchema)
async def login(
    body: LoginSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Check the shared password, then issue a token for an active teacher."""
    if not verify_default_password(body.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")

    teacher = await find_active_by_email(db, _normalize_email(body.email))
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or account is inactive")

    logger.info("Teacher %d logged in", teacher.id)
    token = create_access_token(teacher.id, extra={"email": teacher.email, "role": teacher.role})
    return LoginOutSchema(
        token=token,
        user=UserOutSchema(id=teacher.id, email=teacher.email, name=teacher.full_name, role=teacher.role),
    )
