"""User routes under /api/user."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_auth_service, get_current_user_id
from schemas.dto.responses.auth import UserDataResponse
from services.auth_service import AuthService

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/data", response_model=UserDataResponse)
async def get_user_data(
    user_id: str = Depends(get_current_user_id),
    auth: AuthService = Depends(get_auth_service),
) -> UserDataResponse:
    return UserDataResponse.from_user(await auth.get_user(user_id))
