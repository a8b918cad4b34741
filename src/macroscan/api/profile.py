"""User profile API endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status

from macroscan.api.models import ProfileUpdate, profile_to_response

if TYPE_CHECKING:
    from macroscan.containers import AppContainer

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("")
async def get_profile(request: Request) -> dict[str, object]:
    """Return the profile with BMI, energy needs and recommended targets."""
    container: AppContainer = request.app.state.container
    return profile_to_response(container.profile_service.summary())


@router.put("")
async def update_profile(update: ProfileUpdate, request: Request) -> dict[str, object]:
    """Change profile fields and return the recomputed targets."""
    container: AppContainer = request.app.state.container
    container.profile_service.update(**update.model_dump())
    return profile_to_response(container.profile_service.summary())


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_profile(request: Request) -> None:
    """Forget every profile field."""
    container: AppContainer = request.app.state.container
    container.profile_service.clear()
