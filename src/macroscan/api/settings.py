"""Settings API endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status

from macroscan.api.models import TargetRatioUpdate, ToggleUpdate, ratio_to_response
from macroscan.domain.ratio import InvalidRatio
from macroscan.services.settings import ALTERNATIVES_ENABLED

if TYPE_CHECKING:
    from macroscan.containers import AppContainer

TOGGLE_KEYS = frozenset({ALTERNATIVES_ENABLED})
HTTP_UNPROCESSABLE = 422

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/target-ratio")
async def get_target_ratio(request: Request) -> dict[str, int]:
    """Return the target macro ratio."""
    container: AppContainer = request.app.state.container
    return ratio_to_response(container.settings_service.get_target_ratio())


@router.put("/target-ratio")
async def set_target_ratio(
    update: TargetRatioUpdate, request: Request
) -> dict[str, int]:
    """Store a new target macro ratio."""
    container: AppContainer = request.app.state.container
    try:
        ratio = container.settings_service.set_target_ratio(
            update.carb, update.protein, update.fat
        )
    except InvalidRatio as exc:
        raise HTTPException(status_code=HTTP_UNPROCESSABLE, detail=str(exc)) from exc
    return ratio_to_response(ratio)


@router.put("/toggles/{key}")
async def set_toggle(
    key: str, update: ToggleUpdate, request: Request
) -> dict[str, object]:
    """Turn a feature on or off."""
    if key not in TOGGLE_KEYS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown toggle: {key}"
        )
    container: AppContainer = request.app.state.container
    container.settings_service.set_enabled(key, update.enabled)
    return {"key": key, "enabled": update.enabled}
