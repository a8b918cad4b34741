"""Daily intake API endpoints."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request

from macroscan.api.models import averages_to_response, intake_to_response

if TYPE_CHECKING:
    from macroscan.containers import AppContainer

HTTP_UNPROCESSABLE = 422

router = APIRouter(prefix="/daily", tags=["daily"])


def _check_range(start: date, end: date) -> None:
    if end < start:
        raise HTTPException(
            status_code=HTTP_UNPROCESSABLE, detail="end must not be before start"
        )


@router.get("")
async def list_daily(request: Request, start: date, end: date) -> dict[str, object]:
    """Return stored daily summaries between two days, newest first."""
    _check_range(start, end)
    container: AppContainer = request.app.state.container
    intakes = container.daily_intake_service.list_range(start, end)
    return {"days": [intake_to_response(intake) for intake in intakes]}


@router.get("/average")
async def average_daily(request: Request, start: date, end: date) -> dict[str, object]:
    """Return average intake over the stored days in a range."""
    _check_range(start, end)
    container: AppContainer = request.app.state.container
    return averages_to_response(container.daily_intake_service.average(start, end))


@router.get("/{day}")
async def get_daily(
    day: date, request: Request, target_calories: int | None = None
) -> dict[str, object]:
    """Return one day's summary with progress toward a calorie target.

    Without an explicit target the profile's daily target is used.
    """
    container: AppContainer = request.app.state.container
    if target_calories is None:
        target_calories = container.profile_service.daily_target_calories()
    intake = container.daily_intake_service.get(day)
    return intake_to_response(intake, target_calories)


@router.post("/{day}/recompute")
async def recompute_daily(day: date, request: Request) -> dict[str, object]:
    """Rebuild one day's summary from its scans."""
    container: AppContainer = request.app.state.container
    return intake_to_response(container.daily_intake_service.recompute(day))
