"""Scan API endpoints."""

from __future__ import annotations

import logging
from datetime import datetime  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, HTTPException, Query, Request, status

from macroscan.api.models import (
    ScanUpdate,
    outcome_to_response,
    report_to_response,
    scan_to_response,
)
from macroscan.domain.validation import ValidationStatus  # noqa: TC001
from macroscan.services.errors import format_user_message
from macroscan.services.scans import DEFAULT_KEEP_COUNT, DEFAULT_LIST_LIMIT

if TYPE_CHECKING:
    from macroscan.containers import AppContainer

MAX_LIST_LIMIT = 500
HTTP_UNPROCESSABLE = 422

router = APIRouter(prefix="/scans", tags=["scans"])

_logger = logging.getLogger(__name__)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_scan(
    request: Request, captured_at: datetime | None = None
) -> dict[str, object]:
    """Analyze an uploaded image body and store the scan."""
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Upload the photo as an image/* request body.",
        )
    image_bytes = await request.body()
    if not image_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Empty image body."
        )
    container: AppContainer = request.app.state.container
    try:
        outcome = await container.scan_service.scan(image_bytes, captured_at)
    except Exception as exc:
        _logger.exception("Scan failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=format_user_message(exc),
        ) from exc
    return outcome_to_response(outcome)


@router.get("")
async def list_scans(
    request: Request,
    limit: int = DEFAULT_LIST_LIMIT,
    status_filter: ValidationStatus | None = Query(default=None, alias="status"),
) -> dict[str, object]:
    """Return the newest scans, optionally only those with one status."""
    container: AppContainer = request.app.state.container
    limit = max(1, min(limit, MAX_LIST_LIMIT))
    if status_filter is None:
        records = container.scan_service.list_recent(limit)
    else:
        records = container.scan_service.list_by_status(status_filter, limit)
    return {"scans": [scan_to_response(record) for record in records]}


@router.get("/stats")
async def scan_stats(request: Request) -> dict[str, int]:
    """Return scan counts per validation status."""
    container: AppContainer = request.app.state.container
    counts = container.scan_service.count_by_status()
    return {scan_status.value: count for scan_status, count in counts.items()}


@router.post("/cleanup")
async def cleanup_scans(
    request: Request, keep: int = DEFAULT_KEEP_COUNT
) -> dict[str, int]:
    """Delete all but the newest ``keep`` scans."""
    if keep < 0:
        raise HTTPException(
            status_code=HTTP_UNPROCESSABLE,
            detail="keep must not be negative",
        )
    container: AppContainer = request.app.state.container
    return {"deleted": container.scan_service.cleanup_old(keep)}


@router.get("/{scan_id}")
async def get_scan(scan_id: UUID, request: Request) -> dict[str, object]:
    """Return one scan."""
    container: AppContainer = request.app.state.container
    record = container.scan_service.get(scan_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return scan_to_response(record)


@router.get("/{scan_id}/report")
async def get_scan_report(scan_id: UUID, request: Request) -> dict[str, object]:
    """Return the validation report stored for a scan."""
    container: AppContainer = request.app.state.container
    report = container.scan_service.get_report(scan_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return report_to_response(report)


@router.patch("/{scan_id}")
async def update_scan(
    scan_id: UUID, update: ScanUpdate, request: Request
) -> dict[str, object]:
    """Edit a scan's display name or serving size."""
    container: AppContainer = request.app.state.container
    record = container.scan_service.update_display_fields(
        scan_id, name=update.name, serving_size=update.serving_size
    )
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return scan_to_response(record)


@router.delete("/{scan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_scan(scan_id: UUID, request: Request) -> None:
    """Delete a scan and recompute its day."""
    container: AppContainer = request.app.state.container
    if not container.scan_service.delete(scan_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
