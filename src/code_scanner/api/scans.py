"""Scan API endpoints with simple token auth."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from code_scanner.api.scan_models import (
    DetectionIn,
    DetectionOut,
    RenameIn,
    ScanOut,
    lookup_label,
)
from code_scanner.domain.scans import DetectionEvent
from code_scanner.services.scan_store import PersistenceError, ScanNotFoundError

if TYPE_CHECKING:
    from code_scanner.containers import AppContainer

router = APIRouter(prefix="/scans", tags=["scans"])

_logger = logging.getLogger(__name__)


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def require_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include a valid API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _storage_failure(exc: PersistenceError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
    )


@router.post("/detections", dependencies=[Depends(require_token)])
async def post_detection(detection: DetectionIn, request: Request) -> DetectionOut:
    """Process one decoded symbol through the scan pipeline."""
    observed_at = detection.observed_at or datetime.now(tz=UTC)
    if observed_at.tzinfo is None:
        observed_at = observed_at.replace(tzinfo=UTC)
    event = DetectionEvent(
        value=detection.value,
        symbology=detection.symbology,
        observed_at=observed_at,
    )
    try:
        result = await _container(request).scan_pipeline.process(event)
    except PersistenceError as exc:
        raise _storage_failure(exc) from exc
    return DetectionOut(
        status=result.status.value,
        scan=ScanOut.from_record(result.record) if result.record else None,
        lookup=lookup_label(result.lookup),
    )


@router.post("/session/reset", dependencies=[Depends(require_token)])
async def reset_session(request: Request) -> dict[str, str]:
    """Close the scan session, forgetting the last detection."""
    await _container(request).scan_pipeline.close()
    return {"status": "ok"}


@router.get("", dependencies=[Depends(require_token)])
async def list_scans(request: Request) -> dict[str, list[ScanOut]]:
    """Return all scans, newest first."""
    try:
        records = await _container(request).scan_store.list_scans()
    except PersistenceError as exc:
        raise _storage_failure(exc) from exc
    return {"scans": [ScanOut.from_record(record) for record in records]}


@router.get("/{scan_id}", dependencies=[Depends(require_token)])
async def get_scan(scan_id: UUID, request: Request) -> ScanOut:
    """Return a single scan."""
    try:
        record = await _container(request).scan_store.get(scan_id)
    except ScanNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
    except PersistenceError as exc:
        raise _storage_failure(exc) from exc
    return ScanOut.from_record(record)


@router.patch("/{scan_id}", dependencies=[Depends(require_token)])
async def rename_scan(scan_id: UUID, body: RenameIn, request: Request) -> ScanOut:
    """Set or clear the custom name of a scan."""
    try:
        record = await _container(request).scan_store.rename(
            scan_id, body.custom_name
        )
    except ScanNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
    except PersistenceError as exc:
        raise _storage_failure(exc) from exc
    return ScanOut.from_record(record)


@router.delete(
    "/{scan_id}",
    dependencies=[Depends(require_token)],
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_scan(scan_id: UUID, request: Request) -> None:
    """Delete a scan."""
    try:
        await _container(request).scan_store.delete(scan_id)
    except PersistenceError as exc:
        raise _storage_failure(exc) from exc
    _logger.info("Deleted scan: id=%s", scan_id)
