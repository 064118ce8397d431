"""Landing generation endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    Header,
    HTTPException,
    Request,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from fastapi.responses import FileResponse, HTMLResponse

from landing_forge.api.models import CreateLandingBody, SessionStatus
from landing_forge.config import parse_owner_id
from landing_forge.domain.sessions import LandingRequest
from landing_forge.errors import (
    AssemblyInProgressError,
    GenerationError,
    SessionLimitError,
)

if TYPE_CHECKING:
    from landing_forge.containers import AppContainer
    from landing_forge.services.sessions import GenerationSession

router = APIRouter(prefix="/landings", tags=["landings"])

_logger = logging.getLogger(__name__)


async def require_owner(x_owner_id: str | None = Header(default=None)) -> int:
    """Resolve the requesting owner from the X-Owner-Id header."""
    owner_id = parse_owner_id(x_owner_id)
    if owner_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return owner_id


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _status(session: GenerationSession) -> SessionStatus:
    return SessionStatus(
        session_id=session.id,
        state=session.state.value,
        progress=session.progress,
        error=session.last_error,
        archive_location=session.archive_location,
        preview_location=session.preview_location,
    )


async def _run_generation(
    container: AppContainer, session: GenerationSession, request: LandingRequest
) -> None:
    try:
        await container.orchestrator.run(session, request)
    except GenerationError as exc:
        _logger.warning("Generation finished with error: session=%s error=%s", session.id, exc)


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def create_landing(
    body: CreateLandingBody,
    request: Request,
    background_tasks: BackgroundTasks,
    owner_id: int = Depends(require_owner),
) -> SessionStatus:
    """Start generating a landing in the background."""
    container = _container(request)
    try:
        screenshot = body.screenshot_bytes()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    try:
        session = container.session_registry.create(owner_id)
    except SessionLimitError as exc:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc)
        ) from exc

    landing_request = LandingRequest(
        prompt=body.prompt,
        reference_image=screenshot,
        prizes=body.prizes,
        offer_url=body.offer_url,
        language=body.language,
    )
    background_tasks.add_task(_run_generation, container, session, landing_request)
    return _status(session)


@router.get("")
async def list_landings(
    request: Request, owner_id: int = Depends(require_owner)
) -> dict[str, object]:
    """Return the owner's stored landings."""
    landings = await _container(request).assembler.list_landings(owner_id)
    return {
        "landings": [
            landing.metadata.model_dump(mode="json", by_alias=True)
            for landing in landings
        ]
    }


@router.get("/{session_id}")
async def get_landing_status(
    session_id: str, request: Request, owner_id: int = Depends(require_owner)
) -> SessionStatus:
    """Return the state of a generation session."""
    session = _container(request).session_registry.get(session_id)
    if session is None or session.owner_id != owner_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return _status(session)


@router.get("/{session_id}/preview", response_class=HTMLResponse)
async def preview_landing(
    session_id: str, request: Request, owner_id: int = Depends(require_owner)
) -> HTMLResponse:
    """Return the assembled landing HTML."""
    markup = await _container(request).assembler.get_landing_markup(
        session_id, owner_id
    )
    if markup is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return HTMLResponse(markup)


@router.get("/{session_id}/download")
async def download_landing(
    session_id: str, request: Request, owner_id: int = Depends(require_owner)
) -> FileResponse:
    """Return the landing ZIP archive."""
    archive = _container(request).assembler.get_archive_path(session_id, owner_id)
    if archive is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return FileResponse(
        archive, media_type="application/zip", filename=f"landing-{session_id}.zip"
    )


@router.delete("/{session_id}")
async def delete_landing(
    session_id: str, request: Request, owner_id: int = Depends(require_owner)
) -> dict[str, str]:
    """Delete a stored landing."""
    container = _container(request)
    try:
        deleted = await container.assembler.delete_landing(session_id, owner_id)
    except AssemblyInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    session = container.session_registry.get(session_id)
    if session is not None and session.owner_id == owner_id:
        container.session_registry.delete(session_id)
    return {"status": "deleted"}


@router.websocket("/{session_id}/events")
async def landing_events(websocket: WebSocket, session_id: str) -> None:
    """Stream session events until the session finishes."""
    container: AppContainer = websocket.app.state.container
    owner_id = parse_owner_id(websocket.headers.get("x-owner-id"))
    session = container.session_registry.get(session_id)
    if owner_id is None or session is None or session.owner_id != owner_id:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    subscription = session.subscribe()
    try:
        await websocket.send_json(_status(session).model_dump())
        while not session.is_terminal or not subscription.queue.empty():
            event = await subscription.next_event()
            await websocket.send_json(event.to_payload())
            if event.state.is_terminal:
                break
        await websocket.close()
    except WebSocketDisconnect:
        _logger.info("Event stream closed by client: session=%s", session_id)
    finally:
        subscription.close()
