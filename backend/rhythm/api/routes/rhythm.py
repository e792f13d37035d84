"""Rhythm planning API routes."""
from __future__ import annotations

from typing import Any, Dict, List, Union
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from rhythm.api.schemas.rhythm import PlanRhythmRequest, RhythmErrorResponse, RhythmResponse
from rhythm.db.deps import get_db
from rhythm.observability.metrics import log_metric
from rhythm.observability.tracing import trace
from rhythm.services.rhythm_service import build_rhythm_service, planner_timezone

router = APIRouter()


@router.post(
    "/rhythms/plan",
    response_model=RhythmResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": RhythmErrorResponse}},
    tags=["rhythms"],
)
def plan_rhythm(
    payload: PlanRhythmRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> Union[RhythmResponse, JSONResponse]:
    """Plan a day of blocks for a user and store the resulting rhythm."""
    request_id = getattr(http_request.state, "request_id", None)
    tz = planner_timezone()
    blocks = [block.to_block(tz) for block in payload.blocks]

    service = build_rhythm_service(db, day=payload.day)
    result = service.plan_rhythm(payload.user_id, blocks, request_id=request_id)
    if result.is_failure:
        error = result.error
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=RhythmErrorResponse(name=error.name, message=error.message, request_id=request_id).model_dump(),
        )
    return RhythmResponse.from_rhythm(result.value, request_id=request_id)


@router.get("/rhythms", response_model=List[RhythmResponse], tags=["rhythms"])
def list_rhythms(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the rhythms"),
    db: Session = Depends(get_db),
) -> List[RhythmResponse]:
    """List a user's stored rhythms, oldest first."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {"route": "/rhythms", "user_id": str(user_id), "request_id": request_id}

    with trace("rhythm.list", metadata=metadata, user_id=str(user_id), request_id=request_id):
        rhythms = build_rhythm_service(db).list_rhythms(user_id)

    log_metric("rhythm.list.count", len(rhythms), metadata={"user_id": str(user_id)})
    return [RhythmResponse.from_rhythm(rhythm, request_id=request_id) for rhythm in rhythms]


@router.get("/rhythms/{rhythm_id}", response_model=RhythmResponse, tags=["rhythms"])
def get_rhythm(
    rhythm_id: UUID,
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the rhythm"),
    db: Session = Depends(get_db),
) -> RhythmResponse:
    """Fetch one stored rhythm."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "rhythm.get",
        metadata={"route": f"/rhythms/{rhythm_id}", "rhythm_id": str(rhythm_id)},
        user_id=str(user_id),
        request_id=request_id,
    ):
        rhythm = build_rhythm_service(db).get_rhythm(user_id, rhythm_id)

    if rhythm is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rhythm not found")
    return RhythmResponse.from_rhythm(rhythm, request_id=request_id)


@router.delete(
    "/rhythms/{rhythm_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    tags=["rhythms"],
)
def delete_rhythm(
    rhythm_id: UUID,
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the rhythm"),
    db: Session = Depends(get_db),
) -> Response:
    """Delete a stored rhythm."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "rhythm.delete",
        metadata={"route": f"/rhythms/{rhythm_id}", "rhythm_id": str(rhythm_id)},
        user_id=str(user_id),
        request_id=request_id,
    ):
        deleted = build_rhythm_service(db).delete_rhythm(user_id, rhythm_id)

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rhythm not found")
    log_metric("rhythm.delete.success", 1, metadata={"user_id": str(user_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
