"""
SkillSwap Backend — Connection Route Handlers
===============================================

What:  /api/connections — the HTTP face of the connection state machine.
Who:   Every route acts as the authenticated user; the service enforces who
       may perform which transition.

Route Inventory:
    POST   /send                 none → pending              (201)
    GET    /pending              requests awaiting my answer
    PUT    /{id}/accept          pending → accepted          (recipient)
    PUT    /{id}/reject          pending → rejected          (recipient)
    GET    /accepted             my connections
    GET    /all?status=          everything, split into sent / received
    DELETE /{id}/cancel          pending → deleted           (requester)
    DELETE /{id}/remove          accepted → deleted          (either party)
    GET    /status/{userId}      relationship between me and another user
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.database import get_db_session
from skillswap.dependencies import get_current_user
from skillswap.models.connection import Connection
from skillswap.models.user import User
from skillswap.schemas.common import ErrorResponse, MessageResponse
from skillswap.schemas.connection import (
    AcceptedConnectionsResponse,
    AllConnectionsResponse,
    ConnectionActionResponse,
    ConnectionRequestCreate,
    ConnectionResponse,
    ConnectionStatusResponse,
    PendingRequestsResponse,
)
from skillswap.services.connection_service import connection_service, parse_status_filter

router = APIRouter(prefix="/api/connections", tags=["Connections"])

_transition_errors = {
    400: {"description": "Request is not in a status that allows this", "model": ErrorResponse},
    403: {"description": "You are not the party allowed to do this", "model": ErrorResponse},
    404: {"description": "Connection not found", "model": ErrorResponse},
}


def _serialize(connections: List[Connection]) -> List[ConnectionResponse]:
    return [ConnectionResponse.model_validate(c) for c in connections]


@router.post(
    "/send",
    response_model=ConnectionActionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Self request or connection already exists", "model": ErrorResponse},
        404: {"description": "Recipient not found", "model": ErrorResponse},
    },
)
async def send_connection_request(
    payload: ConnectionRequestCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionActionResponse:
    connection = await connection_service.send_request(
        db, current_user, payload.recipient_id, payload.message
    )
    return ConnectionActionResponse(
        message="Connection request sent successfully",
        connection=ConnectionResponse.model_validate(connection),
    )


@router.get("/pending", response_model=PendingRequestsResponse)
async def get_pending_requests(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PendingRequestsResponse:
    requests = await connection_service.list_pending(db, current_user.id)
    return PendingRequestsResponse(count=len(requests), requests=_serialize(requests))


@router.put("/{connection_id}/accept", response_model=ConnectionActionResponse, responses=_transition_errors)
async def accept_connection_request(
    connection_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionActionResponse:
    connection = await connection_service.accept(db, connection_id, current_user.id)
    return ConnectionActionResponse(
        message="Connection request accepted successfully",
        connection=ConnectionResponse.model_validate(connection),
    )


@router.put("/{connection_id}/reject", response_model=ConnectionActionResponse, responses=_transition_errors)
async def reject_connection_request(
    connection_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionActionResponse:
    connection = await connection_service.reject(db, connection_id, current_user.id)
    return ConnectionActionResponse(
        message="Connection request rejected successfully",
        connection=ConnectionResponse.model_validate(connection),
    )


@router.get("/accepted", response_model=AcceptedConnectionsResponse)
async def get_accepted_connections(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AcceptedConnectionsResponse:
    connections = await connection_service.list_accepted(db, current_user.id)
    return AcceptedConnectionsResponse(count=len(connections), connections=_serialize(connections))


@router.get("/all", response_model=AllConnectionsResponse)
async def get_all_connections(
    status_filter: Optional[str] = Query(
        default=None,
        alias="status",
        description="pending, accepted or rejected; other values are ignored",
    ),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AllConnectionsResponse:
    partition = await connection_service.list_all(
        db, current_user.id, parse_status_filter(status_filter)
    )
    return AllConnectionsResponse(
        count=len(partition.all),
        sent=_serialize(partition.sent),
        received=_serialize(partition.received),
        all=_serialize(partition.all),
    )


@router.delete("/{connection_id}/cancel", response_model=MessageResponse, responses=_transition_errors)
async def cancel_connection_request(
    connection_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await connection_service.cancel(db, connection_id, current_user.id)
    return MessageResponse(message="Connection request cancelled successfully")


@router.delete("/{connection_id}/remove", response_model=MessageResponse, responses=_transition_errors)
async def remove_connection(
    connection_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await connection_service.remove(db, connection_id, current_user.id)
    return MessageResponse(message="Connection removed successfully")


@router.get(
    "/status/{user_id}",
    response_model=ConnectionStatusResponse,
    response_model_exclude_none=True,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
)
async def get_connection_status(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionStatusResponse:
    view = await connection_service.get_status(db, current_user.id, user_id)
    if view.connection is None:
        return ConnectionStatusResponse(
            status="none", relationship="none", message="No connection exists"
        )
    return ConnectionStatusResponse(
        status=view.status,
        relationship=view.relationship,
        connection=ConnectionResponse.model_validate(view.connection),
    )
