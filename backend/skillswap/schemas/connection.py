"""
SkillSwap Backend — Connection Schemas
========================================

Response envelopes mirror what the frontend already consumes:
    POST /send, PUT accept/reject  → {message, connection}
    GET /pending                   → {count, requests}
    GET /accepted                  → {count, connections}
    GET /all                       → {count, sent, received, all}
    GET /status/{userId}           → {status, relationship, connection?, message?}
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from skillswap.models.connection import CONNECTION_MESSAGE_MAX_LENGTH, ConnectionStatus
from skillswap.schemas.common import ApiModel
from skillswap.schemas.user import UserSummary


Relationship = Literal["none", "connected", "request_sent", "request_received", "rejected"]


class ConnectionRequestCreate(ApiModel):
    recipient_id: uuid.UUID
    message: Optional[str] = Field(default=None, max_length=CONNECTION_MESSAGE_MAX_LENGTH)

    @field_validator("message")
    @classmethod
    def blank_message_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ConnectionResponse(ApiModel):
    id: uuid.UUID
    requester: UserSummary
    recipient: UserSummary
    status: ConnectionStatus
    message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ConnectionActionResponse(ApiModel):
    message: str
    connection: ConnectionResponse


class PendingRequestsResponse(ApiModel):
    count: int
    requests: List[ConnectionResponse]


class AcceptedConnectionsResponse(ApiModel):
    count: int
    connections: List[ConnectionResponse]


class AllConnectionsResponse(ApiModel):
    count: int
    sent: List[ConnectionResponse]
    received: List[ConnectionResponse]
    all: List[ConnectionResponse]


class ConnectionStatusResponse(ApiModel):
    status: str
    relationship: Relationship
    connection: Optional[ConnectionResponse] = None
    message: Optional[str] = None
