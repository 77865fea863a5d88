"""
SkillSwap Backend — Connection Service (Request State Machine)
================================================================

What:  Send / accept / reject / cancel / remove connection requests, plus the
       per-user listings and the pairwise status lookup.
Why:   These transitions carry the only real invariants in the system: one
       record per unordered pair, and each move allowed only for the right
       party from the right status.
Who:   Called by the /api/connections routes with the authenticated user.

State machine:
    none ──send──▶ pending ──accept──▶ accepted ──remove──▶ (deleted)
                      │
                      ├──reject──▶ rejected (kept; blocks new requests for the pair)
                      └──cancel──▶ (deleted)

Guard order for every transition:
    1. Record exists            → NotFoundError (404)
    2. Actor has the right role → ForbiddenError (403)
    3. Current status permits   → InvalidStateError (400, carries the status)

Concurrency:
    Two opposite requests (A→B and B→A) racing past the existence check both
    try to INSERT; the UNIQUE (user_low_id, user_high_id) constraint admits
    one. The loser's INSERT runs in a SAVEPOINT, so it re-reads the winner
    and reports ConflictError with the winner's status.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from skillswap.models.connection import Connection, ConnectionStatus
from skillswap.models.user import User
from skillswap.services.connection_queries import (
    get_connection_between,
    get_connection_by_id,
    get_pending_requests,
    get_user_connections,
)

logger = logging.getLogger(__name__)


@dataclass
class ConnectionPartition:
    """Result of list_all(): the same records split by the user's role."""
    sent: List[Connection] = field(default_factory=list)
    received: List[Connection] = field(default_factory=list)
    all: List[Connection] = field(default_factory=list)


@dataclass
class ConnectionStatusView:
    status: str
    relationship: str
    connection: Optional[Connection] = None


def relationship_for(connection: Connection, viewer_id: UUID) -> str:
    """Relationship label of `connection` as seen by `viewer_id`."""
    if connection.status == ConnectionStatus.ACCEPTED:
        return "connected"
    if connection.status == ConnectionStatus.PENDING:
        return "request_sent" if connection.requester_id == viewer_id else "request_received"
    if connection.status == ConnectionStatus.REJECTED:
        return "rejected"
    # blocked: defined but never produced by any transition
    return "none"


def parse_status_filter(raw: Optional[str]) -> Optional[ConnectionStatus]:
    """Map a ?status= value to a status; unknown values mean "no filter"."""
    if not raw:
        return None
    try:
        return ConnectionStatus(raw.strip().lower())
    except ValueError:
        return None


class ConnectionService:
    """
    Responsibilities:
        - send_request()       none → pending
        - accept() / reject()  pending → accepted / rejected (recipient only)
        - cancel()             pending → deleted (requester only)
        - remove()             accepted → deleted (either party)
        - list_pending() / list_accepted() / list_all()
        - get_status()         pairwise status + relationship label
    """

    async def _get_or_404(self, db: AsyncSession, connection_id: UUID, label: str) -> Connection:
        connection = await get_connection_by_id(db, connection_id)
        if connection is None:
            raise NotFoundError(resource=label, resource_id=str(connection_id))
        return connection

    async def send_request(
        self,
        db: AsyncSession,
        requester: User,
        recipient_id: UUID,
        message: Optional[str] = None,
    ) -> Connection:
        recipient = await db.get(User, recipient_id)
        if recipient is None:
            raise NotFoundError(resource="recipient user", resource_id=str(recipient_id))

        if recipient.id == requester.id:
            raise ValidationError(message="Cannot send connection request to yourself")

        existing = await get_connection_between(db, requester.id, recipient.id)
        if existing is not None:
            raise ConflictError(message="Connection already exists", status=existing.status.value)

        message = (message or "").strip() or None

        connection = Connection(
            requester_id=requester.id,
            recipient_id=recipient.id,
            requester=requester,
            recipient=recipient,
            status=ConnectionStatus.PENDING,
            message=message,
        )
        try:
            async with db.begin_nested():
                db.add(connection)
                await db.flush()
        except IntegrityError as exc:
            winner = await get_connection_between(db, requester.id, recipient.id)
            logger.info(
                "Connection request %s -> %s lost a race to an existing record",
                requester.id,
                recipient.id,
            )
            raise ConflictError(
                message="Connection already exists",
                status=winner.status.value if winner is not None else None,
            ) from exc

        logger.info(
            "Connection %s requested: %s -> %s", connection.id, requester.id, recipient.id
        )
        return connection

    async def _answer(
        self,
        db: AsyncSession,
        connection_id: UUID,
        acting_user_id: UUID,
        new_status: ConnectionStatus,
        verb: str,
    ) -> Connection:
        connection = await self._get_or_404(db, connection_id, "connection request")

        if connection.recipient_id != acting_user_id:
            raise ForbiddenError(message=f"You can only {verb} requests sent to you")

        if connection.status != ConnectionStatus.PENDING:
            raise InvalidStateError(
                message="Connection request is not pending",
                status=connection.status.value,
            )

        connection.status = new_status
        await db.flush()

        logger.info("Connection %s %s by %s", connection.id, new_status.value, acting_user_id)
        return connection

    async def accept(self, db: AsyncSession, connection_id: UUID, acting_user_id: UUID) -> Connection:
        return await self._answer(db, connection_id, acting_user_id, ConnectionStatus.ACCEPTED, "accept")

    async def reject(self, db: AsyncSession, connection_id: UUID, acting_user_id: UUID) -> Connection:
        return await self._answer(db, connection_id, acting_user_id, ConnectionStatus.REJECTED, "reject")

    async def cancel(self, db: AsyncSession, connection_id: UUID, acting_user_id: UUID) -> None:
        connection = await self._get_or_404(db, connection_id, "connection request")

        if connection.requester_id != acting_user_id:
            raise ForbiddenError(message="You can only cancel requests you sent")

        if connection.status != ConnectionStatus.PENDING:
            raise InvalidStateError(
                message="Connection request is not pending",
                status=connection.status.value,
            )

        await db.delete(connection)
        await db.flush()
        logger.info("Connection %s cancelled by %s", connection_id, acting_user_id)

    async def remove(self, db: AsyncSession, connection_id: UUID, acting_user_id: UUID) -> None:
        connection = await self._get_or_404(db, connection_id, "connection")

        if not connection.involves(acting_user_id):
            raise ForbiddenError(message="You can only remove connections you are part of")

        if connection.status != ConnectionStatus.ACCEPTED:
            raise InvalidStateError(
                message="Connection is not accepted",
                status=connection.status.value,
            )

        await db.delete(connection)
        await db.flush()
        logger.info("Connection %s removed by %s", connection_id, acting_user_id)

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_pending(self, db: AsyncSession, user_id: UUID) -> List[Connection]:
        return await get_pending_requests(db, user_id)

    async def list_accepted(self, db: AsyncSession, user_id: UUID) -> List[Connection]:
        return await get_user_connections(db, user_id, ConnectionStatus.ACCEPTED)

    async def list_all(
        self, db: AsyncSession, user_id: UUID, status: Optional[ConnectionStatus] = None
    ) -> ConnectionPartition:
        connections = await get_user_connections(db, user_id, status)
        return ConnectionPartition(
            sent=[c for c in connections if c.requester_id == user_id],
            received=[c for c in connections if c.recipient_id == user_id],
            all=connections,
        )

    async def get_status(
        self, db: AsyncSession, current_user_id: UUID, other_user_id: UUID
    ) -> ConnectionStatusView:
        if await db.get(User, other_user_id) is None:
            raise NotFoundError(resource="user", resource_id=str(other_user_id))

        connection = await get_connection_between(db, current_user_id, other_user_id)
        if connection is None:
            return ConnectionStatusView(status="none", relationship="none")

        return ConnectionStatusView(
            status=connection.status.value,
            relationship=relationship_for(connection, current_user_id),
            connection=connection,
        )


# Singleton instance — stateless, safe to share
connection_service = ConnectionService()
