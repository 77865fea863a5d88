"""
SkillSwap Backend — Connection Query Helpers
==============================================

What:  Stateless read helpers over the `connections` table.
Why:   ConnectionService and the routes share the same pair and per-user
       lookups; keeping them as plain functions over a session makes them
       usable from anywhere a session exists.

Both directions, always:
    A connection row stores who asked whom. Every lookup here matches the
    user as requester OR recipient, so "A and B" finds the row whichever of
    them sent the request.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.models.connection import Connection, ConnectionStatus


async def get_connection_by_id(db: AsyncSession, connection_id: UUID) -> Optional[Connection]:
    return await db.get(Connection, connection_id)


async def get_connection_between(
    db: AsyncSession, user_a: UUID, user_b: UUID
) -> Optional[Connection]:
    """The single record for the unordered pair {a, b}, if any."""
    result = await db.execute(
        select(Connection).where(
            or_(
                and_(Connection.requester_id == user_a, Connection.recipient_id == user_b),
                and_(Connection.requester_id == user_b, Connection.recipient_id == user_a),
            )
        )
    )
    return result.scalars().first()


async def get_user_connections(
    db: AsyncSession,
    user_id: UUID,
    status: Optional[ConnectionStatus] = None,
) -> List[Connection]:
    """Every record the user is part of, optionally by status, newest first."""
    query = select(Connection).where(
        or_(Connection.requester_id == user_id, Connection.recipient_id == user_id)
    )
    if status is not None:
        query = query.where(Connection.status == status)
    query = query.order_by(Connection.created_at.desc(), Connection.id)

    result = await db.execute(query)
    return list(result.scalars().all())


async def get_pending_requests(db: AsyncSession, user_id: UUID) -> List[Connection]:
    """Requests waiting on this user's answer, newest first."""
    result = await db.execute(
        select(Connection)
        .where(
            Connection.recipient_id == user_id,
            Connection.status == ConnectionStatus.PENDING,
        )
        .order_by(Connection.created_at.desc(), Connection.id)
    )
    return list(result.scalars().all())
