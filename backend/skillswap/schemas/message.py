"""
SkillSwap Backend — Chat Message Schemas
==========================================
"""

import uuid
from datetime import datetime

from pydantic import Field

from skillswap.schemas.common import ApiModel
from skillswap.schemas.user import UserSummary


MESSAGE_MAX_LENGTH = 5000


class MessageCreate(ApiModel):
    recipient_id: uuid.UUID
    content: str = Field(max_length=MESSAGE_MAX_LENGTH)


class ChatMessageResponse(ApiModel):
    id: uuid.UUID
    sender: UserSummary
    recipient: UserSummary
    content: str
    read: bool
    created_at: datetime
