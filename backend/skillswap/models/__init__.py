"""
SkillSwap Backend — ORM Models Package
========================================

Importing this package registers every table with `Base.metadata`
(used by Alembic autogenerate and `init_models()`).
"""

from skillswap.models.skill import Skill
from skillswap.models.user import User, user_learn_skills, user_teach_skills
from skillswap.models.connection import Connection, ConnectionStatus
from skillswap.models.message import Message

__all__ = [
    "Skill",
    "User",
    "user_teach_skills",
    "user_learn_skills",
    "Connection",
    "ConnectionStatus",
    "Message",
]
