"""
Model registry.

Importing this module registers every table on `Base.metadata`. Alembic,
the schema check and the test fixtures import it instead of each app.
"""

from ceo_platform.db.base_model import Base  # noqa: F401
from ceo_platform.apps.users.models import User  # noqa: F401
from ceo_platform.apps.channels.models import (  # noqa: F401
    Category,
    Channel,
    ChannelMember,
    ChannelReadStatus,
)
from ceo_platform.apps.messages.models import Message  # noqa: F401
from ceo_platform.apps.tasks.models import Task, TaskComment  # noqa: F401
from ceo_platform.apps.files.models import File, FileEntityLink  # noqa: F401

__all__ = [
    "Base",
    "User",
    "Category",
    "Channel",
    "ChannelMember",
    "ChannelReadStatus",
    "Message",
    "Task",
    "TaskComment",
    "File",
    "FileEntityLink",
]
