from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any

from elearn.models.base import new_id, require_text, utcnow


@dataclass(frozen=True, slots=True)
class Notification:
    id: str
    user_id: str
    title: str
    message: str
    type: str  # course_update|live_class|achievement|...
    created_at: datetime.datetime
    is_read: bool = False
    metadata: dict[str, Any] | None = None

    @staticmethod
    def new(
        *,
        user_id: str,
        title: str,
        message: str,
        type: str,
        metadata: dict[str, Any] | None = None,
    ) -> Notification:
        return Notification(
            id=new_id(),
            user_id=user_id,
            title=require_text("title", title),
            message=require_text("message", message),
            type=require_text("type", type),
            created_at=utcnow(),
            metadata=dict(metadata) if metadata is not None else None,
        )
