"""Learning content service."""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Callable

from lifecrm_app.core.permissions import ensure_can_add_learning
from lifecrm_app.core.validation import validate_content_type
from lifecrm_app.models.learning import LearningContent, LearningContentCreate
from lifecrm_app.models.user import User
from lifecrm_app.repositories.audit_repository import AuditRepository
from lifecrm_app.repositories.learning_repository import LearningRepository


class LearningService:
    """Training videos, documents and announcements for agents."""

    def __init__(
        self,
        learning_repo: LearningRepository,
        audit_repo: AuditRepository,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._learning_repo = learning_repo
        self._audit_repo = audit_repo
        self._clock = clock

    def add_content(self, payload: LearningContentCreate, actor: User | None) -> LearningContent:
        ensure_can_add_learning(actor)
        title = payload.title.strip()
        description = payload.description.strip()
        if not title or not description:
            raise ValueError("Vui lòng điền đầy đủ tiêu đề và mô tả")
        content_type = validate_content_type(payload.content_type)
        url = payload.url.strip()
        if content_type == "video" and not url:
            raise ValueError("Vui lòng nhập URL video")

        content = LearningContent(
            id=uuid.uuid4().hex,
            title=title,
            description=description,
            content_type=content_type,
            created_at=self._clock(),
            url=url,
            body=payload.body.strip(),
            created_by=actor.id,
        )
        self._learning_repo.create_content(content)
        self._audit_repo.add_log(
            "CREATE",
            "learning",
            content.id,
            json.dumps({"event": "learning added", "title": title, "type": content_type}, ensure_ascii=False),
            actor_id=actor.id,
        )
        return content

    def list_content(self, content_type: str | None = None) -> list[LearningContent]:
        if content_type:
            validate_content_type(content_type)
        return self._learning_repo.list_contents(content_type)

    def delete_content(self, content_id: str, actor: User | None) -> None:
        ensure_can_add_learning(actor)
        if self._learning_repo.delete_content(content_id) == 0:
            raise ValueError("Không tìm thấy bài học")
        self._audit_repo.add_log("DELETE", "learning", content_id, "learning deleted", actor_id=actor.id)
