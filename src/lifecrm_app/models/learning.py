"""Learning content models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

CONTENT_TYPES = ("video", "pdf", "announcement")


@dataclass
class LearningContentCreate:
    title: str
    description: str
    content_type: str = "announcement"
    url: str = ""
    body: str = ""


@dataclass
class LearningContent:
    id: str
    title: str
    description: str
    content_type: str
    created_at: datetime
    url: str = ""
    body: str = ""
    created_by: str = ""
