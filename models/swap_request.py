"""Tausch-Anfragen und Tausch-Historie (Pydantic v2)."""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field

from models.swap_plan import SwapStep


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SwapRequest(BaseModel):
    """Eine gespeicherte Tausch-Anfrage (Status: pending → completed/cancelled)."""

    id: int
    requester_id: str
    target_section: str
    status: Literal["pending", "completed", "cancelled"] = "pending"
    swap_type: Literal["direct", "multi"] = "direct"
    swap_path: list[SwapStep] = []
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"


class SwapHistoryEntry(BaseModel):
    """Ein vollzogener Sektionswechsel einer Person."""

    student_id: str
    from_section: str
    to_section: str
    swap_partner_id: Optional[str] = None   # Person, deren Platz übernommen wurde
    request_id: Optional[int] = None
    swap_date: datetime = Field(default_factory=_now)
