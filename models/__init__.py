from models.student import (
    Student, MalformedRecordError, StudentNotFoundError, parse_sections, derive_cohort,
)
from models.swap_plan import SwapStep, SwapPlan
from models.swap_request import SwapRequest, SwapHistoryEntry
from models.roster import Roster

__all__ = [
    "Student",
    "MalformedRecordError",
    "StudentNotFoundError",
    "parse_sections",
    "derive_cohort",
    "SwapStep",
    "SwapPlan",
    "SwapRequest",
    "SwapHistoryEntry",
    "Roster",
]
