"""Matching-Modul: Direkttausch, Rotationssuche und Batch-Prüfung."""

from .pool import StudentPool
from .direct import find_direct_partner
from .rotation import RotationSearch, RotationSearchError
from .resolver import SwapResolver
from .batch import BatchMatchChecker, any_match_map

__all__ = [
    "StudentPool",
    "find_direct_partner",
    "RotationSearch",
    "RotationSearchError",
    "SwapResolver",
    "BatchMatchChecker",
    "any_match_map",
]
