"""SwapResolver – Einstiegspunkt der Tausch-Suche.

Ablauf pro Anfrage:
  1. Anfragende(n) EINMAL aus dem Speicher laden
  2. EINEN StudentPool-Schnappschuss laden (Batch des Anfragenden, ohne ihn selbst)
  3. Ziele in Prioritätsreihenfolge: erst Direkttausch, dann Rotation
  4. Erster Treffer gewinnt, sonst SwapPlan vom Typ "none"

Der Resolver verändert keine Datensätze. Zwei gleichzeitige Suchen können
denselben Partner liefern; das wird erst beim Vollziehen entschieden
(StudentStore.commit_plan).
"""

import logging
from typing import Iterable, Optional

from config.schema import MatchingConfig, SwapConfig
from matching.direct import find_direct_partner
from matching.pool import StudentPool
from matching.rotation import RotationSearch, RotationSearchError
from models.student import Student, StudentNotFoundError
from models.swap_plan import SwapPlan

logger = logging.getLogger(__name__)


class SwapResolver:
    """Findet einen Direkttausch oder eine Rotation für eine Person.

    Verwendung:
        resolver = SwapResolver(store)
        plan = resolver.find_swap("21051001", ["30", "40"])
    """

    def __init__(
        self,
        store,
        matching: Optional[MatchingConfig] = None,
        restrict_to_cohort: bool = True,
    ) -> None:
        self.store = store
        self.matching = matching or MatchingConfig()
        self.restrict_to_cohort = restrict_to_cohort

    @classmethod
    def from_config(cls, store, config: SwapConfig) -> "SwapResolver":
        return cls(store, matching=config.matching,
                   restrict_to_cohort=config.cohorts.restrict_to_cohort)

    def find_swap(
        self, requester_id: str, target_sections: Optional[Iterable[str]] = None
    ) -> SwapPlan:
        """Sucht für `requester_id` einen Tausch in eines der Ziele.

        target_sections=None → Wunschliste des Anfragenden.
        Wirft StudentNotFoundError, wenn die Matrikelnummer unbekannt ist.
        """
        requester = self.store.fetch_student(requester_id)
        if requester is None:
            raise StudentNotFoundError(requester_id)

        targets = (
            list(target_sections) if target_sections is not None
            else list(requester.desired_sections)
        )
        if self.restrict_to_cohort and requester.cohort is None:
            # Ohne Batch: Partner nur aus Datensätzen, die ebenfalls keinen Batch haben
            pool = StudentPool(
                s for s in self.store.fetch_eligible_students(exclude_id=requester.id)
                if s.cohort is None
            )
        else:
            cohort = requester.cohort if self.restrict_to_cohort else None
            pool = StudentPool.load(self.store, cohort=cohort, exclude_id=requester.id)
        return self.find_in_pool(requester, targets, pool)

    def find_in_pool(
        self, requester: Student, targets: Iterable[str], pool: StudentPool
    ) -> SwapPlan:
        """Wie find_swap, aber auf einem bereits geladenen Pool."""
        rotation = RotationSearch(self.matching)
        tried: set[str] = set()

        for raw_target in targets:
            target = str(raw_target).strip()
            if not target or target == requester.current_section or target in tried:
                logger.debug(f"Ziel übersprungen: {raw_target!r} ({requester.id})")
                continue
            tried.add(target)

            partner = find_direct_partner(pool, requester, target)
            if partner is not None:
                logger.info(f"Direkttausch: {requester.id} ↔ {partner.id} ({target})")
                return SwapPlan.direct(requester, partner, target)

            try:
                steps = rotation.find(pool, requester, target)
            except RotationSearchError as e:
                logger.warning(f"Rotationssuche abgebrochen ({requester.id} → {target}): {e}")
                continue
            if steps is not None:
                return SwapPlan.rotation(requester, steps)

        logger.info(f"Kein Tausch für {requester.id} (Ziele: {sorted(tried)})")
        return SwapPlan.none(requester.id)
