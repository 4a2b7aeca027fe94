"""Rotationssuche: geschlossene Tauschkette mit 2–5 Personen.

Kette der Länge k über die Sektionen P0=R, P1=T, P2 … P(k-1):

    Zug 0:   Anfragende(r)  R    → T
    Zug i:   Person S_i     P_i  → P(i+1)      (1 ≤ i ≤ k-1, P_k = R)

Jede Person S_i sitzt aktuell in P_i und wünscht sich P(i+1). Die Sektionen
einer Kette sind paarweise verschieden, daher bleibt jede Platzzahl gleich.

Suchstrategie (iterative Vertiefung):
  - Längen aufsteigend (kürzeste Kette = wenigste Beteiligte zuerst)
  - pro Länge Tiefensuche über einen expliziten Stack von Teilketten;
    die Reihenfolge entspricht verschachtelten Schleifen
  - pro Position nur die ersten `candidate_cap` Personen (Matrikel aufsteigend)
  - erste vollständige Kette gewinnt

Die Begrenzung ist gewollt: eine gültige Rotation, die nur über einen
6. Kandidaten erreichbar wäre, wird nicht gefunden.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from config.schema import MatchingConfig
from matching.pool import StudentPool
from models.student import Student
from models.swap_plan import SwapStep

logger = logging.getLogger(__name__)


class RotationSearchError(Exception):
    """Inkonsistenter Zustand während der Kettensuche."""


@dataclass(frozen=True)
class _PartialChain:
    """Teilkette: bisherige Züge + bereits belegte Sektionen."""

    steps: tuple[SwapStep, ...]
    visited: frozenset[str]

    @property
    def tail(self) -> str:
        """Sektion, deren bisheriger Inhaber als Nächstes ziehen muss."""
        return self.steps[-1].to_section

    def extend(self, student: Student, to_section: str) -> "_PartialChain":
        step = SwapStep(
            from_section=student.current_section,
            to_section=to_section,
            student_id=student.id,
            student_name=student.name,
        )
        return _PartialChain(
            steps=self.steps + (step,),
            visited=self.visited | {to_section},
        )


class RotationSearch:
    """Begrenzte Suche nach einer Rotation für ein einzelnes Ziel."""

    def __init__(self, config: Optional[MatchingConfig] = None) -> None:
        self.config = config or MatchingConfig()
        # Zähler für Diagnose / Tests
        self.expanded_chains = 0

    def find(
        self, pool: StudentPool, requester: Student, target_section: str
    ) -> Optional[list[SwapStep]]:
        """Gibt die erste gefundene Kette zurück oder None.

        Nur wenn `target_section` auf der Wunschliste des Anfragenden steht.
        """
        home = requester.current_section
        if target_section == home or not requester.desires(target_section):
            return None

        cfg = self.config
        for length in range(cfg.min_rotation_length, cfg.max_rotation_length + 1):
            steps = self._search_length(pool, requester, target_section, length)
            if steps is not None:
                logger.info(
                    f"Rotation gefunden: {requester.id} → {target_section} "
                    f"({length} Personen)"
                )
                return steps
        return None

    # ── Suche pro Kettenlänge ─────────────────────────────────────────────────

    def _search_length(
        self,
        pool: StudentPool,
        requester: Student,
        target_section: str,
        length: int,
    ) -> Optional[list[SwapStep]]:
        home = requester.current_section
        opening = SwapStep(
            from_section=home,
            to_section=target_section,
            student_id=requester.id,
            student_name=requester.name,
            is_requester=True,
        )
        frontier = [_PartialChain(steps=(opening,), visited=frozenset({home, target_section}))]

        while frontier:
            chain = frontier.pop()
            self.expanded_chains += 1
            section = chain.tail

            if len(chain.steps) == length - 1:
                closer = self._closing_candidate(pool, section, home)
                if closer is not None:
                    return list(chain.extend(closer, home).steps)
                continue

            children: list[_PartialChain] = []
            for candidate in self._capped(pool.occupants(section)):
                self._check_occupancy(candidate, section)
                seen_hops: set[str] = set()
                for hop in candidate.desired_sections:
                    if hop in chain.visited or hop in seen_hops:
                        continue
                    seen_hops.add(hop)
                    children.append(chain.extend(candidate, hop))
            # Stack: umgekehrt ablegen, damit der erste Kandidat zuerst dran ist
            frontier.extend(reversed(children))

        return None

    def _closing_candidate(
        self, pool: StudentPool, section: str, home: str
    ) -> Optional[Student]:
        """Erste Person in `section`, die in die Ausgangssektion möchte."""
        closers = [s for s in pool.occupants(section) if s.desires(home)]
        for candidate in self._capped(closers):
            self._check_occupancy(candidate, section)
            return candidate
        return None

    def _capped(self, candidates) -> list[Student]:
        return list(candidates)[: self.config.candidate_cap]

    @staticmethod
    def _check_occupancy(candidate: Optional[Student], section: str) -> None:
        if candidate is None:
            raise RotationSearchError(f"Leerer Kandidat in Sektion {section}")
        if candidate.current_section != section:
            raise RotationSearchError(
                f"{candidate.id} sitzt in {candidate.current_section}, nicht in {section}"
            )
