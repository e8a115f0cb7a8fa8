"""Static reagent definitions consumed by the vessel model.

A catalog is pure data: each experiment supplies its own set of reagents and
the engine never hard-codes a reagent id. Definitions are validated once, at
construction, so downstream code can trust molarities, ranges and pKa pairs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional

from .errors import CatalogError, UnknownReagentError


class ReagentRole(str, Enum):
    """Chemical role a reagent plays in pH calculation."""

    STRONG_ACID = "strong_acid"
    STRONG_BASE = "strong_base"
    WEAK_ACID = "weak_acid_component"
    CONJUGATE_BASE = "conjugate_base_component"
    INDICATOR = "indicator"

    @property
    def is_conjugate_pair(self) -> bool:
        return self in (ReagentRole.WEAK_ACID, ReagentRole.CONJUGATE_BASE)


@dataclass(frozen=True)
class Reagent:
    """Immutable catalog entry.

    Attributes:
        id: Stable identifier used in commands (e.g. ``"hcl-0-1m"``).
        display_name: Label shown to the learner and used as the default
            measurement label.
        molarity: Concentration in mol L^-1; 0 for non concentration-bearing
            reagents such as indicators.
        role: :class:`ReagentRole` driving regime selection.
        min_volume_ml: Smallest volume accepted in one addition (mL).
        max_volume_ml: Largest volume accepted in one addition (mL).
        pka: pKa of the conjugate pair; required for weak-acid and
            conjugate-base components, forbidden otherwise.
    """

    id: str
    display_name: str
    molarity: float
    role: ReagentRole
    min_volume_ml: float
    max_volume_ml: float
    pka: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise CatalogError("Reagent id must be a non-empty string.")
        if not math.isfinite(self.molarity) or self.molarity < 0:
            raise CatalogError(
                f"Molarity for '{self.id}' must be finite and >= 0, got {self.molarity}"
            )
        if self.role is not ReagentRole.INDICATOR and self.molarity == 0:
            raise CatalogError(f"Reactive reagent '{self.id}' needs a positive molarity.")
        if not (0 < self.min_volume_ml <= self.max_volume_ml):
            raise CatalogError(
                f"Volume range for '{self.id}' must satisfy 0 < min <= max, "
                f"got {self.min_volume_ml}-{self.max_volume_ml}"
            )
        if self.role.is_conjugate_pair:
            if self.pka is None or not math.isfinite(self.pka):
                raise CatalogError(f"Conjugate-pair reagent '{self.id}' requires a finite pKa.")
        elif self.pka is not None:
            raise CatalogError(f"Only conjugate-pair reagents carry a pKa ('{self.id}').")

    def accepts_volume(self, volume_ml: float) -> bool:
        v = float(volume_ml)
        return math.isfinite(v) and self.min_volume_ml <= v <= self.max_volume_ml


class ReagentCatalog:
    """Read-only mapping of reagent id to :class:`Reagent`.

    Raises:
        CatalogError: On duplicate ids, or when weak-acid and conjugate-base
            components declare different pKa values.
    """

    def __init__(self, reagents: Iterable[Reagent]):
        by_id: Dict[str, Reagent] = {}
        for reagent in reagents:
            if reagent.id in by_id:
                raise CatalogError(f"Duplicate reagent id '{reagent.id}' in catalog.")
            by_id[reagent.id] = reagent
        self._reagents = by_id
        self._pair_pka = self._validate_pair_pka()

    def _validate_pair_pka(self) -> Optional[float]:
        pkas = {r.pka for r in self._reagents.values() if r.role.is_conjugate_pair}
        if len(pkas) > 1:
            raise CatalogError(
                f"Conjugate-pair components must share one pKa, got {sorted(pkas)}"
            )
        return pkas.pop() if pkas else None

    @property
    def pair_pka(self) -> Optional[float]:
        """pKa shared by the catalog's conjugate pair, or ``None`` if it has none."""
        return self._pair_pka

    def get(self, reagent_id: str) -> Reagent:
        try:
            return self._reagents[reagent_id]
        except KeyError:
            raise UnknownReagentError(
                f"Unknown reagent '{reagent_id}'. Known: {sorted(self._reagents)}"
            ) from None

    def __contains__(self, reagent_id: object) -> bool:
        return reagent_id in self._reagents

    def __iter__(self) -> Iterator[Reagent]:
        return iter(self._reagents.values())

    def __len__(self) -> int:
        return len(self._reagents)

    def ids(self) -> list[str]:
        return list(self._reagents)
