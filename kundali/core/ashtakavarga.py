# kundali/core/ashtakavarga.py
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from kundali.core.constants import AV_RULES, AV_STRONG_SIGN_BINDUS, SIGNS, sign_index

__all__ = ["AshtakavargaTable", "ashtakavarga", "strong_signs"]


@dataclass(frozen=True)
class AshtakavargaTable:
    per_body: Mapping[str, Tuple[int, ...]]   # bhinnashtakavarga
    aggregate: Tuple[int, ...]                # sarvashtakavarga

    def strongest_signs(self, threshold: int = AV_STRONG_SIGN_BINDUS) -> List[Tuple[str, int]]:
        return strong_signs(self.aggregate, threshold)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bhinna": {body: list(points) for body, points in self.per_body.items()},
            "sarva": list(self.aggregate),
        }


def ashtakavarga(longitudes: Mapping[str, float]) -> AshtakavargaTable:
    """
    Score bindus for the seven planets in one pass over the rule table.

    `longitudes` must hold every contributor named in the rules (the seven
    planets and the Ascendant). Each bindu lands in the scored body's row and
    in the aggregate together.
    """
    missing = {c for rules in AV_RULES.values() for c in rules} - set(longitudes)
    if missing:
        raise KeyError(f"ashtakavarga needs positions for: {sorted(missing)}")

    signs = {name: sign_index(lon) for name, lon in longitudes.items()}
    aggregate = [0] * 12
    per_body: Dict[str, Tuple[int, ...]] = {}

    for body, rules in AV_RULES.items():
        points = [0] * 12
        for contributor, houses in rules.items():
            ref = signs[contributor]
            for p in houses:
                idx = (ref + p - 1) % 12
                points[idx] += 1
                aggregate[idx] += 1
        per_body[body] = tuple(points)

    return AshtakavargaTable(per_body=MappingProxyType(per_body), aggregate=tuple(aggregate))


def strong_signs(sarva: Sequence[int], threshold: int = AV_STRONG_SIGN_BINDUS) -> List[Tuple[str, int]]:
    """(sign, bindus) for every sign whose sarva total reaches `threshold`, in zodiac order."""
    return [(SIGNS[i], pts) for i, pts in enumerate(sarva) if pts >= threshold]
