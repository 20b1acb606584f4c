# kundali/core/yoga.py
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict, List, Mapping, Tuple

from kundali.core.constants import (
    ASCENDANT,
    DIGNITIES,
    KAAL_SARPA_BODIES,
    MAHAPURUSHA_YOGAS,
    MOON_SUPPORT_BODIES,
    house_from,
    is_kendra,
    sign_index,
    wrap_deg,
)

__all__ = [
    "YogaRecord",
    "is_dignified",
    "mahapurusha_yogas",
    "gajakesari",
    "kemadruma",
    "kaal_sarpa",
    "detect_patterns",
]


@dataclass(frozen=True)
class YogaRecord:
    name: str
    description: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


_MAHAPURUSHA_DESC = (
    "A powerful Pancha Mahapurusha Yoga formed by {planet} in a strong position within a Kendra house."
)
GAJAKESARI = YogaRecord(
    "Gajakesari Yoga",
    "Jupiter located in a Kendra from the Moon, indicating wisdom, fame, and virtue.",
)
KEMADRUMA = YogaRecord(
    "Kemadruma Dosha",
    "Solitary Moon with no support, indicating periods of loneliness or struggle unless mitigated.",
)
KAAL_SARPA = YogaRecord(
    "Kaal Sarpa Dosha",
    "All planets hemmed between Rahu and Ketu, indicating karmic restrictions and potential for sudden rise/fall.",
)


def is_dignified(body: str, sign: int) -> bool:
    """Own sign or exaltation sign."""
    rule = DIGNITIES[body]
    return sign in rule["own"] or sign == rule["exalted"]


def mahapurusha_yogas(signs: Mapping[str, int]) -> List[YogaRecord]:
    asc = signs[ASCENDANT]
    out: List[YogaRecord] = []
    for body, name in MAHAPURUSHA_YOGAS:
        s = signs[body]
        if is_dignified(body, s) and is_kendra(house_from(s, asc)):
            out.append(YogaRecord(name, _MAHAPURUSHA_DESC.format(planet=body)))
    return out


def gajakesari(signs: Mapping[str, int]) -> bool:
    return is_kendra(house_from(signs["Jupiter"], signs["Moon"]))


def kemadruma(signs: Mapping[str, int]) -> bool:
    """
    No support in the 2nd/12th from the Moon, and no cancellation by a
    kendra placement from the Moon. Other classical cancellations are not
    considered.
    """
    moon = signs["Moon"]
    houses = [house_from(signs[b], moon) for b in MOON_SUPPORT_BODIES]
    if any(h in (2, 12) for h in houses):
        return False
    return not any(is_kendra(h) for h in houses)


def kaal_sarpa(longitudes: Mapping[str, float]) -> bool:
    """Every designated body on the same side of the Rahu→Ketu axis."""
    rahu = longitudes["Rahu"]
    rel_ketu = wrap_deg(longitudes["Ketu"] - rahu)
    arc1 = arc2 = True   # Rahu→Ketu, Ketu→Rahu
    for body in KAAL_SARPA_BODIES:
        if wrap_deg(longitudes[body] - rahu) < rel_ketu:
            arc2 = False
        else:
            arc1 = False
    return arc1 or arc2


def detect_patterns(longitudes: Mapping[str, float]) -> Tuple[YogaRecord, ...]:
    """Evaluate the fixed predicate list; output order equals evaluation order."""
    signs = {name: sign_index(lon) for name, lon in longitudes.items()}
    found = mahapurusha_yogas(signs)
    if gajakesari(signs):
        found.append(GAJAKESARI)
    if kemadruma(signs):
        found.append(KEMADRUMA)
    if kaal_sarpa(longitudes):
        found.append(KAAL_SARPA)
    return tuple(found)
