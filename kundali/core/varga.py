# kundali/core/varga.py
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Tuple, Union

from kundali.core.constants import SIGN_SPAN_DEG, SIGNS, sign_index, wrap_deg

__all__ = ["SCHEMES", "DivisionalChart", "varga_sign", "build_vargas"]

SCHEMES: Tuple[str, ...] = ("D1", "D2", "D3", "D4", "D7", "D9", "D10")


def _scheme_id(scheme: Union[str, int]) -> str:
    sid = f"D{scheme}" if isinstance(scheme, int) else str(scheme).strip().upper()
    if sid not in SCHEMES:
        raise ValueError(f"unsupported divisional scheme {scheme!r}; expected one of {SCHEMES}")
    return sid


def _part(pos_in_sign: float, n: int) -> int:
    # scale before dividing so exact part boundaries land in the upper part
    return min(int(pos_in_sign * n // SIGN_SPAN_DEG), n - 1)


def varga_sign(lon: float, scheme: Union[str, int]) -> int:
    """Sign index 0..11 of a sidereal longitude under a divisional scheme."""
    sid = _scheme_id(scheme)
    lon = wrap_deg(lon)
    s = sign_index(lon)
    pos = lon - s * SIGN_SPAN_DEG
    odd = s % 2 == 0  # Aries, Gemini, ... are the odd signs

    if sid == "D1":
        return s
    if sid == "D2":
        first_half = pos < 15.0
        if odd:
            return 4 if first_half else 3   # Leo : Cancer
        return 3 if first_half else 4
    if sid == "D3":
        return (s + _part(pos, 3) * 4) % 12
    if sid == "D4":
        return (s + _part(pos, 4) * 3) % 12
    if sid == "D7":
        return (s + _part(pos, 7) + (0 if odd else 6)) % 12
    if sid == "D9":
        # counted on absolute longitude, not within the sign
        return int(lon * 9.0 // SIGN_SPAN_DEG) % 12
    # D10
    return (s + _part(pos, 10) + (0 if odd else 8)) % 12


@dataclass(frozen=True)
class DivisionalChart:
    scheme: str
    signs: Mapping[str, int]

    def sign_names(self) -> Dict[str, str]:
        return {body: SIGNS[idx] for body, idx in self.signs.items()}


def build_vargas(longitudes: Mapping[str, float]) -> Mapping[str, DivisionalChart]:
    """One DivisionalChart per supported scheme for every body in `longitudes`."""
    return MappingProxyType({
        sid: DivisionalChart(
            scheme=sid,
            signs=MappingProxyType({body: varga_sign(lon, sid) for body, lon in longitudes.items()}),
        )
        for sid in SCHEMES
    })
