# kundali/core/chart.py
"""
Chart assembler.

Runs the pipeline for one birth context against an injected ephemeris port:

    ayanamsa → body longitudes (+ nodes) → ascendant
      → vargas, dasha timeline, ashtakavarga, panchanga, yogas

and packages the result as an immutable `Chart`. Any failure aborts the
whole chart; there is no partial document.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from kundali.core.ascendant import resolve_ascendant
from kundali.core.ashtakavarga import AshtakavargaTable, ashtakavarga
from kundali.core.ayanamsa import AyanamsaReading, ayanamsa_from_settings
from kundali.core.constants import ASCENDANT, CHART_BODIES
from kundali.core.dasha import DashaPeriod, generate_dasha_timeline
from kundali.core.ephemeris_adapter import EphemerisPort
from kundali.core.panchanga import Panchanga, compute_panchanga
from kundali.core.positions import BodyPosition, resolve_positions
from kundali.core.validators import BirthContext, parse_birth_payload
from kundali.core.varga import DivisionalChart, build_vargas
from kundali.core.yoga import YogaRecord, detect_patterns
from kundali.utils.config import Settings

log = logging.getLogger(__name__)

__all__ = ["Chart", "build_chart", "generate_kundali"]


@dataclass(frozen=True)
class Chart:
    birth: BirthContext
    ayanamsa: AyanamsaReading
    node_model: str
    ephemeris_source: str
    positions: Tuple[BodyPosition, ...]
    vargas: Mapping[str, DivisionalChart]
    dashas: Tuple[DashaPeriod, ...]
    ashtakavarga: AshtakavargaTable
    panchanga: Panchanga
    yogas: Tuple[YogaRecord, ...]

    def position(self, name: str) -> BodyPosition:
        for p in self.positions:
            if p.name == name:
                return p
        raise KeyError(name)

    @property
    def longitudes(self) -> Dict[str, float]:
        return {p.name: p.longitude for p in self.positions}

    def to_dict(self) -> Dict[str, Any]:
        b = self.birth
        ts = b.timescales
        return {
            "meta": {
                "fullName": b.full_name,
                "gender": b.gender,
                "dob": b.date_local,
                "tob": b.time_local,
                "tz": b.utc_offset_hours,
                "lat": b.latitude_deg,
                "lng": b.longitude_deg,
                "utcDate": ts.to_dict()["utc"],
                "jd_utc": ts.jd_utc,
                "jd_tt": ts.jd_tt,
                "jd_ut1": ts.jd_ut1,
                "ayanamsa": {
                    "strategy": self.ayanamsa.strategy,
                    "frame": self.ayanamsa.frame,
                    "degrees": self.ayanamsa.degrees,
                    "ofDateDegrees": self.ayanamsa.of_date_degrees,
                },
                "nodeModel": self.node_model,
                "ephemeris": self.ephemeris_source,
                "warnings": list(ts.warnings),
            },
            "planets": [p.to_dict() for p in self.positions],
            "vargas": {sid: chart.sign_names() for sid, chart in self.vargas.items()},
            "dashas": [d.to_dict() for d in self.dashas],
            "ashtakavarga": self.ashtakavarga.to_dict(),
            "panchanga": self.panchanga.to_dict(),
            "yogas": [y.to_dict() for y in self.yogas],
        }


def build_chart(birth: BirthContext, ephemeris: EphemerisPort, settings: Optional[Settings] = None) -> Chart:
    settings = settings or Settings()
    ts = birth.timescales

    reading = ayanamsa_from_settings(settings).read(ephemeris, ts)
    log.debug("ayanamsa %s = %.6f° (of date %.6f°)", reading.strategy, reading.degrees, reading.of_date_degrees)

    lons = resolve_positions(ephemeris, ts, reading, node_model=settings.node_model)
    lons[ASCENDANT] = resolve_ascendant(
        ephemeris, ts, birth.latitude_deg, birth.longitude_deg, reading,
        polar_limit_deg=settings.polar_limit_deg,
    )
    frozen = MappingProxyType(dict(lons))

    chart = Chart(
        birth=birth,
        ayanamsa=reading,
        node_model=settings.node_model,
        ephemeris_source=str(getattr(ephemeris, "source", type(ephemeris).__name__)),
        positions=tuple(BodyPosition.from_longitude(name, frozen[name]) for name in CHART_BODIES),
        vargas=build_vargas(frozen),
        dashas=generate_dasha_timeline(frozen["Moon"], ts.utc),
        ashtakavarga=ashtakavarga(frozen),
        panchanga=compute_panchanga(frozen["Sun"], frozen["Moon"], ts.utc),
        yogas=detect_patterns(frozen),
    )
    log.info(
        "chart built: utc=%s asc=%.4f moon=%.4f yogas=%d",
        ts.utc.isoformat(), frozen[ASCENDANT], frozen["Moon"], len(chart.yogas),
    )
    return chart


def generate_kundali(payload: Any, ephemeris: EphemerisPort, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Validate a request body and return the chart document."""
    settings = settings or Settings()
    birth = parse_birth_payload(payload, dut1_seconds=settings.dut1_seconds)
    return build_chart(birth, ephemeris, settings).to_dict()
