# kundali/core/ephemeris_adapter.py
# -----------------------------------------------------------------------------
# Ephemeris port + Skyfield adapter
#
# The chart core never reaches a global ephemeris: it receives an object
# satisfying `EphemerisPort` and asks it for
#   • apparent geocentric direction vectors (GCRS axes, au, aberration applied)
#   • apparent Greenwich sidereal time (hours)
#   • apparent vectors of a custom reference star (RA/Dec at J2000)
#
# `SkyfieldEphemeris` is the production implementation (Skyfield + JPL SPK).
# Kernel and timescale are loaded lazily, once per adapter, behind a lock.
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
import math
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Tuple, runtime_checkable

from jplephem.spk import SPK

from kundali.core.errors import KundaliError

log = logging.getLogger(__name__)

Vector = Tuple[float, float, float]

# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────
EPHEMERIS_NAME_DEFAULT = "de421.bsp"

DE421_JD_MIN = 2414992.5  # 1899-12-31
DE421_JD_MAX = 2469807.5  # 2053-10-09

# Jupiter/Saturn use the system barycenter (DE421 carries no planet centers for them).
_PLANET_KEYS: Dict[str, str] = {
    "Sun": "sun",
    "Moon": "moon",
    "Mercury": "mercury",
    "Venus": "venus",
    "Mars": "mars",
    "Jupiter": "jupiter barycenter",
    "Saturn": "saturn barycenter",
}

# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────
class EphemerisError(KundaliError):
    """Categorized failure of the ephemeris provider; aborts the whole chart."""
    code = "ephemeris_unavailable"

    def __init__(self, stage: str, message: str, **context: Any):
        self.stage = stage
        self.context = context
        super().__init__(f"{stage}: {message}")

# ─────────────────────────────────────────────────────────────────────────────
# Port
# ─────────────────────────────────────────────────────────────────────────────
@runtime_checkable
class EphemerisPort(Protocol):
    """Capability the chart core needs from an ephemeris provider."""

    @property
    def source(self) -> str: ...

    def geo_vector(self, body: str, jd_tt: float) -> Vector:
        """Apparent geocentric vector of `body` (GCRS axes, au)."""
        ...

    def sidereal_time(self, jd_ut1: float) -> float:
        """Apparent Greenwich sidereal time in hours [0, 24)."""
        ...

    def star_vector(self, ra_hours: float, dec_degrees: float, jd_tt: float,
                    parallax_mas: float = 0.0) -> Vector:
        """Apparent geocentric vector of a fixed star given at J2000."""
        ...

# ─────────────────────────────────────────────────────────────────────────────
# Adapter configuration
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Config:
    kernel: str = EPHEMERIS_NAME_DEFAULT
    data_dir: str = "./data"
    enforce_jd_range: bool = True
    jd_min: float = DE421_JD_MIN
    jd_max: float = DE421_JD_MAX

    @classmethod
    def from_settings(cls, settings: Any) -> "Config":
        return cls(
            kernel=settings.kernel,
            data_dir=settings.data_dir,
            enforce_jd_range=settings.enforce_jd_range,
        )

def as_vector(xyz: Any, what: str = "vector") -> Vector:
    """Coerce a port result to a finite, non-zero 3-vector or raise EphemerisError."""
    try:
        v = tuple(float(c) for c in xyz)
    except (TypeError, ValueError) as e:
        raise EphemerisError("vector", f"provider returned no usable {what}", value=repr(xyz)) from e
    if len(v) != 3 or not all(math.isfinite(c) for c in v):
        raise EphemerisError("vector", f"provider returned a non-finite {what}", value=repr(xyz))
    if math.hypot(*v) == 0.0:
        raise EphemerisError("vector", f"provider returned a zero-length {what}", value=repr(xyz))
    return v  # type: ignore[return-value]

# ─────────────────────────────────────────────────────────────────────────────
# Skyfield adapter
# ─────────────────────────────────────────────────────────────────────────────
class SkyfieldEphemeris:
    def __init__(self, cfg: Optional[Config] = None):
        self.cfg = cfg or Config()
        self._lock = threading.Lock()
        self._ts = None
        self._kernel = None
        self._kernel_path: Optional[str] = None

    # ---- kernel I/O ---------------------------------------------------------
    def _resolve_kernel_path(self) -> Optional[str]:
        k = self.cfg.kernel
        if os.path.isfile(k):
            return k
        candidate = os.path.join(self.cfg.data_dir, k)
        return candidate if os.path.isfile(candidate) else None

    def _load(self) -> Tuple[Any, Any]:
        """Thread-safe lazy load of timescale and kernel."""
        if self._kernel is not None:
            return self._ts, self._kernel
        with self._lock:
            if self._kernel is not None:
                return self._ts, self._kernel
            from skyfield.api import Loader, load_file

            loader = Loader(self.cfg.data_dir, verbose=False)
            try:
                ts = loader.timescale(builtin=True)
                path = self._resolve_kernel_path()
                # Loader fetches the named kernel into data_dir when no local copy exists
                kernel = load_file(path) if path else loader(os.path.basename(self.cfg.kernel))
            except Exception as e:
                raise EphemerisError("kernel", f"Skyfield failed to load kernel {self.cfg.kernel!r}",
                                     error=str(e)) from e
            self._kernel_path = path or os.path.join(self.cfg.data_dir, self.cfg.kernel)
            self._ts = ts
            self._kernel = kernel
            log.info("Ephemeris kernel loaded: %s", self._kernel_path)
        return self._ts, self._kernel

    @property
    def source(self) -> str:
        name = os.path.basename(self._kernel_path or self.cfg.kernel)
        return f"skyfield:{name}"

    # ---- validation ---------------------------------------------------------
    def _check_jd_guard(self, jd: float) -> None:
        if self.cfg.enforce_jd_range and not (self.cfg.jd_min <= float(jd) <= self.cfg.jd_max):
            raise EphemerisError("validation", "Julian date outside kernel nominal span", jd=float(jd))

    def _target(self, kernel: Any, body: str) -> Any:
        key = _PLANET_KEYS.get(body)
        if key is None:
            raise EphemerisError("body", f"unknown body {body!r}")
        try:
            return kernel[key]
        except KeyError as e:
            raise EphemerisError("body", f"kernel has no segment for {body!r}", key=key) from e

    # ---- port ---------------------------------------------------------------
    def geo_vector(self, body: str, jd_tt: float) -> Vector:
        self._check_jd_guard(jd_tt)
        ts, kernel = self._load()
        target = self._target(kernel, body)
        try:
            t = ts.tt_jd(float(jd_tt))
            pos = kernel["earth"].at(t).observe(target).apparent().position.au
        except EphemerisError:
            raise
        except Exception as e:
            raise EphemerisError("observe", f"failed to observe {body}", jd_tt=float(jd_tt), error=str(e)) from e
        return as_vector(pos)

    def sidereal_time(self, jd_ut1: float) -> float:
        self._check_jd_guard(jd_ut1)
        ts, _ = self._load()
        try:
            gast = float(ts.ut1_jd(float(jd_ut1)).gast)
        except Exception as e:
            raise EphemerisError("sidereal_time", "failed to compute GAST", jd_ut1=float(jd_ut1), error=str(e)) from e
        if not math.isfinite(gast):
            raise EphemerisError("sidereal_time", "non-finite GAST", jd_ut1=float(jd_ut1))
        return gast % 24.0

    def star_vector(self, ra_hours: float, dec_degrees: float, jd_tt: float,
                    parallax_mas: float = 0.0) -> Vector:
        self._check_jd_guard(jd_tt)
        ts, kernel = self._load()
        from skyfield.api import Star

        star = Star(ra_hours=float(ra_hours), dec_degrees=float(dec_degrees),
                    parallax_mas=float(parallax_mas))
        try:
            t = ts.tt_jd(float(jd_tt))
            pos = kernel["earth"].at(t).observe(star).apparent().position.au
        except Exception as e:
            raise EphemerisError("observe", "failed to observe reference star",
                                 ra_hours=ra_hours, dec_degrees=dec_degrees, error=str(e)) from e
        return as_vector(pos)

    # ---- diagnostics --------------------------------------------------------
    def kernel_coverage_jd(self) -> Optional[Tuple[float, float]]:
        """[start, end] TDB Julian dates spanned by the kernel's segments, read without Skyfield."""
        path = self._resolve_kernel_path()
        if not path:
            return None
        try:
            with SPK.open(path) as spk:
                starts = [seg.start_jd for seg in spk.segments]
                ends = [seg.end_jd for seg in spk.segments]
        except (OSError, ValueError) as e:
            log.warning("could not read SPK coverage from %s: %s", path, e)
            return None
        if not starts:
            return None
        return float(min(starts)), float(max(ends))

    def diagnostics(self) -> Dict[str, Any]:
        path = self._resolve_kernel_path()
        coverage = self.kernel_coverage_jd()
        return {
            "kernel": self.cfg.kernel,
            "data_dir": self.cfg.data_dir,
            "kernel_path": path,
            "kernel_present": bool(path),
            "kernel_coverage_jd": list(coverage) if coverage else None,
            "loaded": self._kernel is not None,
            "enforce_jd_range": self.cfg.enforce_jd_range,
            "jd_range": [self.cfg.jd_min, self.cfg.jd_max],
        }
