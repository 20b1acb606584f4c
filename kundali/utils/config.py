# kundali/utils/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_CONFIG_PATH = os.path.join("config", "defaults.yaml")

AYANAMSA_STRATEGIES = ("reference_star", "fixed")
NODE_MODELS = ("mean", "true")


class AttrDict(dict):
    """Dict that also supports attribute access: cfg.nodes and cfg['nodes'] both work."""
    def __getattr__(self, item):
        try:
            return self[item]
        except KeyError as e:
            raise AttributeError(item) from e
    def __setattr__(self, key, value):
        self[key] = value

def _to_attr(obj):
    if isinstance(obj, dict):
        return AttrDict({k: _to_attr(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_attr(x) for x in obj]
    return obj

def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    sec = data.get(key)
    if not isinstance(sec, dict):
        sec = {}
        data[key] = sec
    return sec

def load_config(path: Optional[str] = None):
    """
    Load YAML config from `path` (default: $KUNDALI_CONFIG or config/defaults.yaml)
    and apply env overrides:
      - KUNDALI_AYANAMSA   -> ayanamsa.strategy
      - KUNDALI_NODE_MODEL -> nodes.model
      - KUNDALI_DUT1       -> time.dut1_seconds
      - KUNDALI_EPHEMERIS  -> ephemeris.kernel
      - KUNDALI_DATA_DIR   -> ephemeris.data_dir
    A missing file yields the built-in defaults. Returns an AttrDict.
    """
    path = path or os.getenv("KUNDALI_CONFIG", DEFAULT_CONFIG_PATH)
    data: Dict[str, Any] = {}
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    overrides = (
        ("KUNDALI_AYANAMSA", "ayanamsa", "strategy", str),
        ("KUNDALI_NODE_MODEL", "nodes", "model", str),
        ("KUNDALI_DUT1", "time", "dut1_seconds", float),
        ("KUNDALI_EPHEMERIS", "ephemeris", "kernel", str),
        ("KUNDALI_DATA_DIR", "ephemeris", "data_dir", str),
    )
    for env, sec, key, cast in overrides:
        raw = os.getenv(env)
        if raw:
            try:
                _section(data, sec)[key] = cast(raw.strip())
            except ValueError as e:
                raise ValueError(f"{env} is not a valid {cast.__name__}: {raw!r}") from e

    return _to_attr(data)


# ───────────────────────── typed settings ─────────────────────────

@dataclass(frozen=True)
class Settings:
    ayanamsa_strategy: str = "reference_star"
    fixed_offset_deg: float = 23.853055
    precession_arcsec_per_year: float = 50.2388475
    star_name: str = "Spica"
    star_ra_hours: float = 13.419883055555556
    star_dec_degrees: float = -11.161319444444445
    star_parallax_mas: float = 0.0
    star_longitude_deg: float = 180.0
    node_model: str = "mean"
    polar_limit_deg: float = 89.9
    dut1_seconds: float = 0.0
    kernel: str = "de421.bsp"
    data_dir: str = "./data"
    enforce_jd_range: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def settings_from_config(cfg: Optional[Mapping[str, Any]] = None) -> Settings:
    """Flatten a loaded config mapping into validated Settings."""
    cfg = cfg if cfg is not None else load_config()
    base = Settings()

    aya = cfg.get("ayanamsa") or {}
    star = aya.get("star") or {}
    nodes = cfg.get("nodes") or {}
    asc = cfg.get("ascendant") or {}
    tm = cfg.get("time") or {}
    eph = cfg.get("ephemeris") or {}

    s = Settings(
        ayanamsa_strategy=str(aya.get("strategy", base.ayanamsa_strategy)).strip().lower(),
        fixed_offset_deg=float(aya.get("fixed_offset_deg", base.fixed_offset_deg)),
        precession_arcsec_per_year=float(aya.get("precession_arcsec_per_year", base.precession_arcsec_per_year)),
        star_name=str(star.get("name", base.star_name)),
        star_ra_hours=float(star.get("ra_hours", base.star_ra_hours)),
        star_dec_degrees=float(star.get("dec_degrees", base.star_dec_degrees)),
        star_parallax_mas=float(star.get("parallax_mas", base.star_parallax_mas)),
        star_longitude_deg=float(star.get("longitude_deg", base.star_longitude_deg)),
        node_model=str(nodes.get("model", base.node_model)).strip().lower(),
        polar_limit_deg=float(asc.get("polar_limit_deg", base.polar_limit_deg)),
        dut1_seconds=float(tm.get("dut1_seconds", base.dut1_seconds)),
        kernel=str(eph.get("kernel", base.kernel)),
        data_dir=str(eph.get("data_dir", base.data_dir)),
        enforce_jd_range=bool(eph.get("enforce_jd_range", base.enforce_jd_range)),
    )

    if s.ayanamsa_strategy not in AYANAMSA_STRATEGIES:
        raise ValueError(f"ayanamsa.strategy must be one of {AYANAMSA_STRATEGIES}, got {s.ayanamsa_strategy!r}")
    if s.node_model not in NODE_MODELS:
        raise ValueError(f"nodes.model must be one of {NODE_MODELS}, got {s.node_model!r}")
    if not (0.0 < s.polar_limit_deg <= 90.0):
        raise ValueError(f"ascendant.polar_limit_deg must be in (0, 90], got {s.polar_limit_deg}")
    if abs(s.dut1_seconds) > 0.9 + 1e-12:
        raise ValueError(f"time.dut1_seconds out of range (|DUT1| ≤ 0.9 s): {s.dut1_seconds}")
    return s
