# python/polybevel/config.py
# Bevel builder configuration parsing utilities
# Exists to keep smoothing, tolerance and iteration settings in one validated structure
# RELEVANT FILES: python/polybevel/builder.py, python/polybevel/cli.py, tests/test_config.py
from __future__ import annotations

import copy
import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .events import EPSILON_FLOOR, EPSILON_FRACTION

ConfigSource = Union["BevelConfig", Mapping[str, Any], str, Path, None]

_OVERRIDE_KEYS: Dict[str, str] = {
    "maxsmoothangle": "max_smooth_angle",
    "smoothangle": "max_smooth_angle",
    "epsilonfraction": "epsilon_fraction",
    "epsilon": "epsilon_fraction",
    "epsilonfloor": "epsilon_floor",
    "iterationlimit": "iteration_limit",
    "maxiterations": "iteration_limit",
    "debug": "debug",
    "verbose": "debug",
}


def _normalize_key(value: Any) -> str:
    return "".join(
        c
        for c in str(value).strip().lower()
        if c not in {"-", "_", " ", "."}
    )


def _to_bool(value: Any, label: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        key = value.strip().lower()
        if key in {"1", "true", "yes", "on"}:
            return True
        if key in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"{label} must be a boolean, got {value!r}")


@dataclass
class BevelConfig:
    max_smooth_angle: float = 0.0
    epsilon_fraction: float = EPSILON_FRACTION
    epsilon_floor: float = EPSILON_FLOOR
    iteration_limit: Optional[int] = None
    debug: bool = False

    def to_dict(self) -> dict:
        return {
            "max_smooth_angle": self.max_smooth_angle,
            "epsilon_fraction": self.epsilon_fraction,
            "epsilon_floor": self.epsilon_floor,
            "iteration_limit": self.iteration_limit,
            "debug": self.debug,
        }

    def copy(self) -> "BevelConfig":
        return copy.deepcopy(self)

    @property
    def min_smooth_normal_dot(self) -> float:
        return math.cos(math.radians(self.max_smooth_angle))

    def validate(self) -> None:
        if not (0.0 <= self.max_smooth_angle <= 180.0):
            raise ValueError("max_smooth_angle must be within [0, 180] degrees")
        if not (0.0 < self.epsilon_fraction < 1.0):
            raise ValueError("epsilon_fraction must be within (0, 1)")
        if not (self.epsilon_floor >= 0.0) or math.isinf(self.epsilon_floor):
            raise ValueError("epsilon_floor must be finite and non-negative")
        if self.iteration_limit is not None and self.iteration_limit <= 0:
            raise ValueError("iteration_limit must be positive when set")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], default: Optional["BevelConfig"] = None) -> "BevelConfig":
        base = copy.deepcopy(default) if default is not None else cls()
        if "max_smooth_angle" in data:
            base.max_smooth_angle = float(data["max_smooth_angle"])
        if "epsilon_fraction" in data:
            base.epsilon_fraction = float(data["epsilon_fraction"])
        if "epsilon_floor" in data:
            base.epsilon_floor = float(data["epsilon_floor"])
        if "iteration_limit" in data:
            value = data["iteration_limit"]
            base.iteration_limit = None if value is None else int(value)
        if "debug" in data:
            base.debug = _to_bool(data["debug"], "debug")
        return base


def _load_from_path(path: Path) -> Mapping[str, Any]:
    suffix = path.suffix.lower()
    if suffix in {".json", ""}:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, Mapping):
            raise TypeError(f"bevel config file must contain a JSON object: {path}")
        return data
    raise ValueError(f"Unsupported bevel config file format: {path}")


def _build_override_mapping(overrides: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in overrides.items():
        target = _OVERRIDE_KEYS.get(_normalize_key(key))
        if target is None:
            raise ValueError(f"Unknown bevel config option: {key!r}")
        out[target] = value
    return out


def load_bevel_config(config: ConfigSource = None, overrides: Optional[Mapping[str, Any]] = None) -> BevelConfig:
    if isinstance(config, BevelConfig):
        cfg = config.copy()
    elif isinstance(config, Mapping):
        cfg = BevelConfig.from_mapping(config)
    elif isinstance(config, (str, Path)):
        cfg = BevelConfig.from_mapping(_load_from_path(Path(config)))
    elif config is None:
        cfg = BevelConfig()
    else:
        raise TypeError("config must be BevelConfig, mapping, path, or None")

    if overrides:
        cfg = BevelConfig.from_mapping(_build_override_mapping(overrides), cfg)
    cfg.validate()
    return cfg
