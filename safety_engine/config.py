"""
Engine configuration. Defaults reproduce the observed production behaviour;
override per instance or through SAFETY_ENGINE_* environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import InvalidInput
from .models import RiskLevel

ENV_PREFIX = "SAFETY_ENGINE_"


@dataclass
class EngineConfig:
    record_caution_factors: bool = False
    verification_points: int = 1
    verification_bonus_cap: int = 10
    low_confidence_threshold: int = 50
    min_safety_level: RiskLevel = RiskLevel.CAUTION
    max_alternatives: int = 5

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        config = cls()

        def _get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value.strip() if value and value.strip() else None

        value = _get("RECORD_CAUTION")
        if value is not None:
            config.record_caution_factors = value.lower() in {"1", "true", "yes", "on"}
        value = _get("VERIFICATION_POINTS")
        if value is not None:
            config.verification_points = _int(value, "VERIFICATION_POINTS")
        value = _get("VERIFICATION_CAP")
        if value is not None:
            config.verification_bonus_cap = _int(value, "VERIFICATION_CAP")
        value = _get("LOW_CONFIDENCE")
        if value is not None:
            config.low_confidence_threshold = _int(value, "LOW_CONFIDENCE")
        value = _get("MIN_SAFETY_LEVEL")
        if value is not None:
            config.min_safety_level = RiskLevel.coerce(value)
        value = _get("MAX_ALTERNATIVES")
        if value is not None:
            config.max_alternatives = _int(value, "MAX_ALTERNATIVES")
        return config


def _int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise InvalidInput(f"{ENV_PREFIX}{name} must be an integer, got {value!r}") from None
