"""Driver configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

MAX_STEPS_ENV = "ALGAE_MAX_STEPS"
LOG_EFFECTS_ENV = "ALGAE_LOG_EFFECTS"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"", "0", "false", "no", "off"})


@dataclass(frozen=True)
class DriveConfig:
    """Knobs for :func:`algae.driver.drive`.

    Attributes:
        max_steps: Upper bound on handled suspensions; ``None`` means no limit.
            This is a guard against runaway loops, not a timeout.
        log_effects: Log every handled operation and its reply at DEBUG level.
    """

    max_steps: int | None = None
    log_effects: bool = False

    def __post_init__(self) -> None:
        if self.max_steps is not None and self.max_steps < 0:
            raise ValueError(f"max_steps must be >= 0, got {self.max_steps}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DriveConfig:
        env = os.environ if environ is None else environ

        raw_steps = env.get(MAX_STEPS_ENV, "").strip()
        try:
            max_steps = int(raw_steps) if raw_steps else None
        except ValueError:
            raise ValueError(f"{MAX_STEPS_ENV} must be an integer, got {raw_steps!r}") from None

        raw_log = env.get(LOG_EFFECTS_ENV, "").strip().lower()
        if raw_log in _TRUTHY:
            log_effects = True
        elif raw_log in _FALSY:
            log_effects = False
        else:
            raise ValueError(f"{LOG_EFFECTS_ENV} must be a boolean flag, got {raw_log!r}")

        return cls(max_steps=max_steps, log_effects=log_effects)


DEFAULT_CONFIG = DriveConfig()

__all__ = ["DEFAULT_CONFIG", "LOG_EFFECTS_ENV", "MAX_STEPS_ENV", "DriveConfig"]
