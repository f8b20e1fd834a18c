# pid_config.py
import json
import logging
import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Optional

from pidctrl import DerivativeMode, PIDController

logger = logging.getLogger(__name__)

CONFIG_PATH = "pid_config.json"

NUMERIC_FIELDS = ('kp', 'ki', 'kd', 'setpoint')
BOUND_FIELDS = ('out_min', 'out_max')


def _to_float(name, value):
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass
class PIDConfig:
    """Tuning preset for a single controller. ``None`` bounds mean unbounded."""
    kp: float = 1.0
    ki: float = 0.0
    kd: float = 0.0
    setpoint: float = 0.0
    out_min: Optional[float] = None
    out_max: Optional[float] = None
    derivative_mode: str = DerivativeMode.MEASUREMENT.value

    def __post_init__(self):
        for name in NUMERIC_FIELDS:
            setattr(self, name, _to_float(name, getattr(self, name)))
        for name in BOUND_FIELDS:
            value = getattr(self, name)
            if value is not None:
                setattr(self, name, _to_float(name, value))
        # raises ValueError for unknown modes
        self.derivative_mode = DerivativeMode(self.derivative_mode).value

    @classmethod
    def from_dict(cls, data) -> "PIDConfig":
        if not isinstance(data, Mapping):
            raise ValueError(f"PID config must be a JSON object, got {type(data).__name__}")
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    def to_dict(self) -> dict:
        return asdict(self)

    def output_limits(self):
        """Output limits with missing bounds as infinities."""
        out_min = self.out_min if self.out_min is not None else -math.inf
        out_max = self.out_max if self.out_max is not None else math.inf
        return out_min, out_max


def apply_config(pid: PIDController, config: PIDConfig) -> PIDController:
    """
    Apply gains, setpoint, derivative mode and limits to an existing
    controller without resetting its integral or previous-sample state.

    Raises:
        InvalidRangeError: if the preset's bounds are swapped.
    """
    pid.set_output_limits(*config.output_limits())
    pid.set_gains(config.kp, config.ki, config.kd)
    pid.set_setpoint(config.setpoint)
    pid.set_derivative_mode(config.derivative_mode)
    return pid


def build_controller(config: PIDConfig) -> PIDController:
    return apply_config(PIDController(config.kp, config.ki, config.kd), config)


def check_ranges(config: PIDConfig, ranges: dict):
    """
    Check that each field named in ``ranges`` lies in its ``(low, high)`` range.

    Raises:
        ValueError: naming the first field out of range.
    """
    for name, (low, high) in ranges.items():
        value = getattr(config, name)
        if not low <= value <= high:
            raise ValueError(f"{name}={value} is outside [{low}, {high}]")


def load_config(path=CONFIG_PATH) -> PIDConfig:
    with open(path, 'r', encoding='utf-8') as f:
        config = PIDConfig.from_dict(json.load(f))
    logger.debug("loaded PID config from %s", path)
    return config


def save_config(config: PIDConfig, path=CONFIG_PATH):
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(config.to_dict(), f, indent=4)
    logger.debug("saved PID config to %s", path)
