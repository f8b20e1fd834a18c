# pidctrl.py
"""
Discrete PID controller with output clamping and integral anti-windup.

see http://en.wikipedia.org/wiki/PID_controller
"""

import enum
import logging
import math
import time

logger = logging.getLogger(__name__)


def clamp(value, value_min, value_max):
    return min(max(value, value_min), value_max)


class InvalidRangeError(ValueError):
    """Raised when output limits are configured with min greater than max."""

    def __init__(self, min_value, max_value):
        self.min = min_value
        self.max = max_value
        super().__init__(f"min: {min_value} is greater than max: {max_value}")


class DerivativeMode(enum.Enum):
    MEASUREMENT = "measurement"
    ERROR = "error"


class PIDController:
    """
    PID controller driven by measured values and the time elapsed between them.

    The integral gain is applied while accumulating, so ``integral`` is already
    in output units and a gain change only affects future accumulation.
    """

    def __init__(self, p: float, i: float, d: float,
                 derivative_mode: DerivativeMode = DerivativeMode.MEASUREMENT,
                 clock=time.monotonic):
        """
        Initialize the PID controller.

        Args:
            p: Proportional gain
            i: Integral gain
            d: Derivative gain
            derivative_mode: Quantity the derivative term is taken from
            clock: Monotonic time source used by ``update``
        """
        self.p = p
        self.i = i
        self.d = d
        self.setpoint = 0.0
        self.derivative_mode = DerivativeMode(derivative_mode)

        self.out_min = -math.inf
        self.out_max = math.inf

        self._clock = clock
        self.reset()

    def reset(self):
        """Reset the controller state, keeping gains, setpoint and limits."""
        self.integral = 0.0
        self.prev_value = 0.0
        self.prev_error = 0.0
        self.last_update = None
        logger.debug("controller state reset")

    def set_setpoint(self, setpoint: float) -> "PIDController":
        self.setpoint = setpoint
        return self

    def get_setpoint(self) -> float:
        return self.setpoint

    def set_gains(self, p: float, i: float, d: float) -> "PIDController":
        self.p = p
        self.i = i
        self.d = d
        return self

    def get_gains(self):
        return self.p, self.i, self.d

    def set_derivative_mode(self, mode) -> "PIDController":
        self.derivative_mode = DerivativeMode(mode)
        return self

    def get_derivative_mode(self) -> DerivativeMode:
        return self.derivative_mode

    def set_output_limits(self, out_min: float, out_max: float) -> "PIDController":
        """
        Set the output range and re-clamp the integral into it.

        Raises:
            InvalidRangeError: if ``out_min > out_max``. Prior limits are kept.
        """
        if out_min > out_max:
            raise InvalidRangeError(out_min, out_max)
        self.out_min = out_min
        self.out_max = out_max

        clamped = clamp(self.integral, self.out_min, self.out_max)
        if clamped != self.integral:
            logger.debug("integral %s re-clamped to %s", self.integral, clamped)
        self.integral = clamped
        logger.debug("output limits set to [%s, %s]", out_min, out_max)
        return self

    def get_output_limits(self):
        return self.out_min, self.out_max

    def update(self, value: float) -> float:
        """
        Same as ``update_duration`` but measures the time since the previous
        call itself. The first call uses a duration of zero.
        """
        now = self._clock()
        dt = 0.0
        if self.last_update is not None:
            dt = now - self.last_update
        self.last_update = now
        return self.update_duration(value, dt)

    def update_duration(self, value: float, dt: float) -> float:
        """
        Update the controller with a measured value and the seconds elapsed
        since the last update.

        Args:
            value: Measured process value
            dt: Elapsed time in seconds, zero is allowed

        Returns:
            float: Control output clamped to the output limits
        """
        error = self.setpoint - value

        # anti-windup: clamp before the terms are summed
        self.integral += error * dt * self.i
        self.integral = clamp(self.integral, self.out_min, self.out_max)

        derivative = 0.0
        if dt > 0:
            if self.derivative_mode is DerivativeMode.ERROR:
                derivative = (error - self.prev_error) / dt
            else:
                derivative = -(value - self.prev_value) / dt

        self.prev_value = value
        self.prev_error = error

        output = self.p * error + self.integral + self.d * derivative
        return clamp(output, self.out_min, self.out_max)

    def get_state(self):
        """Get the current controller state."""
        return {
            'p': self.p,
            'i': self.i,
            'd': self.d,
            'setpoint': self.setpoint,
            'derivative_mode': self.derivative_mode.value,
            'out_min': self.out_min,
            'out_max': self.out_max,
            'integral': self.integral,
            'prev_value': self.prev_value,
            'prev_error': self.prev_error,
        }
