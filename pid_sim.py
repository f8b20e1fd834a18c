# pid_sim.py
from typing import NamedTuple

import numpy as np

from pidctrl import PIDController


class SimulationResult(NamedTuple):
    time: np.ndarray
    output: np.ndarray
    control: np.ndarray
    error: np.ndarray


def simulate(pid: PIDController, duration: float, dt: float = 0.01,
             tau: float = 1.0, x0: float = 0.0) -> SimulationResult:
    """
    Run the controller against a first-order plant ``tau * x' = -x + u``.

    Args:
        pid: Controller to drive, its state carries over between runs
        duration: Simulated time in seconds
        dt: Time step in seconds
        tau: Plant time constant in seconds
        x0: Initial plant output

    Returns:
        SimulationResult: plant output, control signal and error per step
    """
    time = np.arange(0, duration, dt)

    output_history = np.empty_like(time)
    control_history = np.empty_like(time)
    error_history = np.empty_like(time)

    x = x0
    for k in range(len(time)):
        error = pid.get_setpoint() - x
        u = pid.update_duration(x, dt)

        x += (-x + u) * dt / tau

        output_history[k] = x
        control_history[k] = u
        error_history[k] = error

    return SimulationResult(time, output_history, control_history, error_history)
