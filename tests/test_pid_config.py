import json
import math

import pytest

from pid_config import (PIDConfig, apply_config, build_controller, check_ranges,
                        load_config, save_config)
from pidctrl import DerivativeMode, InvalidRangeError, PIDController


def test_save_and_load(tmp_path):
    path = tmp_path / "preset.json"
    config = PIDConfig(kp=1.2, ki=0.05, kd=0.2, setpoint=250.0,
                       out_min=-90.0, out_max=90.0, derivative_mode="error")
    save_config(config, path)

    assert json.loads(path.read_text(encoding="utf-8"))["kp"] == 1.2
    assert load_config(path) == config


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.json")


def test_load_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{kp: 1", encoding="utf-8")
    with pytest.raises(json.JSONDecodeError):
        load_config(path)


def test_from_dict_ignores_unknown_keys():
    config = PIDConfig.from_dict({"kp": 3.0, "comment": "tuned on the bench"})
    assert config == PIDConfig(kp=3.0)


def test_unknown_derivative_mode():
    with pytest.raises(ValueError):
        PIDConfig(derivative_mode="setpoint")


def test_build_controller():
    pid = build_controller(PIDConfig(kp=0.6, ki=1.2, kd=0.075, setpoint=72,
                                     out_min=0, out_max=1))
    assert pid.get_gains() == (0.6, 1.2, 0.075)
    assert pid.get_setpoint() == 72
    assert pid.get_output_limits() == (0, 1)
    assert pid.get_derivative_mode() is DerivativeMode.MEASUREMENT
    assert pid.update_duration(50, 1) == 1


def test_build_controller_unbounded():
    pid = build_controller(PIDConfig())
    assert pid.get_output_limits() == (-math.inf, math.inf)


def test_build_controller_half_bounded():
    pid = build_controller(PIDConfig(out_max=255, derivative_mode="error"))
    assert pid.get_output_limits() == (-math.inf, 255)
    assert pid.get_derivative_mode() is DerivativeMode.ERROR


def test_build_controller_swapped_limits():
    with pytest.raises(InvalidRangeError):
        build_controller(PIDConfig(out_min=100, out_max=1))


def test_half_bounded_preset_survives_save_and_apply(tmp_path):
    path = tmp_path / "preset.json"
    path.write_text(json.dumps({"kp": 2.0, "out_max": 255}), encoding="utf-8")

    config = load_config(path)
    assert config.out_min is None
    assert config.output_limits() == (-math.inf, 255)

    pid = PIDController(0, 0, 0).set_output_limits(-100, 100)
    apply_config(pid, config)
    assert pid.get_output_limits() == (-math.inf, 255)

    save_config(config, path)
    assert json.loads(path.read_text(encoding="utf-8"))["out_min"] is None


def test_apply_config_keeps_state():
    pid = PIDController(0, 1.0, 0).set_setpoint(10)
    pid.update_duration(0, 2.0)

    apply_config(pid, PIDConfig(kp=1.5, ki=0.5, setpoint=4, derivative_mode="error"))
    assert pid.integral == 20
    assert pid.prev_value == 0
    assert pid.get_gains() == (1.5, 0.5, 0.0)
    assert pid.get_setpoint() == 4
    assert pid.get_derivative_mode() is DerivativeMode.ERROR


def test_apply_config_swapped_limits_keeps_previous():
    pid = PIDController(1, 0, 0).set_output_limits(-1, 1)
    with pytest.raises(InvalidRangeError):
        apply_config(pid, PIDConfig(out_min=5, out_max=-5))
    assert pid.get_output_limits() == (-1, 1)


def test_load_non_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError, match="JSON object"):
        load_config(path)


@pytest.mark.parametrize("data", [
    {"kp": "fast"},
    {"ki": None},
    {"setpoint": [1]},
    {"out_min": "low"},
    {"kd": True},
])
def test_load_non_numeric(tmp_path, data):
    path = tmp_path / "preset.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_numbers_converted_to_float():
    config = PIDConfig.from_dict({"kp": 2, "out_max": 255})
    assert isinstance(config.kp, float)
    assert isinstance(config.out_max, float)


def test_check_ranges():
    ranges = {"kp": (0.0, 10.0), "setpoint": (0.0, 10.0)}
    check_ranges(PIDConfig(kp=10.0, setpoint=0.0), ranges)
    with pytest.raises(ValueError, match="kp"):
        check_ranges(PIDConfig(kp=50), ranges)
    with pytest.raises(ValueError, match="setpoint"):
        check_ranges(PIDConfig(setpoint=-1), ranges)
