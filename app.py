import logging
import traceback

import streamlit as st
import matplotlib.pyplot as plt

# ==============================
# STREAMLIT PAGE SETUP
# ==============================
st.set_page_config(
    page_title="PID Controller",
    layout="wide"
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s"
)
logger = logging.getLogger("pidctrl.app")

st.title("PID Controller")
st.write("Interactive tuning of a PID controller against a first-order plant")

# ==============================
# SAFE IMPORT OF PID CONTROLLER
# ==============================
try:
    from pidctrl import DerivativeMode, InvalidRangeError
    from pid_config import (CONFIG_PATH, PIDConfig, apply_config, build_controller,
                            check_ranges, load_config, save_config)
    from pid_sim import simulate
except Exception:
    st.error("❌ Failed to import the PID controller modules")
    st.code(traceback.format_exc())
    st.stop()

# (min, max, step) of each slider
SLIDER_RANGES = {
    "kp": (0.0, 10.0, 0.1),
    "ki": (0.0, 5.0, 0.05),
    "kd": (0.0, 5.0, 0.05),
    "setpoint": (0.0, 10.0, 0.1),
}

# ==============================
# PRESET
# ==============================
if "preset" not in st.session_state:
    try:
        preset = load_config()
        check_ranges(preset, {k: r[:2] for k, r in SLIDER_RANGES.items()})
        logger.info("Preset loaded from %s", CONFIG_PATH)
    except FileNotFoundError:
        preset = PIDConfig()
    except ValueError as e:
        logger.warning("Ignoring invalid preset %s: %s", CONFIG_PATH, e)
        st.warning(f"Ignoring invalid preset `{CONFIG_PATH}`: {e}")
        preset = PIDConfig()
    st.session_state.preset = preset

preset = st.session_state.preset

# ==============================
# SIDEBAR CONTROLS
# ==============================
st.sidebar.header("PID Parameters")


def preset_slider(label, name):
    low, high, step = SLIDER_RANGES[name]
    return st.sidebar.slider(label, low, high, getattr(preset, name), step)


kp = preset_slider("Kp (Proportional)", "kp")
ki = preset_slider("Ki (Integral)", "ki")
kd = preset_slider("Kd (Derivative)", "kd")

mode = st.sidebar.radio(
    "Derivative on",
    [m.value for m in DerivativeMode],
    index=[m.value for m in DerivativeMode].index(preset.derivative_mode),
    horizontal=True
)

st.sidebar.divider()

setpoint = preset_slider("Setpoint", "setpoint")
simulation_time = st.sidebar.slider("Simulation Time (s)", 2.0, 20.0, 10.0, 1.0)

st.sidebar.divider()

# empty bound = unbounded on that side
out_min = st.sidebar.number_input("Output min", value=preset.out_min, placeholder="unbounded")
out_max = st.sidebar.number_input("Output max", value=preset.out_max, placeholder="unbounded")

st.sidebar.divider()

reset_pid = st.sidebar.button("🔄 Reset PID State")
save_preset = st.sidebar.button("💾 Save Preset")

config = PIDConfig(
    kp=kp, ki=ki, kd=kd,
    setpoint=setpoint,
    out_min=out_min,
    out_max=out_max,
    derivative_mode=mode
)

# ==============================
# INITIALIZE / RESET PID
# ==============================
try:
    if "pid" not in st.session_state:
        st.session_state.pid = build_controller(config)

    pid = st.session_state.pid
    if reset_pid:
        pid.reset()

    # Update gains dynamically (do NOT reset state)
    apply_config(pid, config)
except InvalidRangeError as e:
    st.error(f"❌ Invalid output limits: {e}")
    st.stop()

if save_preset:
    try:
        save_config(config)
    except OSError:
        st.error("❌ Failed to save preset")
        st.code(traceback.format_exc())
        st.stop()
    st.session_state.preset = config
    logger.info("Preset saved to %s", CONFIG_PATH)
    st.sidebar.success(f"Preset saved to `{CONFIG_PATH}`")

# ==============================
# RUN SIMULATION (WITH SAFETY)
# ==============================
try:
    result = simulate(pid, simulation_time, dt=0.01)
except Exception:
    logger.exception("PID simulation failed")
    st.error("❌ Error occurred during PID simulation")
    st.code(traceback.format_exc())
    st.stop()

# ==============================
# PLOTS
# ==============================
col1, col2 = st.columns(2)

with col1:
    st.subheader("System Output")

    fig1, ax1 = plt.subplots()
    ax1.plot(result.time, result.output, label="Output")
    ax1.plot(result.time, [setpoint] * len(result.time), "--", label="Setpoint")
    ax1.set_xlabel("Time (s)")
    ax1.set_ylabel("Value")
    ax1.legend()
    ax1.grid(True)

    st.pyplot(fig1)

with col2:
    st.subheader("Control Signal")

    fig2, ax2 = plt.subplots()
    ax2.plot(result.time, result.control, label="Control Output (u)")
    for bound in (config.out_min, config.out_max):
        if bound is not None:
            ax2.axhline(bound, color="gray", linestyle=":")
    ax2.set_xlabel("Time (s)")
    ax2.set_ylabel("Control Effort")
    ax2.grid(True)

    st.pyplot(fig2)

# ==============================
# ERROR PLOT (IMPORTANT FOR PID)
# ==============================
st.subheader("Tracking Error")

fig3, ax3 = plt.subplots()
ax3.plot(result.time, result.error, label="Error (Setpoint − Output)")
ax3.set_xlabel("Time (s)")
ax3.set_ylabel("Error")
ax3.grid(True)

st.pyplot(fig3)

# ==============================
# DEBUG / INTERNAL STATE VIEW
# ==============================
with st.expander("🛠 Debug / Internal PID State"):
    st.write("PID State")
    state = pid.get_state()
    st.json({k: str(v) if isinstance(v, float) else v for k, v in state.items()})

    st.write(f"Final Output Value: `{result.output[-1]}`")
    st.write(f"Final Error: `{result.error[-1]}`")

# ==============================
# TUNING HELP
# ==============================
st.markdown("""
### PID Tuning Notes
- **Kp**: Increases responsiveness, too high → oscillations
- **Ki**: Eliminates steady-state error, too high → windup
- **Kd**: Dampens oscillations, sensitive to noise
- **Output limits**: also clamp the integral, so a saturated output does not wind up
- **Derivative on measurement**: avoids the kick on setpoint steps

💡 Use the **error plot** to judge tuning quality.
""")
