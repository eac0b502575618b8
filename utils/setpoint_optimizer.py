"""
Prescriptive pH Setpoint Optimizer

Recommends the next pH setpoint for the extraction circuit and predicts the
resulting Nd extraction efficiency.

Efficiency model (process proxy, not first-principles):
    E = 0.8 - 0.2 * (pH - pH_target)^2 + noise,   clamped to [0, 1]

Recommendation: proportional step of gain 0.5 toward the target, with a
+/-0.01 pH dead-band on the step for the "Maintain pH" action.

Noise is drawn from an injectable sampler so that production and test paths
share one code path. ``deterministic=True`` suppresses noise entirely.
"""

import logging
from typing import Callable, List, Optional, Tuple

import numpy as np

from tools.schemas import OptimizationResult
from utils.numerics import clamp, coerce_float, round_half_up
from utils.process_defaults import (
    ACTION_DEADBAND,
    ACTION_LOWER,
    ACTION_MAINTAIN,
    ACTION_RAISE,
    CONTROLLER_GAIN,
    CURVE_MAX_POINTS,
    CURVE_PH_MAX,
    CURVE_PH_MIN,
    CURVE_PH_STEP,
    DEFAULT_CURRENT_PH,
    DEFAULT_TARGET_PH,
    EFFICIENCY_CURVATURE,
    NOISE_AMPLITUDE,
    PEAK_EFFICIENCY,
    SETPOINT_DECIMALS,
)

logger = logging.getLogger(__name__)

# Sampler signature: (low, high) -> float drawn uniformly from [low, high]
Sampler = Callable[[float, float], float]

_rng = np.random.default_rng()


def _default_sampler(low: float, high: float) -> float:
    return float(_rng.uniform(low, high))


def classify_action(step: float) -> str:
    """Map a setpoint step (pH units) to the operator action label."""
    if step > ACTION_DEADBAND:
        return ACTION_RAISE
    if step < -ACTION_DEADBAND:
        return ACTION_LOWER
    return ACTION_MAINTAIN


def optimize(
    current_ph: float,
    target_ph: float = DEFAULT_TARGET_PH,
    deterministic: bool = False,
    sampler: Optional[Sampler] = None,
) -> OptimizationResult:
    """
    Recommend a new pH setpoint.

    Args:
        current_ph: Measured pH (NaN -> 0)
        target_ph: Optimal pH for extraction (NaN -> 1.8)
        deterministic: If True, no noise is added to the efficiency
        sampler: Optional uniform sampler for the noise term

    Returns:
        OptimizationResult with the setpoint rounded to 2 decimals and the
        efficiency clamped to [0, 1]
    """
    c_ph = coerce_float(current_ph, DEFAULT_CURRENT_PH)
    t_ph = coerce_float(target_ph, DEFAULT_TARGET_PH)

    if deterministic:
        noise = 0.0
    else:
        draw = sampler or _default_sampler
        noise = draw(-NOISE_AMPLITUDE, NOISE_AMPLITUDE)

    efficiency = PEAK_EFFICIENCY - EFFICIENCY_CURVATURE * (c_ph - t_ph) ** 2 + noise

    delta = t_ph - c_ph
    step = CONTROLLER_GAIN * delta
    new_setpoint = round_half_up(c_ph + step, SETPOINT_DECIMALS)
    action = classify_action(step)

    logger.debug(
        f"pH {c_ph:.2f} -> setpoint {new_setpoint:.2f} (target {t_ph:.2f}): {action}"
    )

    return OptimizationResult(
        new_pH_setpoint=new_setpoint,
        action=action,
        predicted_efficiency=clamp(efficiency, 0.0, 1.0),
    )


def efficiency_model(ph: float, target_ph: float = DEFAULT_TARGET_PH) -> float:
    """Noise-free efficiency at a given pH, floored at zero."""
    t_ph = coerce_float(target_ph, DEFAULT_TARGET_PH)
    return max(0.0, PEAK_EFFICIENCY - EFFICIENCY_CURVATURE * (ph - t_ph) ** 2)


def efficiency_curve(
    target_ph: float = DEFAULT_TARGET_PH,
    ph_min: float = CURVE_PH_MIN,
    ph_max: float = CURVE_PH_MAX,
    step: float = CURVE_PH_STEP,
) -> List[Tuple[float, float]]:
    """
    Sample the noise-free efficiency model across a pH window.

    Returns:
        List of (pH, efficiency) points, pH rounded to 4 decimals
    """
    t_ph = coerce_float(target_ph, DEFAULT_TARGET_PH)
    if not np.all(np.isfinite([ph_min, ph_max, step])):
        return []
    if step <= 0 or ph_max < ph_min:
        return []

    intervals = np.floor((ph_max - ph_min) / step + 1e-9)
    if not np.isfinite(intervals) or intervals + 1 > CURVE_MAX_POINTS:
        logger.warning(f"Efficiency curve step {step} exceeds {CURVE_MAX_POINTS} points")
        return []
    n_points = int(intervals) + 1
    ph_values = ph_min + step * np.arange(n_points)
    efficiencies = np.maximum(
        0.0, PEAK_EFFICIENCY - EFFICIENCY_CURVATURE * (ph_values - t_ph) ** 2
    )

    return [
        (round_half_up(float(ph), 4), float(eff))
        for ph, eff in zip(ph_values, efficiencies)
    ]
