"""
Tests for the prescriptive pH setpoint optimizer.

Validates the proportional step (gain 0.5), the +/-0.01 dead-band, the
efficiency parabola, noise bounds and the injectable sampler.
"""

import math
import pytest
import sys
from pathlib import Path

# Add parent directory to path
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

from utils.process_defaults import ACTION_LOWER, ACTION_MAINTAIN, ACTION_RAISE
from utils.setpoint_optimizer import (
    classify_action,
    efficiency_curve,
    efficiency_model,
    optimize,
)


class TestSetpointRecommendation:
    """Proportional step toward the target pH."""

    def test_raise_ph(self):
        """Current 1.0, target 2.0: step 0.5, setpoint 1.5."""
        result = optimize(1.0, 2.0, deterministic=True)

        assert result.new_pH_setpoint == 1.5
        assert "Increase" in result.action

    def test_lower_ph(self):
        """Current 2.0, target 1.0: step -0.5, setpoint 1.5."""
        result = optimize(2.0, 1.0, deterministic=True)

        assert result.new_pH_setpoint == 1.5
        assert "Lower" in result.action or "Adjust" in result.action

    def test_default_target(self):
        """Target defaults to 1.8: 1.5 -> 1.65."""
        result = optimize(1.5, deterministic=True)

        assert result.new_pH_setpoint == 1.65
        assert result.action == ACTION_RAISE

    def test_setpoint_rounded_to_two_decimals(self):
        """1.0 + 0.5*(1.777 - 1.0) = 1.3885 -> 1.39."""
        result = optimize(1.0, 1.777, deterministic=True)

        assert result.new_pH_setpoint == 1.39

    def test_at_target_maintains(self):
        result = optimize(1.8, 1.8, deterministic=True)

        assert result.new_pH_setpoint == 1.8
        assert result.action == ACTION_MAINTAIN


class TestActionDeadband:
    """|step| <= 0.01 holds the setpoint."""

    @pytest.mark.parametrize("step, expected", [
        (0.5, ACTION_RAISE),
        (0.0101, ACTION_RAISE),
        (0.01, ACTION_MAINTAIN),
        (0.0, ACTION_MAINTAIN),
        (-0.01, ACTION_MAINTAIN),
        (-0.0101, ACTION_LOWER),
        (-2.0, ACTION_LOWER),
    ])
    def test_classify_action(self, step, expected):
        assert classify_action(step) == expected

    def test_small_error_inside_deadband(self):
        """pH error 0.01 gives a step of 0.005: no action."""
        result = optimize(1.79, 1.8, deterministic=True)

        assert result.action == ACTION_MAINTAIN

    def test_error_just_outside_deadband(self):
        """pH error 0.03 gives a step of 0.015: raise."""
        result = optimize(1.0, 1.03, deterministic=True)

        assert result.action == ACTION_RAISE


class TestEfficiencyModel:
    """E = 0.8 - 0.2*(pH - target)^2 + noise, clamped to [0, 1]."""

    def test_peak_at_target(self):
        result = optimize(1.8, 1.8, deterministic=True)

        assert result.predicted_efficiency == pytest.approx(0.8)

    def test_parabola_off_target(self):
        """pH 1.5 vs 1.8: 0.8 - 0.2*0.09 = 0.782."""
        result = optimize(1.5, 1.8, deterministic=True)

        assert result.predicted_efficiency == pytest.approx(0.782)

    def test_far_from_target_clamped_to_zero(self):
        result = optimize(10.0, 1.8, deterministic=True)

        assert result.predicted_efficiency == 0.0

    def test_stochastic_samples_stay_in_bounds(self):
        """Repeated sampling with noise never leaves [0, 1] or the noise band."""
        for _ in range(200):
            result = optimize(1.8, 1.8)
            assert 0.0 <= result.predicted_efficiency <= 1.0
            assert 0.775 - 1e-12 <= result.predicted_efficiency <= 0.825 + 1e-12

    def test_injected_sampler_receives_noise_band(self):
        calls = []

        def sampler(low, high):
            calls.append((low, high))
            return high

        result = optimize(1.8, 1.8, sampler=sampler)

        assert calls == [(-0.025, 0.025)]
        assert result.predicted_efficiency == pytest.approx(0.825)

    def test_deterministic_ignores_sampler(self):
        def sampler(low, high):
            raise AssertionError("sampler must not be called")

        result = optimize(1.8, 1.8, deterministic=True, sampler=sampler)

        assert result.predicted_efficiency == pytest.approx(0.8)

    def test_deterministic_repeat_calls_identical(self):
        assert optimize(1.2, 2.1, deterministic=True) == optimize(1.2, 2.1, deterministic=True)


class TestInputSanitization:
    """NaN current pH -> 0, NaN target -> 1.8."""

    def test_nan_current_ph(self):
        """0 -> 1.8: step 0.9."""
        result = optimize(math.nan, 1.8, deterministic=True)

        assert result.new_pH_setpoint == 0.9
        assert result.action == ACTION_RAISE

    def test_nan_target_ph(self):
        result = optimize(1.8, math.nan, deterministic=True)

        assert result.new_pH_setpoint == 1.8
        assert result.action == ACTION_MAINTAIN

    def test_none_inputs(self):
        result = optimize(None, None, deterministic=True)

        assert result.new_pH_setpoint == 0.9


class TestEfficiencyCurve:
    """Noise-free curve for charting."""

    def test_model_floor(self):
        assert efficiency_model(1.8) == pytest.approx(0.8)
        assert efficiency_model(0.0) == pytest.approx(0.152)
        assert efficiency_model(9.0) == 0.0

    def test_default_window(self):
        """pH 0 to 3.5 in 0.05 steps is 71 points."""
        points = efficiency_curve()

        assert len(points) == 71
        assert points[0][0] == 0.0
        assert points[-1][0] == 3.5
        assert all(eff >= 0.0 for _, eff in points)

    def test_peak_at_target(self):
        points = dict(efficiency_curve(1.8))

        assert points[1.8] == pytest.approx(0.8)
        assert max(points.values()) == pytest.approx(0.8)

    def test_degenerate_window(self):
        assert efficiency_curve(1.8, ph_min=2.0, ph_max=1.0) == []
        assert efficiency_curve(1.8, step=0.0) == []
        assert efficiency_curve(1.8, step=math.nan) == []

    def test_oversized_window_returns_empty(self):
        """A step fine enough to need more than 10 000 points is refused."""
        assert efficiency_curve(1.8, step=1e-9) == []
        assert efficiency_curve(1.8, step=1e-320) == []

    def test_window_at_point_cap(self):
        points = efficiency_curve(1.8, ph_min=0.0, ph_max=9.999, step=0.001)

        assert len(points) == 10_000
