"""
Integration tests for the digital twin orchestrator.

The pipeline wires the stage engine into the compliance check (aqueous
raffinate Th + U) and runs the optimizer alongside.
"""

import math
import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from tools.schemas import ProcessState
from utils.orchestrator import check_input_ranges, recompute
from utils.process_defaults import ACTION_RAISE


class TestRecompute:
    """Full recompute for one process state."""

    def test_dashboard_defaults(self):
        """Default state: compliant raffinate, raise pH from 1.5 to 1.65."""
        result = recompute(deterministic=True)

        assert result.simulation.aq_out == {"Nd": 2.7778, "Fe": 0.0833, "Th": 0.0091, "U": 0.0015}
        assert result.compliance.total_conc_gl == 0.0106
        assert result.compliance.is_compliant is True
        assert result.optimization.new_pH_setpoint == 1.65
        assert result.optimization.action == ACTION_RAISE
        assert result.optimization.predicted_efficiency == pytest.approx(0.782)
        assert result.warnings == []

    def test_compliance_follows_raffinate(self):
        """No Th/U extraction (D=0) leaves the feed in the waste stream."""
        state = ProcessState(
            aq_in={"Nd": 5.0, "Th": 0.08, "U": 0.04},
            d_values={"Nd": 0.8, "Th": 0.0, "U": 0.0},
        )
        result = recompute(state, deterministic=True)

        assert result.simulation.aq_out["Th"] == 0.08
        assert result.compliance.total_conc_gl == 0.12
        assert result.compliance.is_compliant is False

    def test_accepts_plain_dict(self):
        result = recompute({"phase_ratio": 2.0, "regulatory_limit": 0.005}, deterministic=True)

        # Th: 0.1 / (1 + 2*10) = 0.0048; U: 0.02 / (1 + 2*12) = 0.0008
        assert result.simulation.aq_out["Th"] == 0.0048
        assert result.simulation.aq_out["U"] == 0.0008
        assert result.compliance.is_compliant is False

    def test_in_progress_edits_do_not_fail(self):
        """Empty fields arrive as NaN or None and fall back to defaults."""
        state = ProcessState(
            aq_in={"Nd": math.nan, "Th": None},
            phase_ratio=math.nan,
            current_ph=None,
            target_ph=math.nan,
            regulatory_limit=math.nan,
        )
        result = recompute(state, deterministic=True)

        assert result.simulation.aq_out["Nd"] == 0
        assert result.optimization.new_pH_setpoint == 0.9
        assert result.compliance.is_compliant is True

    def test_empty_current_ph_falls_back_to_zero(self):
        """An empty pH field is sanitized, not rejected: step 0.5 * (1.8 - 0)."""
        result = recompute({"current_ph": ""}, deterministic=True)

        assert result.optimization.new_pH_setpoint == 0.9
        assert result.optimization.action == ACTION_RAISE

    @pytest.mark.parametrize("state", [
        {"current_ph": ""},
        {"aq_in": {"Nd": ""}},
        {"aq_in": None},
        {"phase_ratio": "fast"},
        {"d_values": [1, 2], "target_ph": "abc", "regulatory_limit": ""},
    ])
    def test_junk_fields_are_sanitized(self, state):
        result = recompute(state, deterministic=True)

        assert set(result.simulation.aq_out) == {"Nd", "Fe", "Th", "U"}
        assert result.warnings == []

    def test_empty_feed_gives_zero_raffinate(self):
        result = recompute({"aq_in": {"Nd": ""}, "phase_ratio": "fast"}, deterministic=True)

        assert result.simulation.aq_out["Nd"] == 0
        assert result.simulation.org_out["Nd"] == 0

    def test_junk_values_become_nan_in_state(self):
        state = ProcessState.model_validate({"aq_in": None, "phase_ratio": "fast", "current_ph": None})

        assert state.aq_in == {}
        assert math.isnan(state.phase_ratio)
        assert state.current_ph is None

    def test_injected_sampler(self):
        result = recompute(ProcessState(current_ph=1.8), sampler=lambda low, high: low)

        assert result.optimization.predicted_efficiency == pytest.approx(0.775)

    def test_repeat_deterministic_calls_identical(self):
        assert recompute(deterministic=True) == recompute(deterministic=True)


class TestInputRanges:
    """Advisory warnings use the dashboard's field bounds."""

    def test_no_warnings_for_defaults(self):
        assert check_input_ranges(ProcessState()) == []

    def test_out_of_range_fields(self):
        state = ProcessState(
            aq_in={"Nd": -1.0},
            d_values={"Th": -0.5},
            phase_ratio=0.05,
            current_ph=15.0,
            target_ph=-1.0,
            regulatory_limit=0.0,
        )
        warnings = {w.field: w.message for w in check_input_ranges(state)}

        assert warnings == {
            "aq_in.Nd": "Min: 0",
            "d_values.Th": "Min: 0",
            "phase_ratio": "Min: 0.1",
            "current_ph": "Max: 14",
            "target_ph": "Min: 0",
            "regulatory_limit": "Min: 0.001",
        }

    def test_nan_fields_not_flagged(self):
        state = ProcessState(aq_in={"Nd": math.nan}, current_ph=math.nan, phase_ratio=None)

        assert check_input_ranges(state) == []

    def test_warnings_returned_with_results(self):
        result = recompute(ProcessState(current_ph=20.0), deterministic=True)

        assert [w.field for w in result.warnings] == ["current_ph"]
        # Out-of-range input is still computed: 20 -> 10.9
        assert result.optimization.new_pH_setpoint == 10.9
