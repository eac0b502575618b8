"""
Digital Twin Orchestrator

Runs the full calculation pipeline for one set of operator inputs:

    1. Equilibrium stage  -> raffinate and loaded organic
    2. Compliance check   -> Th + U in the aqueous raffinate
    3. Setpoint optimizer -> pH recommendation (independent of 1 and 2)

Callers invoke ``recompute`` after every input change. The pipeline is a few
dozen floating point operations, so full recomputation is always acceptable.
"""

import logging
import math
from typing import Any, List, Mapping, Optional, Union

from tools.schemas import InputWarning, ProcessState, RecomputeResult
from utils.compliance import check_stream_compliance
from utils.equilibrium import simulate
from utils.numerics import coerce_float
from utils.process_defaults import FIELD_BOUNDS, TRACKED_SPECIES
from utils.setpoint_optimizer import Sampler, optimize

logger = logging.getLogger(__name__)


def _format_bound(bound: float) -> str:
    return f"{bound:g}"


def _range_warning(field: str, value: Any, bounds) -> Optional[InputWarning]:
    """Warning for one value against (min, max) bounds, or None."""
    number = coerce_float(value, math.nan)
    # Empty or non-numeric fields are in-progress edits, not range errors
    if math.isnan(number):
        return None

    low, high = bounds
    if low is not None and number < low:
        return InputWarning(field=field, value=number, message=f"Min: {_format_bound(low)}")
    if high is not None and number > high:
        return InputWarning(field=field, value=number, message=f"Max: {_format_bound(high)}")
    return None


def check_input_ranges(state: ProcessState) -> List[InputWarning]:
    """
    Flag inputs outside the dashboard's field bounds.

    Advisory only: the calculation core clamps out-of-range values on its own.
    """
    warnings: List[InputWarning] = []

    for map_field in ("aq_in", "d_values"):
        values = getattr(state, map_field)
        for species in TRACKED_SPECIES:
            if species not in values:
                continue
            warning = _range_warning(
                f"{map_field}.{species}", values[species], FIELD_BOUNDS[map_field]
            )
            if warning:
                warnings.append(warning)

    for scalar_field in ("phase_ratio", "current_ph", "target_ph", "regulatory_limit"):
        warning = _range_warning(
            scalar_field, getattr(state, scalar_field), FIELD_BOUNDS[scalar_field]
        )
        if warning:
            warnings.append(warning)

    return warnings


def recompute(
    state: Union[ProcessState, Mapping[str, Any], None] = None,
    deterministic: bool = False,
    sampler: Optional[Sampler] = None,
) -> RecomputeResult:
    """
    Recompute every twin output for the given process state.

    Args:
        state: ProcessState or a plain dict of its fields; None uses the
            default dashboard state
        deterministic: Suppress optimizer noise (testing, replay, audit)
        sampler: Optional noise sampler passed to the optimizer

    Returns:
        RecomputeResult with simulation, compliance, optimization and any
        advisory input warnings
    """
    if state is None:
        state = ProcessState()
    elif not isinstance(state, ProcessState):
        state = ProcessState.model_validate(state)

    simulation = simulate(state.aq_in, state.org_in, state.phase_ratio, state.d_values)

    # Aqueous raffinate is the waste stream for the Th/U check
    compliance = check_stream_compliance(simulation.aq_out, state.regulatory_limit)

    optimization = optimize(
        state.current_ph,
        state.target_ph,
        deterministic=deterministic,
        sampler=sampler,
    )

    warnings = check_input_ranges(state)
    if warnings:
        logger.info(f"{len(warnings)} input(s) outside operating range")

    return RecomputeResult(
        simulation=simulation,
        compliance=compliance,
        optimization=optimization,
        warnings=warnings,
    )
