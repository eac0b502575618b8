"""
SX Digital Twin MCP Tools

Async wrappers around the calculation core for the FastMCP server. Each tool
takes plain JSON-compatible arguments and returns a plain dictionary.

Tools:
- simulate_sx_stage: single equilibrium SX stage
- optimize_ph_setpoint: prescriptive pH recommendation
- check_th_u_compliance: Th + U discharge check
- recompute_process: full pipeline for one process state
- run_verification_suite: executable oracle for the three calculations
- get_efficiency_curve: noise-free efficiency vs. pH
- get_default_process_state: dashboard default inputs

Concentration maps may be passed as dicts or JSON strings. Malformed JSON
returns a structured error instead of raising through the transport.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from tools.schemas import ProcessState
from utils.compliance import check_compliance
from utils.equilibrium import simulate
from utils.orchestrator import recompute
from utils.process_defaults import DEFAULT_REGULATORY_LIMIT, DEFAULT_TARGET_PH
from utils.setpoint_optimizer import efficiency_curve, optimize
from utils.verification import run_verification_suite, summarize

logger = logging.getLogger(__name__)

ConcentrationArg = Union[Dict[str, Any], str, None]


class PayloadError(ValueError):
    """Raised when a tool argument cannot be decoded into a concentration map."""


def convert_to_dict(obj):
    """Recursively convert Pydantic models to JSON-ready dicts (aliased keys)."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(by_alias=True)
    if isinstance(obj, dict):
        return {k: convert_to_dict(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [convert_to_dict(item) for item in obj]
    return obj


def _error(message: str) -> Dict[str, Any]:
    logger.warning(message)
    return {"status": "error", "message": message}


def parse_concentrations(value: ConcentrationArg, name: str) -> Dict[str, Any]:
    """Decode a concentration map given as a dict, JSON string or None."""
    if value is None or value == "":
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise PayloadError(f"{name} is not valid JSON: {e}") from e
    if not isinstance(value, dict):
        raise PayloadError(f"{name} must be a JSON object")
    return value


async def simulate_sx_stage(
    aq_in: ConcentrationArg,
    org_in: ConcentrationArg = None,
    phase_ratio: float = 1.0,
    d_values: ConcentrationArg = None,
) -> Dict[str, Any]:
    """
    Simulate one equilibrium solvent extraction stage.

    Args:
        aq_in: Aqueous feed by species, g/L (e.g. {"Nd": 5.0, "Th": 0.1})
        org_in: Organic feed by species, g/L (default: barren organic)
        phase_ratio: Organic/aqueous volume ratio O/A (default: 1.0)
        d_values: Distribution coefficients D = C_org/C_aq by species

    Returns:
        Dict with aqOut and orgOut for Nd, Fe, Th and U (g/L, 4 decimals)
    """
    try:
        aq = parse_concentrations(aq_in, "aq_in")
        org = parse_concentrations(org_in, "org_in")
        d = parse_concentrations(d_values, "d_values")
    except PayloadError as e:
        return _error(str(e))

    return convert_to_dict(simulate(aq, org, phase_ratio, d))


async def optimize_ph_setpoint(
    current_ph: float,
    target_ph: float = DEFAULT_TARGET_PH,
    deterministic: bool = False,
) -> Dict[str, Any]:
    """
    Recommend the next pH setpoint for the extraction circuit.

    Args:
        current_ph: Measured pH
        target_ph: Optimal pH for Nd extraction (default: 1.8)
        deterministic: Suppress process noise in the efficiency estimate

    Returns:
        Dict with new_pH_setpoint, action and predicted_efficiency
    """
    return convert_to_dict(optimize(current_ph, target_ph, deterministic=deterministic))


async def check_th_u_compliance(
    th_conc: float,
    u_conc: float,
    limit: float = DEFAULT_REGULATORY_LIMIT,
) -> Dict[str, Any]:
    """
    Check combined thorium + uranium against the discharge limit.

    Args:
        th_conc: Thorium, g/L
        u_conc: Uranium, g/L
        limit: Combined limit, g/L (default: 0.1). Equality fails.

    Returns:
        Dict with total_conc_gl, is_compliant and finding
    """
    return convert_to_dict(check_compliance(th_conc, u_conc, limit))


async def recompute_process(
    state_json: Optional[str] = None,
    deterministic: bool = False,
) -> Dict[str, Any]:
    """
    Run stage simulation, raffinate compliance and setpoint optimization.

    Args:
        state_json: JSON object with any of aq_in, org_in, phase_ratio,
            d_values, current_ph, target_ph, regulatory_limit. Omitted fields
            take the dashboard defaults.
        deterministic: Suppress optimizer noise

    Returns:
        Dict with simulation, compliance, optimization and warnings
    """
    try:
        payload = parse_concentrations(state_json, "state_json")
        state = ProcessState.model_validate(payload)
    except PayloadError as e:
        return _error(str(e))

    return convert_to_dict(recompute(state, deterministic=deterministic))


async def run_verification() -> Dict[str, Any]:
    """
    Run the built-in verification battery for the calculation core.

    Returns:
        Dict with total, passed, failed, integrity and per-case results
        (expected/actual as JSON strings)
    """
    return convert_to_dict(summarize(run_verification_suite()))


async def get_efficiency_curve(
    target_ph: float = DEFAULT_TARGET_PH,
    ph_min: float = 0.0,
    ph_max: float = 3.5,
    step: float = 0.05,
) -> Dict[str, Any]:
    """
    Noise-free Nd extraction efficiency across a pH window, for plotting.

    Returns:
        Dict with target_ph and a list of {ph, efficiency} points
    """
    points = efficiency_curve(target_ph, ph_min, ph_max, step)
    return {
        "target_ph": target_ph,
        "points": [{"ph": ph, "efficiency": eff} for ph, eff in points],
    }


async def get_default_process_state() -> Dict[str, Any]:
    """Default dashboard inputs, usable as a template for recompute_process."""
    return convert_to_dict(ProcessState())
