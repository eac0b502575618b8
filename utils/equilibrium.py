"""
Single-Stage Solvent Extraction Equilibrium Engine

Computes raffinate (aqueous) and loaded-organic concentrations for one
equilibrium contact with linear partitioning. Species are independent.

Per species:
    Mass balance:  Cin_aq + R*Cin_org = Cout_aq + R*Cout_org
    Equilibrium:   Cout_org = D * Cout_aq
    Combined:      Cout_aq  = (Cin_aq + R*Cin_org) / (1 + R*D)

where R is the organic/aqueous volume ratio (O/A) and D the distribution
coefficient. With R > 0 and D >= 0 the denominator is >= 1, so the result is
always finite and non-negative.

Input handling (fail-safe by clamping, never by raising):
- missing species, NaN or negative concentrations/D-values -> 0
- non-numeric phase ratio -> 1.0, then floored at 1e-4
"""

import logging
from typing import Dict, Mapping, Optional

from tools.schemas import SimulationResult
from utils.numerics import coerce_float, round_half_up, species_value
from utils.process_defaults import (
    CONCENTRATION_DECIMALS,
    DEFAULT_PHASE_RATIO,
    MIN_PHASE_RATIO,
    TRACKED_SPECIES,
)

logger = logging.getLogger(__name__)


def safe_phase_ratio(phase_ratio) -> float:
    """Phase ratio with NaN -> 1.0 and a floor of 1e-4."""
    ratio = coerce_float(phase_ratio, DEFAULT_PHASE_RATIO)
    if ratio < MIN_PHASE_RATIO:
        logger.debug(f"Phase ratio {ratio} floored to {MIN_PHASE_RATIO}")
    return max(MIN_PHASE_RATIO, ratio)


def simulate(
    aq_in: Optional[Mapping[str, float]],
    org_in: Optional[Mapping[str, float]],
    phase_ratio: float,
    d_values: Optional[Mapping[str, float]],
) -> SimulationResult:
    """
    Simulate one equilibrium SX stage.

    Args:
        aq_in: Aqueous feed concentrations by species, g/L
        org_in: Organic feed concentrations by species, g/L
        phase_ratio: Organic/aqueous volume ratio (O/A)
        d_values: Distribution coefficients D = C_org/C_aq by species

    Returns:
        SimulationResult with an entry for every tracked species in both maps,
        each rounded to 4 decimals after the full-precision calculation.

    Example:
        >>> result = simulate({"Nd": 10}, {}, 1.0, {"Nd": 9})
        >>> result.aq_out["Nd"], result.org_out["Nd"]
        (1.0, 9.0)
    """
    r_safe = safe_phase_ratio(phase_ratio)

    aq_out: Dict[str, float] = {}
    org_out: Dict[str, float] = {}

    for species in TRACKED_SPECIES:
        c_aq_in = species_value(aq_in, species)
        c_org_in = species_value(org_in, species)
        d = species_value(d_values, species)

        c_aq_out = (c_aq_in + r_safe * c_org_in) / (1.0 + r_safe * d)
        c_org_out = d * c_aq_out

        # Round each value independently from the unrounded aqueous result
        aq_out[species] = round_half_up(c_aq_out, CONCENTRATION_DECIMALS)
        org_out[species] = round_half_up(c_org_out, CONCENTRATION_DECIMALS)

    return SimulationResult(aq_out=aq_out, org_out=org_out)


def stage_mass_balance(
    aq_in: Optional[Mapping[str, float]],
    org_in: Optional[Mapping[str, float]],
    phase_ratio: float,
    result: SimulationResult,
    species: str,
) -> Dict[str, float]:
    """
    Mass balance closure for one species of a simulated stage.

    Masses are per unit aqueous volume (g per L of aqueous phase), using the
    same sanitized feed and phase ratio the engine used.

    Returns:
        Dict with mass_in, mass_out and absolute closure error
    """
    r_safe = safe_phase_ratio(phase_ratio)
    mass_in = species_value(aq_in, species) + r_safe * species_value(org_in, species)
    mass_out = result.aq_out.get(species, 0.0) + r_safe * result.org_out.get(species, 0.0)

    return {
        "mass_in": mass_in,
        "mass_out": mass_out,
        "closure_error": abs(mass_out - mass_in),
    }
