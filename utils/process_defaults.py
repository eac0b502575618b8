"""
Process defaults for the single-stage solvent extraction (SX) digital twin.

All tunables of the calculation core live here so that the equilibrium engine,
setpoint optimizer and compliance checker share one source of truth.

The phase-ratio floor (1e-4) and the optimizer dead-band (0.01 pH) are
compatibility constants shared with the operator dashboard. They have
no physical derivation and must not be re-tuned.
"""

from typing import Dict, Tuple


# Species tracked by every stage calculation, in display order.
# Output maps always carry all four keys regardless of the input keys.
TRACKED_SPECIES: Tuple[str, ...] = ("Nd", "Fe", "Th", "U")

# Radionuclides routed from the aqueous raffinate into the compliance check
REGULATED_SPECIES: Tuple[str, ...] = ("Th", "U")

# ---------------------------------------------------------------------------
# Equilibrium stage engine
# ---------------------------------------------------------------------------

DEFAULT_PHASE_RATIO = 1.0      # O/A used when the ratio is not a number
MIN_PHASE_RATIO = 1e-4         # floor applied to every phase ratio
CONCENTRATION_DECIMALS = 4     # g/L output precision

# ---------------------------------------------------------------------------
# Prescriptive setpoint optimizer
# ---------------------------------------------------------------------------

DEFAULT_TARGET_PH = 1.8
DEFAULT_CURRENT_PH = 0.0       # substituted for a NaN current pH
PEAK_EFFICIENCY = 0.8          # Nd extraction efficiency at the target pH
EFFICIENCY_CURVATURE = 0.2     # E = 0.8 - 0.2 * (pH - target)^2
CONTROLLER_GAIN = 0.5          # fraction of the pH error corrected per step
ACTION_DEADBAND = 0.01         # |step| at or below this holds the setpoint
NOISE_AMPLITUDE = 0.025        # process noise is uniform on [-0.025, 0.025]
SETPOINT_DECIMALS = 2

ACTION_RAISE = "Increase Acid/Base Flow (Raise pH)"
ACTION_LOWER = "Adjust Acid/Base Flow (Lower pH)"
ACTION_MAINTAIN = "Maintain pH"

# Range of the efficiency chart (pH units)
CURVE_PH_MIN = 0.0
CURVE_PH_MAX = 3.5
CURVE_PH_STEP = 0.05
CURVE_MAX_POINTS = 10_000       # windows needing more points return an empty curve

# ---------------------------------------------------------------------------
# Th/U compliance
# ---------------------------------------------------------------------------

DEFAULT_REGULATORY_LIMIT = 0.1  # g/L combined Th + U
TOTAL_DECIMALS = 4

FINDING_COMPLIANT = "Meets NCMM Th/U safety requirements."
FINDING_EXCEEDS = "EXCEEDS Regulatory Limit. Adjust flowsheet."

# ---------------------------------------------------------------------------
# Dashboard state and field bounds
# ---------------------------------------------------------------------------

DEFAULT_AQ_FEED: Dict[str, float] = {"Nd": 5.0, "Th": 0.1, "Fe": 0.5, "U": 0.02}
DEFAULT_ORG_FEED: Dict[str, float] = {"Nd": 0.0, "Th": 0.0, "Fe": 0.0, "U": 0.0}
DEFAULT_D_VALUES: Dict[str, float] = {"Nd": 0.8, "Th": 10.0, "Fe": 5.0, "U": 12.0}
DEFAULT_OPERATING_PH = 1.5

# (min, max) per scalar field; None means unbounded on that side
FIELD_BOUNDS: Dict[str, Tuple] = {
    "aq_in": (0.0, None),
    "d_values": (0.0, None),
    "phase_ratio": (0.1, None),
    "current_ph": (0.0, 14.0),
    "target_ph": (0.0, 14.0),
    "regulatory_limit": (0.001, None),
}
