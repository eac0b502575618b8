"""
Pydantic Schemas for the SX Digital Twin

Defines the result models returned by the calculation core and the process
state consumed by the orchestrator, as documented Field definitions with
examples.

The models carry no numeric range validation. NaN, infinite and negative
values reach the calculation core untouched and are clamped there. Empty or
non-numeric process inputs become NaN and a null map becomes empty, so an
in-progress edit never fails validation.
"""

import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.numerics import coerce_float
from utils.process_defaults import (
    DEFAULT_AQ_FEED,
    DEFAULT_D_VALUES,
    DEFAULT_OPERATING_PH,
    DEFAULT_ORG_FEED,
    DEFAULT_PHASE_RATIO,
    DEFAULT_REGULATORY_LIMIT,
    DEFAULT_TARGET_PH,
)


class SimulationResult(BaseModel):
    """
    Post-extraction concentrations of one equilibrium SX stage.

    Both maps contain every tracked species (Nd, Fe, Th, U), rounded to
    4 decimal places (g/L).
    """

    model_config = ConfigDict(populate_by_name=True)

    aq_out: Dict[str, float] = Field(
        alias="aqOut",
        description="Aqueous raffinate concentrations, g/L",
        examples=[{"Nd": 2.7778, "Fe": 0.0833, "Th": 0.0091, "U": 0.0015}]
    )

    org_out: Dict[str, float] = Field(
        alias="orgOut",
        description="Loaded organic concentrations, g/L",
        examples=[{"Nd": 2.2222, "Fe": 0.4167, "Th": 0.0909, "U": 0.0185}]
    )


class OptimizationResult(BaseModel):
    """Recommended pH setpoint and the predicted Nd extraction efficiency."""

    new_pH_setpoint: float = Field(
        description="Recommended pH setpoint, rounded to 2 decimals",
        examples=[1.65]
    )

    action: str = Field(
        description="Operator action for the acid/base dosing loop",
        examples=["Increase Acid/Base Flow (Raise pH)", "Maintain pH"]
    )

    predicted_efficiency: float = Field(
        description="Predicted extraction efficiency at the current pH, 0-1",
        examples=[0.782]
    )


class ComplianceResult(BaseModel):
    """Th + U waste-stream check against the regulatory limit."""

    total_conc_gl: float = Field(
        description="Combined Th + U concentration, g/L, rounded to 4 decimals",
        examples=[0.0106]
    )

    is_compliant: bool = Field(
        description="True only when the total is strictly below the limit"
    )

    finding: str = Field(
        description="Regulatory finding for the report",
        examples=["Meets NCMM Th/U safety requirements."]
    )


class TestResult(BaseModel):
    """One verification assertion with serialized expected/actual values."""

    __test__ = False  # not a pytest test class

    module: str = Field(description="Module under verification")
    name: str = Field(description="Assertion name")
    passed: bool
    expected: Optional[str] = Field(default=None, description="JSON-serialized expectation")
    actual: Optional[str] = Field(default=None, description="JSON-serialized observed value")


class VerificationReport(BaseModel):
    """Summary of a full verification run."""

    total: int
    passed: int
    failed: int
    integrity: Literal["100%", "WARNING"] = Field(
        description="'100%' when every assertion passed, otherwise 'WARNING'"
    )
    results: List[TestResult]


class InputWarning(BaseModel):
    """
    Advisory notice for a process input outside its usual operating range.

    Never raised; the core still clamps the value on its own.
    """

    field: str = Field(description="Input field, e.g. 'aq_in.Nd' or 'current_ph'")
    value: float
    message: str = Field(examples=["Min: 0", "Max: 14"])


class ProcessState(BaseModel):
    """
    Full set of operator inputs for one recompute of the digital twin.

    Defaults reproduce the dashboard's initial state.
    """

    aq_in: Dict[str, Optional[float]] = Field(
        default_factory=lambda: dict(DEFAULT_AQ_FEED),
        description="Aqueous feed concentrations, g/L"
    )

    org_in: Dict[str, Optional[float]] = Field(
        default_factory=lambda: dict(DEFAULT_ORG_FEED),
        description="Organic feed concentrations, g/L"
    )

    phase_ratio: Optional[float] = Field(
        default=DEFAULT_PHASE_RATIO,
        description="Organic/aqueous volume ratio (O/A)"
    )

    d_values: Dict[str, Optional[float]] = Field(
        default_factory=lambda: dict(DEFAULT_D_VALUES),
        description="Distribution coefficients D = C_org / C_aq"
    )

    current_ph: Optional[float] = Field(default=DEFAULT_OPERATING_PH, description="Measured pH")

    target_ph: Optional[float] = Field(default=DEFAULT_TARGET_PH, description="Optimal pH for Nd extraction")

    regulatory_limit: Optional[float] = Field(
        default=DEFAULT_REGULATORY_LIMIT,
        description="Combined Th + U discharge limit, g/L"
    )

    @field_validator("aq_in", "org_in", "d_values", mode="before")
    @classmethod
    def _sanitize_map(cls, value: Any) -> Dict[str, Optional[float]]:
        if not isinstance(value, dict):
            return {}
        return {
            str(species): None if conc is None else coerce_float(conc, math.nan)
            for species, conc in value.items()
        }

    @field_validator("phase_ratio", "current_ph", "target_ph", "regulatory_limit", mode="before")
    @classmethod
    def _sanitize_scalar(cls, value: Any) -> Optional[float]:
        if value is None:
            return None
        return coerce_float(value, math.nan)


class RecomputeResult(BaseModel):
    """Everything the dashboard needs after one input change."""

    simulation: SimulationResult
    compliance: ComplianceResult
    optimization: OptimizationResult
    warnings: List[InputWarning] = Field(default_factory=list)
