"""
Th/U Regulatory Compliance Checker

Compares the combined thorium + uranium concentration of a waste stream with
a single regulatory limit.

Compliance uses a strict inequality (total < limit). A total equal to the
limit is NON-compliant, so ties fail safe.

Negative or NaN concentrations count as zero rather than as negative mass,
which would otherwise let a bad reading mask a real exceedance.
"""

import logging
from typing import Mapping, Optional

from tools.schemas import ComplianceResult
from utils.numerics import coerce_float, non_negative, round_half_up, species_value
from utils.process_defaults import (
    DEFAULT_REGULATORY_LIMIT,
    FINDING_COMPLIANT,
    FINDING_EXCEEDS,
    TOTAL_DECIMALS,
)

logger = logging.getLogger(__name__)


def check_compliance(
    th_conc: float,
    u_conc: float,
    limit: float = DEFAULT_REGULATORY_LIMIT,
) -> ComplianceResult:
    """
    Check Th + U against the regulatory limit.

    Args:
        th_conc: Thorium concentration, g/L
        u_conc: Uranium concentration, g/L
        limit: Combined Th + U limit, g/L (NaN or None -> 0.1)

    Returns:
        ComplianceResult with total rounded to 4 decimals

    Example:
        >>> check_compliance(0.05, 0.05, 0.1).is_compliant
        False
    """
    safe_th = non_negative(th_conc)
    safe_u = non_negative(u_conc)
    safe_limit = coerce_float(limit, DEFAULT_REGULATORY_LIMIT)

    total = safe_th + safe_u
    is_compliant = total < safe_limit

    if not is_compliant:
        logger.info(f"Th+U {total:.4f} g/L at or above limit {safe_limit} g/L")

    return ComplianceResult(
        total_conc_gl=round_half_up(total, TOTAL_DECIMALS),
        is_compliant=is_compliant,
        finding=FINDING_COMPLIANT if is_compliant else FINDING_EXCEEDS,
    )


def check_stream_compliance(
    stream: Optional[Mapping[str, float]],
    limit: float = DEFAULT_REGULATORY_LIMIT,
) -> ComplianceResult:
    """Check a concentration map (e.g. the aqueous raffinate) for Th + U."""
    return check_compliance(
        species_value(stream, "Th"),
        species_value(stream, "U"),
        limit,
    )
