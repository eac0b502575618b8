"""
Tools package for sx-digital-twin-mcp.

Contains the result schemas and the MCP tool implementations for the
FastMCP server. Tool functions live in ``tools.process_twin``; import them
from there so the calculation core in ``utils`` can import the schemas here
without a cycle.
"""

from .schemas import (
    ComplianceResult,
    OptimizationResult,
    ProcessState,
    RecomputeResult,
    SimulationResult,
    TestResult,
    VerificationReport,
)

__all__ = [
    "ComplianceResult",
    "OptimizationResult",
    "ProcessState",
    "RecomputeResult",
    "SimulationResult",
    "TestResult",
    "VerificationReport",
]
