"""
Solvent Extraction Digital Twin MCP Server.

This server exposes the computational core of a hydrometallurgical process
digital twin:
- Single-stage SX equilibrium (Nd, Fe, Th, U) with mass balance
- Prescriptive pH setpoint optimization with an efficiency proxy model
- Th/U discharge compliance against a regulatory limit
- A built-in verification battery for the three calculations

Every tool is a pure, synchronous-speed calculation. Callers are expected to
re-run recompute_process after every input change.
"""

import logging
import os
import sys

from mcp.server.fastmcp import FastMCP

# Configure logging - stderr only, stdout carries MCP's JSON-RPC transport
LOG_LEVEL = os.environ.get("SX_TWIN_LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stderr)]
)
logger = logging.getLogger("sx-digital-twin-mcp")

# Initialize the MCP server
mcp = FastMCP("sx-digital-twin")

from tools.process_twin import (
    check_th_u_compliance,
    get_default_process_state,
    get_efficiency_curve,
    optimize_ph_setpoint,
    recompute_process,
    run_verification,
    simulate_sx_stage,
)

# Register tools
# Tool 1: Equilibrium stage engine
mcp.tool()(simulate_sx_stage)

# Tool 2: Prescriptive setpoint optimizer
mcp.tool()(optimize_ph_setpoint)

# Tool 3: Th/U compliance
mcp.tool()(check_th_u_compliance)

# Tool 4: Full pipeline (stage -> compliance, optimizer)
mcp.tool()(recompute_process)

# Tool 5: Verification battery
mcp.tool(name="run_verification_suite")(run_verification)

# Tools 6-7: Chart data and input template
mcp.tool()(get_efficiency_curve)
mcp.tool()(get_default_process_state)


if __name__ == "__main__":
    logger.info("Starting SX Digital Twin MCP server...")

    logger.info("\n=== SX DIGITAL TWIN MCP SERVER ===")
    logger.info("\n[*] CALCULATION CORE:")
    logger.info("  Module 1: Equilibrium stage engine (Nd, Fe, Th, U)")
    logger.info("    - Cout_aq = (Cin_aq + R*Cin_org) / (1 + R*D)")
    logger.info("  Module 2: Prescriptive pH setpoint optimizer")
    logger.info("    - E = 0.8 - 0.2*(pH - target)^2, gain 0.5, dead-band 0.01")
    logger.info("  Module 3: Th/U compliance (strict < limit)")

    # Self-check before accepting requests
    from utils.verification import run_verification_suite, summarize

    report = summarize(run_verification_suite())
    if report.integrity == "100%":
        logger.info(f"\n[OK] Verification {report.passed}/{report.total} passed")
    else:
        logger.warning(
            f"\n[WARNING] Verification {report.passed}/{report.total} passed; "
            f"{report.failed} failing case(s)"
        )

    logger.info("\n=== SERVER READY ===")

    # Start the server
    mcp.run()
