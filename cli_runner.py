#!/usr/bin/env python
"""
CLI runner for the SX digital twin.

Runs the calculation core without an MCP client, printing JSON to stdout.

Usage:
    python cli_runner.py verify
    python cli_runner.py recompute --params '{"aq_in": {"Nd": 5, "Th": 0.1}}'
    python cli_runner.py curve --target-ph 1.8

Exit status is 1 on a malformed payload or when any verification case fails.
"""

import sys
import json
import argparse
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

# Logging to stderr so stdout stays valid JSON
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def run_verify() -> int:
    from tools.process_twin import convert_to_dict
    from utils.verification import run_verification_suite, summarize

    report = summarize(run_verification_suite())
    print(json.dumps(convert_to_dict(report), indent=2))
    return 0 if report.failed == 0 else 1


def run_recompute(params: str, deterministic: bool) -> int:
    from pydantic import ValidationError
    from tools.process_twin import convert_to_dict
    from tools.schemas import ProcessState
    from utils.orchestrator import recompute

    try:
        state = ProcessState.model_validate(json.loads(params) if params else {})
    except (json.JSONDecodeError, ValidationError) as e:
        error_result = {
            "status": "error",
            "message": f"Invalid process state: {e}",
        }
        print(json.dumps(error_result, indent=2))
        return 1

    result = recompute(state, deterministic=deterministic)
    print(json.dumps(convert_to_dict(result), indent=2))
    return 0


def run_curve(target_ph: float) -> int:
    from utils.setpoint_optimizer import efficiency_curve

    points = efficiency_curve(target_ph)
    print(json.dumps(
        {"target_ph": target_ph, "points": [{"ph": p, "efficiency": e} for p, e in points]},
        indent=2
    ))
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='SX Digital Twin CLI Runner'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('verify', help='Run the verification battery')

    recompute_parser = subparsers.add_parser(
        'recompute', help='Run stage, compliance and optimizer for one state'
    )
    recompute_parser.add_argument(
        '--params',
        default='',
        help='JSON process state; omitted fields use dashboard defaults'
    )
    recompute_parser.add_argument(
        '--deterministic',
        action='store_true',
        help='Suppress optimizer noise'
    )

    curve_parser = subparsers.add_parser('curve', help='Noise-free efficiency vs. pH')
    curve_parser.add_argument('--target-ph', type=float, default=1.8)

    args = parser.parse_args(argv)

    if args.command == 'verify':
        return run_verify()
    if args.command == 'recompute':
        return run_recompute(args.params, args.deterministic)
    if args.command == 'curve':
        return run_curve(args.target_ph)

    return 0


if __name__ == "__main__":
    sys.exit(main())
