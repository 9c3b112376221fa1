"""
Command-line interface: payload capacity of a joint group.

    python -m jax_dynamics robot.urdf robot.srdf arm --angles 0 0.3 -0.2
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import DEFAULT_GRAVITY
from .dynamics import DynamicsSolver
from .io import load_srdf, load_urdf
from .logging_config import setup_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="jax_dynamics",
        description="Maximum payload and holding torques of a serial joint group",
    )
    parser.add_argument("urdf", help="Path to the robot URDF")
    parser.add_argument("srdf", help="Path to the SRDF declaring the joint group")
    parser.add_argument("group", help="Name of the joint group")
    parser.add_argument("--angles", type=float, nargs="+", required=True,
                        help="Joint positions of the group, base to tip")
    parser.add_argument("--gravity", type=float, nargs=3, default=list(DEFAULT_GRAVITY),
                        metavar=("GX", "GY", "GZ"), help="Gravity vector in the base frame")
    parser.add_argument("--payload", type=float, default=None,
                        help="Report the torques needed to hold this mass (kg) instead")
    parser.add_argument("--verbose", action="store_true", help="Enable debug output")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)

    robot = load_srdf(args.srdf, load_urdf(args.urdf))
    solver = DynamicsSolver(robot, args.group, args.gravity)
    if not solver.is_valid:
        print(f"Could not build a dynamics solver for group '{args.group}'", file=sys.stderr)
        return 1

    limits = solver.get_max_torques()
    if args.payload is None:
        result = solver.compute_max_payload(args.angles)
        if result is None:
            return 1
        print(f"Max payload: {result.payload:.4f} kg (joint {result.saturated_joint} saturates)")
    else:
        torques = solver.compute_payload_torques(args.angles, args.payload)
        if torques is None:
            return 1
        for i, (torque, limit) in enumerate(zip(torques, limits)):
            print(f"Joint {i}: {torque:.4f} / {limit:.4f}")

    print("Max torques: " + " ".join(f"{limit:.4f}" for limit in limits))
    return 0


if __name__ == "__main__":
    sys.exit(main())
