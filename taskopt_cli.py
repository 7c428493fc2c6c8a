#!/usr/bin/env python3
"""
Task assignment optimizer - command line entry point.

Every run is described by a YAML run configuration; a few fields can be
overridden from the command line for quick comparisons.
"""

import argparse
import logging
import sys
from pathlib import Path

project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


def main():
    """Parse arguments and run the configured mode"""
    parser = argparse.ArgumentParser(
        description="Task Assignment Optimizer - GA / ChOA / ABC drivers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 taskopt_cli.py configs/choa_run.yaml              # Chimp swarm assignment
  python3 taskopt_cli.py configs/ga_run.yaml                # Genetic algorithm assignment
  python3 taskopt_cli.py configs/abc_dispatch.yaml          # Plan with ABC and dispatch over HTTP
  python3 taskopt_cli.py configs/choa_run.yaml --driver ga  # Same inputs, different driver
  python3 taskopt_cli.py configs/ga_run.yaml --check        # Validate the config only
        """
    )

    parser.add_argument(
        'config',
        help='Run configuration YAML file'
    )

    parser.add_argument(
        '--driver', '-D',
        choices=['ga', 'choa', 'abc'],
        help='Override the driver named in the config'
    )

    parser.add_argument(
        '--seed', '-s',
        type=int,
        metavar='N',
        help='Override random_seed'
    )

    parser.add_argument(
        '--check',
        action='store_true',
        help='Load and validate the config without running it'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show per-iteration driver logging'
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        from taskopt.cli import run_from_config
        run_from_config(args.config, driver=args.driver, seed=args.seed, check_only=args.check)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
