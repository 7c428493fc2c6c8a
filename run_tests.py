#!/usr/bin/env python3
"""
Test runner for the task assignment optimizer
"""

import unittest
import sys
from pathlib import Path

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))


def run_all_tests():
    """Discover and run every test module under tests/"""
    loader = unittest.TestLoader()
    suite = loader.discover(
        start_dir=str(Path(__file__).parent / "tests"),
        pattern="test_*.py",
    )

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)
    return result.wasSuccessful()


def run_integration_test():
    """Run every driver once on the bundled sample data"""
    print("\n" + "=" * 50)
    print("INTEGRATION TEST")
    print("=" * 50)

    from taskopt.drivers import DRIVERS, create_driver
    from taskopt.io_utils import load_tasks, load_worker_specs

    data_dir = Path(__file__).parent / "data"
    tasks = load_tasks(data_dir / "tasks50.json")
    workers = load_worker_specs(data_dir / "workers.yaml")

    success = True
    for name in sorted(DRIVERS):
        result = create_driver(name, seed=42).optimize(len(tasks), len(workers), tasks, workers)
        valid = (
            len(result.assignment) == len(tasks)
            and all(0 <= w < len(workers) for w in result.assignment)
        )
        print(f"{name}: fitness={result.best_fitness:.6f} ({result.convention}) "
              f"per worker={result.tasks_per_worker(len(workers))} "
              f"{'OK' if valid else 'INVALID'}")
        success = success and valid

    print(f"Integration test {'PASSED' if success else 'FAILED'}")
    return success


if __name__ == "__main__":
    print("Running Task Assignment Optimizer Tests")
    print("=" * 60)

    # Run unit tests
    print("Running unit tests...")
    unit_success = run_all_tests()

    # Run integration test
    integration_success = run_integration_test()

    # Summary
    print("\n" + "=" * 60)
    print("TEST SUMMARY")
    print("=" * 60)
    print(f"Unit tests: {'PASSED' if unit_success else 'FAILED'}")
    print(f"Integration test: {'PASSED' if integration_success else 'FAILED'}")

    overall_success = unit_success and integration_success
    print(f"Overall: {'PASSED' if overall_success else 'FAILED'}")

    sys.exit(0 if overall_success else 1)
