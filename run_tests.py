#!/usr/bin/env python3
"""
Test runner script for ape-commands.

Wraps pytest with the marker selections and coverage options used during
development.
"""

import argparse
import subprocess
import sys
from pathlib import Path


def run_tests(args):
    """Run the test suite with specified options."""

    # Base pytest command
    cmd = [sys.executable, "-m", "pytest"]

    # Add test path
    test_path = Path("src/ape_commands/tests")
    if args.module:
        test_path = test_path / f"test_{args.module}.py"
    cmd.append(str(test_path))

    # Add verbosity
    if args.verbose:
        cmd.extend(["-v", "-s", "--capture=no"])
    else:
        cmd.append("-v")

    # Add specific test categories
    if args.unit:
        cmd.extend(["-m", "unit"])
    elif args.integration:
        cmd.extend(["-m", "integration"])
    elif not args.include_slow:
        cmd.extend(["-m", "not slow"])

    # Add coverage reporting
    if args.coverage:
        cmd.extend([
            "--cov=src/ape_commands",
            "--cov-report=html",
            "--cov-report=term-missing"
        ])

    # Add any additional pytest args
    if args.pytest_args:
        cmd.extend(args.pytest_args.split())

    print(f"Running command: {' '.join(cmd)}")
    print("-" * 60)

    try:
        result = subprocess.run(cmd, cwd=Path(__file__).parent)
        return result.returncode
    except KeyboardInterrupt:
        print("\nTest run interrupted by user")
        return 1
    except Exception as e:
        print(f"Error running tests: {e}")
        return 1


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run the ape-commands test suite",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_tests.py                    # Run all tests except slow ones
  python run_tests.py --verbose          # Run with verbose output
  python run_tests.py --module parser    # Run src/ape_commands/tests/test_parser.py
  python run_tests.py --coverage         # Run with coverage reporting
        """
    )

    # Test categories
    parser.add_argument(
        "--unit",
        action="store_true",
        help="Run only unit tests"
    )
    parser.add_argument(
        "--integration",
        action="store_true",
        help="Run only integration tests"
    )
    parser.add_argument(
        "--include-slow",
        action="store_true",
        help="Include slow tests in the run"
    )
    parser.add_argument(
        "--module",
        type=str,
        metavar="NAME",
        help="Run a single test module (test_<NAME>.py)"
    )

    # Test options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Run tests with verbose output"
    )
    parser.add_argument(
        "--coverage",
        action="store_true",
        help="Generate coverage report"
    )
    parser.add_argument(
        "--pytest-args",
        type=str,
        help="Additional arguments to pass to pytest"
    )

    args = parser.parse_args()

    # Check if pytest is available
    try:
        subprocess.run(
            [sys.executable, "-m", "pytest", "--version"],
            capture_output=True,
            check=True
        )
    except subprocess.CalledProcessError:
        print("pytest is not installed or not available")
        print("Install with: pip install -e '.[dev]'")
        return 1

    return run_tests(args)


if __name__ == "__main__":
    sys.exit(main())
