#!/usr/bin/env python3
"""
Run the Face Embeddings API test suites.

Usage:
    python scripts/run_tests.py                # unit + integration
    python scripts/run_tests.py unit           # no server needed
    python scripts/run_tests.py integration    # needs a running server (BASE_URL)
"""

import argparse
import os
import sys

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SUITES = {
    "unit": os.path.join("tests", "unit"),
    "integration": os.path.join("tests", "integration"),
}


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the gateway test suites")
    parser.add_argument("suites", nargs="*", help=f"Suites to run: {', '.join(sorted(SUITES))} (default: all)")
    parser.add_argument("-k", dest="keyword", help="Only run tests matching this expression")
    args = parser.parse_args()
    unknown = [name for name in args.suites if name not in SUITES]
    if unknown:
        parser.error(f"unknown suite(s): {', '.join(unknown)}")

    os.chdir(PROJECT_ROOT)
    paths = [SUITES[name] for name in (args.suites or sorted(SUITES))]

    pytest_args = ["-v", "--tb=short", *paths]
    if args.keyword:
        pytest_args += ["-k", args.keyword]

    print(f"🧪 Running {', '.join(args.suites or sorted(SUITES))} tests...")
    exit_code = pytest.main(pytest_args)

    if exit_code == 0:
        print("\n✅ All tests passed!")
    else:
        print(f"\n❌ Tests failed (exit code: {int(exit_code)})")
    return int(exit_code)


if __name__ == "__main__":
    sys.exit(main())
