"""Run the trafficsniffer test suites with optional coverage reporting.

Usage:
    python run_tests.py                  # everything, with coverage
    python run_tests.py -s parsing       # header parsing and classification only
    python run_tests.py -s pipeline -v   # pool, coordinator and interfaces
    python run_tests.py -l               # list suites and their test files
"""

import os
import sys

import pytest

ROOT = os.path.dirname(os.path.abspath(__file__))
TEST_DIR = os.path.join(ROOT, 'tests')

# Test files grouped by the part of the package they exercise
SUITES = {
    'parsing': ['test_network.py', 'test_transport.py', 'test_classifier.py', 'test_parser.py'],
    'security': ['test_rules.py', 'test_scanner.py'],
    'pipeline': ['test_pool.py', 'test_pipeline.py', 'test_interface.py'],
    'storage': ['test_store.py', 'test_exporters.py', 'test_cli.py'],
}

# Package modules measured for each suite
SUITE_COVERAGE = {
    'parsing': ['trafficsniffer.protocols', 'trafficsniffer.core.parser'],
    'security': ['trafficsniffer.security'],
    'pipeline': ['trafficsniffer.core.pool', 'trafficsniffer.core.pipeline',
                 'trafficsniffer.core.interface'],
    'storage': ['trafficsniffer.core.store', 'trafficsniffer.exporters', 'trafficsniffer.cli'],
}


def build_args(suite=None, coverage=True, verbose=False, keyword=None):
    """Build the pytest argument list.

    Args:
        suite: Name of a suite in SUITES, or None for every test
        coverage: Whether to collect coverage (requires pytest-cov)
        verbose: Whether to run pytest in verbose mode
        keyword: Optional ``-k`` expression

    Returns:
        List of pytest arguments
    """
    if suite is None:
        args = [TEST_DIR]
        cov_targets = ['trafficsniffer']
    else:
        args = [os.path.join(TEST_DIR, name) for name in SUITES[suite]]
        cov_targets = SUITE_COVERAGE[suite]

    args += ['--tb=short', '--strict-markers']
    if verbose:
        args.append('-v')
    if keyword:
        args += ['-k', keyword]

    if coverage:
        args += [f'--cov={target}' for target in cov_targets]
        args.append('--cov-report=term-missing')
        if suite is None:
            args += ['--cov-report=html:htmlcov', '--cov-fail-under=80']
    return args


def list_suites():
    """Print each suite and the test files it runs."""
    for name, files in SUITES.items():
        print(f"  {name}:")
        for f in files:
            marker = '' if os.path.exists(os.path.join(TEST_DIR, f)) else '  (missing)'
            print(f"    {f}{marker}")


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Run trafficsniffer unit tests')
    parser.add_argument('-s', '--suite', choices=sorted(SUITES), help='Run a single suite')
    parser.add_argument('-k', '--keyword', help='Only run tests matching this expression')
    parser.add_argument('--no-coverage', action='store_true', help='Disable coverage reporting')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('-l', '--list', action='store_true', help='List available suites')

    args = parser.parse_args()

    if args.list:
        print("Available suites:")
        list_suites()
        sys.exit(0)

    pytest_args = build_args(args.suite, coverage=not args.no_coverage,
                             verbose=args.verbose, keyword=args.keyword)
    print(f"Running: pytest {' '.join(pytest_args)}")
    sys.exit(pytest.main(pytest_args))
