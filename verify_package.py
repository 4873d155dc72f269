#!/usr/bin/env python3
"""
Verification script for siminfer package.

Checks that all modules can be imported and basic functionality works.
"""

import sys


def test_imports():
    """Test that all modules import successfully."""
    print("Testing imports...")

    try:
        import siminfer
        print("✓ Main package imported")

        import siminfer.forward
        print("✓ Forward module imported")

        import siminfer.likelihoods
        print("✓ Likelihoods module imported")

        import siminfer.priors
        print("✓ Priors module imported")

        import siminfer.inference
        print("✓ Inference module imported")

        import siminfer.validation
        print("✓ Validation module imported")

        return True
    except ImportError as e:
        print(f"✗ Import failed: {e}")
        return False


def test_basic_functionality():
    """Test basic functionality."""
    print("\nTesting basic functionality...")

    try:
        from siminfer.validation import generate_linear_gaussian_problem

        print("  Generating synthetic problem...")
        problem, truth = generate_linear_gaussian_problem(
            n_params=3,
            n_obs=20,
            seed=42
        )
        print(f"  ✓ Generated problem: {problem.dimension} parameters")

        assert 'theta' in truth
        assert truth['data'].shape == (20,)
        print("  ✓ Ground truth verified")

        return True
    except Exception as e:
        print(f"  ✗ Functionality test failed: {e}")
        return False


def test_forward_problem():
    """Test forward problem."""
    print("\nTesting forward problem...")

    try:
        import torch
        from siminfer.forward import SimulatorForwardProblem, SimulatorObservable, solve

        obs = SimulatorObservable("y", lambda state: state.sum())
        prob = SimulatorForwardProblem(lambda p: 2 * p, obs)
        sol = solve(prob, p=torch.ones(3))

        assert float(sol.observables["y"].retrieve()) == 6.0
        print("  ✓ Forward solve works")

        return True
    except Exception as e:
        print(f"  ✗ Forward problem test failed: {e}")
        return False


def test_log_density():
    """Test log-density evaluation."""
    print("\nTesting log-density...")

    try:
        import math
        from siminfer.validation import generate_linear_gaussian_problem

        problem, truth = generate_linear_gaussian_problem(seed=0)
        lj = problem.logjoint(truth['theta'])
        assert math.isfinite(float(lj.loglik)) and math.isfinite(float(lj.logprior))
        print(f"  ✓ log-joint at truth: {float(sum(lj)):.3f}")

        x = problem.u0.data
        assert math.isfinite(float(problem.logdensity(x)))
        print("  ✓ Unconstrained log-density works")

        return True
    except Exception as e:
        print(f"  ✗ Log-density test failed: {e}")
        return False


def check_file_structure():
    """Check that key files exist."""
    print("\nChecking file structure...")

    import os

    required_files = [
        'README.md',
        'setup.py',
        'siminfer/__init__.py',
        'siminfer/forward/__init__.py',
        'siminfer/likelihoods/__init__.py',
        'siminfer/priors/__init__.py',
        'siminfer/inference/__init__.py',
        'siminfer/validation/__init__.py',
        'tests/test_basic.py',
        'examples/basic_usage.py',
    ]

    all_exist = True
    for file in required_files:
        if os.path.exists(file):
            print(f"  ✓ {file}")
        else:
            print(f"  ✗ {file} missing")
            all_exist = False

    return all_exist


def main():
    """Run all verification tests."""
    print("="*60)
    print("siminfer Package Verification")
    print("="*60)

    results = []

    results.append(("Imports", test_imports()))
    results.append(("Basic Functionality", test_basic_functionality()))
    results.append(("Forward Problem", test_forward_problem()))
    results.append(("Log-Density", test_log_density()))
    results.append(("File Structure", check_file_structure()))

    # Summary
    print("\n" + "="*60)
    print("VERIFICATION SUMMARY")
    print("="*60)

    for test_name, passed in results:
        status = "PASS" if passed else "FAIL"
        symbol = "✓" if passed else "✗"
        print(f"{symbol} {test_name}: {status}")

    all_passed = all(result[1] for result in results)

    if all_passed:
        print("\n✓ All tests passed! Package is ready to use.")
        return 0
    else:
        print("\n✗ Some tests failed. Please check the output above.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
