"""
Validation framework: Synthetic problems with known ground truth.
"""

from .synthetic import (
    LinearGaussianProblemGenerator,
    analytic_posterior,
    generate_linear_gaussian_problem,
)

__all__ = [
    "LinearGaussianProblemGenerator",
    "generate_linear_gaussian_problem",
    "analytic_posterior",
]
