"""
Basic tests for siminfer package.
"""

import math

import pytest
import torch


def test_imports():
    """Test that all modules can be imported."""
    import siminfer
    import siminfer.forward
    import siminfer.likelihoods
    import siminfer.priors
    import siminfer.inference
    import siminfer.validation


def test_synthetic_problem_generation():
    """Test synthetic problem generation."""
    from siminfer.validation import generate_linear_gaussian_problem

    problem, truth = generate_linear_gaussian_problem(
        n_params=3,
        n_obs=20,
        seed=42,
    )

    assert problem.dimension == 3
    assert problem.names == ('y',)
    assert truth['theta'].shape == (3,)
    assert truth['data'].shape == (20,)


def test_synthetic_problem_learned_noise():
    """Learned noise scale adds one parameter under the likelihood's name."""
    from siminfer.validation import generate_linear_gaussian_problem

    problem, truth = generate_linear_gaussian_problem(n_params=2, learn_noise=True, seed=0)

    assert problem.dimension == 3
    assert problem.u0.labels() == ['model[0]', 'model[1]', 'y']


def test_standard_normal_scenario():
    """Two standard normal parameters, identity simulator, y = 1.0."""
    import pyro.distributions as dist
    from siminfer import (
        GaussianLikelihood,
        SimulatorForwardProblem,
        SimulatorInferenceProblem,
        SimulatorObservable,
    )

    obs = SimulatorObservable("obs", lambda state: state[:1])
    forward_prob = SimulatorForwardProblem(lambda p: p, obs)
    prior = dist.Normal(torch.zeros(2, dtype=torch.float64), 1.0).to_event(1)
    likelihood = GaussianLikelihood(obs, torch.tensor([1.0], dtype=torch.float64), scale=1.0)
    problem = SimulatorInferenceProblem(forward_prob, prior, likelihood)

    log_norm = -0.5 * math.log(2 * math.pi)

    lj = problem.logjoint(torch.tensor([0.0, 0.0], dtype=torch.float64))
    assert float(lj.logprior) == pytest.approx(2 * log_norm)
    assert float(lj.loglik) == pytest.approx(log_norm - 0.5)

    lj = problem.logjoint(torch.tensor([1.0, 0.0], dtype=torch.float64))
    assert float(lj.loglik) == pytest.approx(math.log(1 / math.sqrt(2 * math.pi)))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
