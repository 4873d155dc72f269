"""
Tests for the log-joint density pipeline.
"""

import math

import numpy as np
import pytest
import torch
import pyro.distributions as dist
from scipy import stats

from siminfer import (
    GaussianLikelihood,
    IsotropicGaussianLikelihood,
    ObservableNotComputedError,
    ParameterMismatchError,
    PoissonLikelihood,
    ShapeMismatchError,
    SimulatorForwardProblem,
    SimulatorInferenceProblem,
    SimulatorObservable,
)
from siminfer.forward import DirectSolver, solve as forward_solve


F64 = torch.float64


def _standard_normal(n=2):
    return dist.Normal(torch.zeros(n, dtype=F64), 1.0).to_event(1)


def _scenario_problem(p=None):
    """Two standard normal parameters; the observable is the first one; y = 1."""
    obs = SimulatorObservable("obs", lambda state: state[:1])
    forward_prob = SimulatorForwardProblem(lambda p: p, obs, p=p)
    likelihood = GaussianLikelihood(obs, torch.tensor([1.0], dtype=F64), scale=1.0)
    return SimulatorInferenceProblem(forward_prob, _standard_normal(), likelihood)


def _two_output_problem(which=("a", "b")):
    obs_a = SimulatorObservable("a", lambda state: state[0])
    obs_b = SimulatorObservable("b", lambda state: state[1])
    forward_prob = SimulatorForwardProblem(lambda p: p ** 2, obs_a, obs_b)
    likelihoods = {
        "a": GaussianLikelihood(obs_a, torch.tensor(0.5, dtype=F64), scale=0.3),
        "b": GaussianLikelihood(obs_b, torch.tensor(2.0, dtype=F64), scale=1.5),
    }
    return SimulatorInferenceProblem(
        forward_prob,
        _standard_normal(),
        *[likelihoods[name] for name in which],
    )


# ============================================================================
# Density values
# ============================================================================

def test_scenario_at_origin():
    problem = _scenario_problem()

    lj = problem.logjoint(torch.tensor([0.0, 0.0], dtype=F64))

    assert float(lj.logprior) == pytest.approx(2 * stats.norm.logpdf(0.0))
    assert float(lj.loglik) == pytest.approx(stats.norm.logpdf(1.0))


def test_scenario_at_observation():
    problem = _scenario_problem()

    lj = problem.logjoint([1.0, 0.0])

    assert float(lj.loglik) == pytest.approx(math.log(1 / math.sqrt(2 * math.pi)))
    assert float(lj.logprior) == pytest.approx(stats.norm.logpdf(1.0) + stats.norm.logpdf(0.0))


def test_logprob_is_sum_of_components():
    problem = _scenario_problem()
    u = torch.tensor([0.3, -0.7], dtype=F64)

    lj = problem.logjoint(u)

    assert torch.allclose(problem.logprob(u), lj.loglik + lj.logprior)
    assert torch.allclose(sum(lj), lj.loglik + lj.logprior)


def test_loglik_additive_over_likelihoods():
    u = torch.tensor([0.4, -1.2], dtype=F64)

    both = _two_output_problem(("a", "b")).logjoint(u)
    only_a = _two_output_problem(("a",)).logjoint(u)
    only_b = _two_output_problem(("b",)).logjoint(u)

    assert torch.allclose(both.loglik, only_a.loglik + only_b.loglik)
    assert torch.allclose(both.logprior, only_a.logprior)


def test_no_likelihoods():
    forward_prob = SimulatorForwardProblem(lambda p: p)
    problem = SimulatorInferenceProblem(forward_prob, _standard_normal())
    u = torch.tensor([0.5, 0.5], dtype=F64)

    lj = problem.logjoint(u)

    assert float(lj.loglik) == 0.0
    assert torch.allclose(lj.logprior, _standard_normal().log_prob(u))


def test_learned_noise_scale():
    obs = SimulatorObservable("y")
    data = torch.tensor([0.5, -0.5, 1.0], dtype=F64)
    forward_prob = SimulatorForwardProblem(lambda p: p.sum() * torch.ones(3, dtype=F64), obs)
    scale_prior = dist.LogNormal(torch.tensor(0.0, dtype=F64), 1.0)
    likelihood = IsotropicGaussianLikelihood(obs, data, scale_prior)
    problem = SimulatorInferenceProblem(forward_prob, _standard_normal(), likelihood)

    lj = problem.logjoint(torch.tensor([0.1, 0.2, 0.5], dtype=F64))

    expected = stats.norm.logpdf(data.numpy(), loc=0.3, scale=0.5).sum()
    assert float(lj.loglik) == pytest.approx(expected)
    assert float(lj.logprior) == pytest.approx(
        float(_standard_normal().log_prob(torch.tensor([0.1, 0.2], dtype=F64))
              + scale_prior.log_prob(torch.tensor(0.5, dtype=F64)))
    )


def test_poisson_counts():
    obs = SimulatorObservable("counts")
    forward_prob = SimulatorForwardProblem(torch.exp, obs)
    counts = torch.tensor([1, 0, 3])
    problem = SimulatorInferenceProblem(
        forward_prob,
        dist.Normal(torch.zeros(3, dtype=F64), 1.0).to_event(1),
        PoissonLikelihood(obs, counts),
    )
    u = torch.tensor([0.0, -1.0, 1.0], dtype=F64)

    lj = problem.logjoint(u)

    expected = stats.poisson.logpmf(counts.numpy(), np.exp(u.numpy())).sum()
    assert float(lj.loglik) == pytest.approx(expected, rel=1e-6)


# ============================================================================
# Unconstrained space
# ============================================================================

def _positive_problem():
    obs = SimulatorObservable("y")
    forward_prob = SimulatorForwardProblem(lambda p: p, obs)
    prior = dist.LogNormal(torch.zeros(2, dtype=F64), 1.0).to_event(1)
    likelihood = GaussianLikelihood(obs, torch.tensor([1.0, 2.0], dtype=F64))
    return SimulatorInferenceProblem(forward_prob, prior, likelihood)


def test_transform_adds_log_jacobian():
    problem = _positive_problem()
    x = torch.tensor([-0.3, 0.8], dtype=F64)
    theta = torch.exp(x)

    transformed = problem.logjoint(x, transform=True)
    direct = problem.logjoint(theta, transform=False)

    # exp bijector: log|det J| = sum(x)
    assert torch.allclose(transformed.logprior, direct.logprior + x.sum())
    assert torch.allclose(transformed.loglik, direct.loglik)


def test_logdensity_uses_unconstrained_space():
    problem = _positive_problem()
    x = torch.tensor([0.1, -0.4], dtype=F64)

    assert torch.allclose(
        problem.logdensity(x),
        problem.logprob(torch.exp(x)) + x.sum(),
    )


def test_identity_bijector_for_real_support():
    problem = _scenario_problem()
    u = torch.tensor([0.2, 0.9], dtype=F64)

    assert torch.allclose(problem.logdensity(u), problem.logprob(u))


def test_logdensity_is_differentiable():
    problem = _positive_problem()
    x = torch.tensor([0.1, -0.4], dtype=F64, requires_grad=True)

    problem.logdensity(x).backward()

    assert x.grad is not None
    assert torch.isfinite(x.grad).all()


def test_transform_with_learned_noise_component():
    obs = SimulatorObservable("y")
    forward_prob = SimulatorForwardProblem(lambda p: p, obs)
    scale_prior = dist.LogNormal(torch.tensor(0.0, dtype=F64), 1.0)
    likelihood = IsotropicGaussianLikelihood(obs, torch.tensor([0.5, -0.5], dtype=F64), scale_prior)
    problem = SimulatorInferenceProblem(forward_prob, _standard_normal(), likelihood)
    x = torch.tensor([0.3, -0.1, -0.7], dtype=F64)
    theta = torch.cat([x[:2], torch.exp(x[2:])])

    transformed = problem.logjoint(x, transform=True)
    direct = problem.logjoint(theta, transform=False)

    # only the noise scale goes through exp
    assert torch.allclose(transformed.logprior, direct.logprior + x[2])
    assert torch.allclose(transformed.loglik, direct.loglik)


def test_transform_with_matrix_shaped_component():
    obs = SimulatorObservable("y", lambda state: state.reshape(-1))
    forward_prob = SimulatorForwardProblem(lambda p: p, obs)
    prior = dist.LogNormal(torch.zeros(2, 2, dtype=F64), 1.0).to_event(2)
    likelihood = GaussianLikelihood(obs, torch.ones(4, dtype=F64))
    problem = SimulatorInferenceProblem(forward_prob, prior, likelihood)
    x = torch.tensor([0.1, -0.2, 0.3, -0.4], dtype=F64)

    transformed = problem.logjoint(x, transform=True)
    direct = problem.logjoint(torch.exp(x), transform=False)

    assert problem.u0.layout["model"] == torch.Size([2, 2])
    assert torch.allclose(transformed.logprior, direct.logprior + x.sum())
    assert torch.allclose(transformed.loglik, direct.loglik)


# ============================================================================
# Forward-solve bypass
# ============================================================================

def test_logjoint_from_solution_matches_forward_solve():
    problem = _two_output_problem()
    u = problem.u0.with_data(torch.tensor([0.7, -0.2], dtype=F64))

    forward_sol = forward_solve(problem.forward_prob, DirectSolver(), p=u.model)
    from_solution = problem.logjoint_from_solution(forward_sol, u)
    solved = problem.logjoint(u, forward_solve=True)

    assert torch.allclose(from_solution.loglik, solved.loglik)
    assert torch.allclose(from_solution.logprior, solved.logprior)


def test_logjoint_from_solution_transformed():
    problem = _positive_problem()
    x = torch.tensor([0.2, 0.1], dtype=F64)

    forward_sol = forward_solve(problem.forward_prob, p=torch.exp(x))
    lj = problem.logjoint_from_solution(forward_sol, x, transform=True)

    assert torch.allclose(sum(lj), problem.logdensity(x))


def test_logjoint_from_solution_missing_observable():
    problem = _two_output_problem()
    other = SimulatorForwardProblem(lambda p: p, SimulatorObservable("a", lambda s: s[0]))
    forward_sol = forward_solve(other, p=torch.zeros(2, dtype=F64))

    with pytest.raises(KeyError):
        problem.logjoint_from_solution(forward_sol, torch.zeros(2, dtype=F64))


def test_solution_requires_matching_parameters():
    problem = _scenario_problem()
    forward_sol = problem.simulate(torch.zeros(2, dtype=F64))

    lj = problem.logjoint_from_solution(forward_sol, torch.zeros(2, dtype=F64))
    assert float(lj.loglik) == pytest.approx(stats.norm.logpdf(1.0))

    with pytest.raises(ParameterMismatchError):
        problem.logjoint_from_solution(forward_sol, torch.tensor([1.0, 0.0], dtype=F64))


def test_no_forward_solve_without_parameters():
    problem = _scenario_problem()

    with pytest.raises(ParameterMismatchError):
        problem.logjoint(torch.zeros(2, dtype=F64), forward_solve=False)


def test_no_forward_solve_before_simulation():
    problem = _scenario_problem(p=torch.zeros(2, dtype=F64))

    with pytest.raises(ObservableNotComputedError):
        problem.logjoint(torch.zeros(2, dtype=F64), forward_solve=False)


# ============================================================================
# Evaluation leaves the problem untouched
# ============================================================================

def test_logjoint_leaves_problem_untouched():
    problem = _scenario_problem()
    obs = problem.forward_prob.observables["obs"]

    problem.logjoint(torch.tensor([1.0, 0.0], dtype=F64))
    problem.logdensity(torch.tensor([0.5, 0.5], dtype=F64))

    assert not obs.is_computed
    assert not problem.likelihoods["obs"].obs.is_computed
    assert problem.forward_prob.p is None


def test_cached_solution_survives_other_evaluations():
    problem = _scenario_problem()
    theta = torch.tensor([1.0, 0.0], dtype=F64)
    forward_sol = problem.simulate(theta)

    first = problem.logjoint_from_solution(forward_sol, theta)
    problem.logjoint(torch.tensor([5.0, 0.0], dtype=F64))
    problem.simulate(torch.tensor([-3.0, 0.0], dtype=F64))
    second = problem.logjoint_from_solution(forward_sol, theta)

    assert float(first.loglik) == pytest.approx(stats.norm.logpdf(0.0))
    assert torch.equal(first.loglik, second.loglik)
    assert torch.equal(first.logprior, second.logprior)


def test_simulate_returns_independent_solutions():
    problem = _scenario_problem()

    sol1 = problem.simulate(torch.tensor([1.0, 0.0], dtype=F64))
    sol2 = problem.simulate(torch.tensor([3.0, 0.0], dtype=F64))

    assert sol1.observables["obs"] is not sol2.observables["obs"]
    assert sol1.observables["obs"] is not problem.observables["obs"]
    assert torch.equal(sol1.observables["obs"].retrieve(), torch.tensor([1.0], dtype=F64))
    assert torch.equal(sol2.observables["obs"].retrieve(), torch.tensor([3.0], dtype=F64))
    assert torch.equal(sol1.prob.p, torch.tensor([1.0, 0.0], dtype=F64))


# ============================================================================
# Errors
# ============================================================================

def test_wrong_parameter_count():
    problem = _scenario_problem()

    with pytest.raises(ShapeMismatchError):
        problem.logjoint(torch.zeros(3, dtype=F64))


def test_simulator_errors_propagate():
    def failing(p):
        raise RuntimeError("solver diverged")

    forward_prob = SimulatorForwardProblem(failing)
    likelihood = GaussianLikelihood(forward_prob.observables["y"], torch.zeros(2, dtype=F64))
    problem = SimulatorInferenceProblem(forward_prob, _standard_normal(), likelihood)

    with pytest.raises(RuntimeError, match="solver diverged"):
        problem.logdensity(torch.zeros(2, dtype=F64))


def test_solve_kwargs_reach_simulator():
    def scaled(p, factor=1.0):
        return factor * p

    obs = SimulatorObservable("y")
    forward_prob = SimulatorForwardProblem(scaled, obs)
    likelihood = GaussianLikelihood(obs, torch.tensor([2.0, 2.0], dtype=F64))
    problem = SimulatorInferenceProblem(forward_prob, _standard_normal(), likelihood)
    u = torch.ones(2, dtype=F64)

    lj = problem.logjoint(u, factor=2.0)

    assert float(lj.loglik) == pytest.approx(2 * stats.norm.logpdf(0.0))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
