"""
Simulation-based inference problem.

Defines the log-joint density

    log p(D, θ) = Σ_l log p(D_l | θ) + log p(θ)

for a forward simulator, a joint prior and a set of named likelihoods.
Samplers call ``logdensity(x)`` with ``x`` in unconstrained space; the
problem maps ``x`` into the prior's support, runs the simulator and sums
the likelihood terms.
"""

import torch
from collections import OrderedDict, namedtuple
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from ..exceptions import DuplicateLikelihoodError, ParameterMismatchError, ShapeMismatchError
from ..forward.solver import init_solver
from ..likelihoods.base import SimulatorLikelihood
from ..parameters import ParameterVector
from ..priors.joint import JointPrior

LogJoint = namedtuple("LogJoint", ["loglik", "logprior"])

_MISSING = object()


def _with_names(likelihoods) -> "OrderedDict[str, SimulatorLikelihood]":
    """Key likelihoods by name, rejecting duplicates."""
    if isinstance(likelihoods, Mapping):
        likelihoods = likelihoods.values()

    named = OrderedDict()
    for lik in likelihoods:
        if lik.name in named:
            raise DuplicateLikelihoodError(f"Likelihood name '{lik.name}' is not unique")
        named[lik.name] = lik
    return named


def _isapprox(a: torch.Tensor, b: torch.Tensor) -> bool:
    """Elementwise relative comparison with tolerance sqrt(eps)."""
    # not torch.isclose: its tolerance scales with |b| only, not max(|a|, |b|)
    rtol = torch.finfo(a.dtype).eps ** 0.5
    close = (a == b) | ((a - b).abs() <= rtol * torch.maximum(a.abs(), b.abs()))
    return bool(close.all())


def _field_equal(a: Any, b: Any) -> bool:
    if a is b:
        return True
    if isinstance(a, torch.Tensor) or isinstance(b, torch.Tensor):
        return (
            isinstance(a, torch.Tensor)
            and isinstance(b, torch.Tensor)
            and a.shape == b.shape
            and torch.equal(a, b)
        )
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        return list(a.keys()) == list(b.keys()) and all(
            _field_equal(a[k], b[k]) for k in a
        )
    return bool(a == b)


class SimulatorInferenceProblem:
    """
    Generic simulation-based Bayesian inference problem.

    The problem is immutable by convention: use ``remake`` to obtain a
    copy with different fields. Attributes that are not fields of the
    problem are looked up on the forward problem, e.g.
    ``problem.observables``.

    Parameters
    ----------
    forward_prob : SimulatorForwardProblem
        Forward simulation specification
    prior : dist.Distribution
        Prior over the forward model parameters
    *likelihoods : SimulatorLikelihood
        Named likelihoods; their parametric priors join the joint prior
    forward_solver : Optional[Any]
        Forward solver configuration (None = no solver configured;
        the simulator is called directly)
    metadata : Optional[Dict]
        Free-form user data, never interpreted

    Raises
    ------
    DuplicateLikelihoodError
        If two likelihoods share a name

    Examples
    --------
    >>> fp = SimulatorForwardProblem(simulator, SimulatorObservable("y"))
    >>> prob = SimulatorInferenceProblem(fp, dist.Normal(torch.zeros(2), 1.0).to_event(1),
    ...                                  GaussianLikelihood(fp.observables["y"], y_obs))
    >>> prob.logdensity(torch.zeros(2))
    """

    _fields = ("u0", "forward_prob", "forward_solver", "prior", "likelihoods", "metadata")

    # log-density only; no gradient interface is advertised
    capabilities = 0

    def __init__(
        self,
        forward_prob,
        prior,
        *likelihoods: SimulatorLikelihood,
        forward_solver: Optional[Any] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        named = _with_names(likelihoods)
        joint_prior = JointPrior(prior, *named.values())
        u0 = joint_prior.sample().zeros_like()

        self._set_fields(
            u0=u0,
            forward_prob=forward_prob,
            forward_solver=forward_solver,
            prior=joint_prior,
            likelihoods=named,
            metadata=dict(metadata) if metadata is not None else {},
        )

    @classmethod
    def from_fields(
        cls,
        u0: ParameterVector,
        forward_prob,
        forward_solver,
        prior: JointPrior,
        likelihoods: Union[Mapping[str, SimulatorLikelihood], Iterable[SimulatorLikelihood]],
        metadata: Dict[str, Any],
    ) -> "SimulatorInferenceProblem":
        """
        Build a problem directly from its fields.

        No consistency check between ``u0``, ``prior`` and ``likelihoods``
        is made; the caller is responsible for it.
        """
        obj = cls.__new__(cls)
        obj._set_fields(
            u0=u0,
            forward_prob=forward_prob,
            forward_solver=forward_solver,
            prior=prior,
            likelihoods=_with_names(likelihoods),
            metadata=metadata,
        )
        return obj

    def _set_fields(self, **fields):
        for name in self._fields:
            object.__setattr__(self, name, fields[name])

    def remake(self, **overrides) -> "SimulatorInferenceProblem":
        """
        Copy with overridden fields; the original is left untouched.

        Overriding ``prior`` or ``likelihoods`` does not re-derive ``u0``.

        Parameters
        ----------
        **overrides
            Any of u0, forward_prob, forward_solver, prior, likelihoods, metadata

        Returns
        -------
        problem : SimulatorInferenceProblem
        """
        unknown = set(overrides) - set(self._fields)
        if unknown:
            raise TypeError(f"Unknown inference problem fields: {sorted(unknown)}")

        fields = {name: overrides.get(name, getattr(self, name)) for name in self._fields}
        return type(self).from_fields(**fields)

    # ---- property access ----

    def __getattr__(self, name: str):
        # reached only for names that are not fields, methods or properties
        if name.startswith("_") or name in self._fields:
            raise AttributeError(name)

        forward_prob = self.__dict__.get("forward_prob")
        value = getattr(forward_prob, name, _MISSING)
        if value is _MISSING:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}', "
                f"and neither does its forward problem ({type(forward_prob).__name__})"
            )
        return value

    def __setattr__(self, name, value):
        raise AttributeError(
            f"{type(self).__name__} is immutable; use remake({name}=...) instead"
        )

    def __dir__(self):
        names = set(super().__dir__())
        names.update(dir(self.__dict__.get("forward_prob")))
        return sorted(names)

    @property
    def names(self):
        """Likelihood names, in insertion order."""
        return tuple(self.likelihoods.keys())

    @property
    def dimension(self) -> int:
        """Number of (unconstrained) parameters."""
        return len(self.u0)

    def bijector(self):
        """Constrained → unconstrained transform of the joint prior."""
        return self.prior.bijector()

    # ---- log-joint pipeline ----

    def logjoint(
        self,
        u,
        transform: bool = False,
        forward_solve: bool = True,
        **solve_kwargs,
    ) -> LogJoint:
        """
        Evaluate the log-joint components log p(D | θ) and log p(θ).

        Parameters
        ----------
        u : torch.Tensor, array-like or ParameterVector
            Candidate parameters, same layout as ``u0``
        transform : bool
            If True, ``u`` is in unconstrained space and is mapped through
            the inverse bijector first; the log-abs-det-Jacobian of that
            map is added to the log-prior
        forward_solve : bool
            If True, run the forward simulation at ``θ.model`` into a fresh
            forward solution; the problem itself is not modified. If False,
            the stored forward problem must already hold ``θ.model`` and
            its observables are used as they are.
        **solve_kwargs
            Passed through to the forward solver

        Returns
        -------
        logjoint : LogJoint
            Named tuple (loglik, logprior) of 0-dim tensors

        Raises
        ------
        ShapeMismatchError
            If ``u`` does not match the layout of ``u0``
        ParameterMismatchError
            If ``forward_solve=False`` and the forward problem parameters
            differ from ``θ.model``
        """
        uvec = self.u0.with_data(u)
        logprior = torch.zeros((), dtype=uvec.dtype)

        # transform from unconstrained space if necessary
        if transform:
            f = self.bijector().inv
            theta = uvec.with_data(f(uvec.data))
            logprior = logprior + f.log_abs_det_jacobian(uvec.data, theta.data).sum()
        else:
            theta = uvec

        logprior = logprior + self.prior.log_prob(theta)

        if forward_solve:
            loglik = self._forward_eval(theta, **solve_kwargs)
        else:
            self._check_forward_parameters(theta)
            loglik = self._sum_loglikelihoods(theta)

        return LogJoint(loglik, logprior)

    def logjoint_from_solution(
        self,
        forward_sol,
        u,
        transform: bool = False,
        **solve_kwargs,
    ) -> LogJoint:
        """
        Evaluate the log-joint against an already computed forward solution.

        Each likelihood is rebound to the observable of the same name in
        ``forward_sol``, and the density is computed without re-running
        the simulator. ``forward_sol`` owns its observables, so repeated
        calls give the same result whatever else was evaluated in between.

        Parameters
        ----------
        forward_sol : SimulatorForwardSolution
            Solution produced at ``θ.model``
        u : torch.Tensor, array-like or ParameterVector
            Candidate parameters
        transform : bool
            Whether ``u`` is in unconstrained space

        Returns
        -------
        logjoint : LogJoint

        Raises
        ------
        KeyError
            If ``forward_sol`` lacks an observable a likelihood refers to
        """
        new_likelihoods = self._bind_likelihoods(forward_sol.prob.observables)
        new_prob = self.remake(forward_prob=forward_sol.prob, likelihoods=new_likelihoods)
        return new_prob.logjoint(u, transform=transform, forward_solve=False, **solve_kwargs)

    def logprob(self, u) -> torch.Tensor:
        """log p(D, θ) for ``u`` already in constrained space."""
        return sum(self.logjoint(u, transform=False))

    def logdensity(self, x, **solve_kwargs) -> torch.Tensor:
        """
        Log-density in unconstrained space, as used by samplers.

        Note that this runs the forward simulation.
        """
        return sum(self.logjoint(x, transform=True, **solve_kwargs))

    def simulate(self, u, **solve_kwargs):
        """
        Run the forward simulation at constrained parameters ``u``.

        The problem itself is not modified; the returned solution holds
        its own observables and can be passed to ``logjoint_from_solution``.

        Parameters
        ----------
        u : torch.Tensor, array-like or ParameterVector
            Parameters in constrained space, same layout as ``u0``
        **solve_kwargs
            Passed through to the forward solver

        Returns
        -------
        forward_sol : SimulatorForwardSolution
        """
        zeta = self.prior.forward_map(self.u0.with_data(u))
        return self._simulate_at(zeta, **solve_kwargs)

    def _simulate_at(self, zeta: ParameterVector, **solve_kwargs):
        solver = init_solver(self.forward_prob, self.forward_solver, p=zeta.model, **solve_kwargs)
        return solver.solve()

    def _forward_eval(self, theta: ParameterVector, **solve_kwargs) -> torch.Tensor:
        zeta = self.prior.forward_map(theta)
        forward_sol = self._simulate_at(zeta, **solve_kwargs)
        return self._sum_loglikelihoods(zeta, self._bind_likelihoods(forward_sol.observables))

    def _bind_likelihoods(self, observables) -> "OrderedDict[str, SimulatorLikelihood]":
        """Rebind each likelihood to the observable named like its own."""
        bound = OrderedDict()
        for name, lik in self.likelihoods.items():
            obs_name = lik.obs.name
            if obs_name not in observables:
                raise KeyError(
                    f"Forward solution has no observable '{obs_name}' "
                    f"(needed by likelihood '{name}'); available: {list(observables)}"
                )
            bound[name] = lik.remake(obs=observables[obs_name])
        return bound

    def _sum_loglikelihoods(self, theta: ParameterVector, likelihoods=None) -> torch.Tensor:
        if likelihoods is None:
            likelihoods = self.likelihoods
        loglik = torch.zeros((), dtype=theta.dtype)
        for name, lik in likelihoods.items():
            if name not in theta:
                raise ShapeMismatchError(
                    f"Parameters have no component for likelihood '{name}'; "
                    f"components are {theta.names}"
                )
            loglik = loglik + lik.loglikelihood(theta[name])
        return loglik

    def _check_forward_parameters(self, theta: ParameterVector):
        p = getattr(self.forward_prob, "p", None)
        model = theta.model
        if p is None:
            raise ParameterMismatchError(
                "forward problem has no model parameters to compare against"
            )
        p = torch.as_tensor(p, dtype=model.dtype)
        if p.numel() != model.numel() or not _isapprox(model.detach().reshape(-1), p.detach().reshape(-1)):
            raise ParameterMismatchError(
                "forward problem model parameters do not match the given parameters"
            )

    # ---- comparison / display ----

    def __eq__(self, other) -> bool:
        if not isinstance(other, SimulatorInferenceProblem):
            return NotImplemented
        return all(_field_equal(getattr(self, f), getattr(other, f)) for f in self._fields)

    __hash__ = None

    def summary(self) -> str:
        """Human-readable description of the problem."""
        forward_prob = self.forward_prob
        observables = getattr(forward_prob, "observables", {})
        simulator = getattr(forward_prob, "prob", forward_prob)
        sim_name = getattr(simulator, "__name__", type(simulator).__name__)
        solver = "none" if self.forward_solver is None else type(self.forward_solver).__name__

        lines = [
            f"{type(self).__name__} with {len(self.u0)} parameters and {len(self.likelihoods)} likelihoods",
            f"    Parameters: {self.u0.labels()}",
            f"    Likelihoods: {list(self.likelihoods)}",
            f"    Observables: {list(observables)}",
            f"    Forward problem type: {type(forward_prob).__name__} (simulator: {sim_name})",
            f"    Forward solver: {solver}",
            f"    Prior type: {type(self.prior).__name__}",
            f"    Metadata: {self.metadata}",
        ]
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.summary()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n_params={len(self.u0)}, "
            f"likelihoods={list(self.likelihoods)})"
        )
