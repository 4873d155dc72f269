"""
Joint prior over model parameters and likelihood parameters.

Combines p(θ_model) with each likelihood's own parameter prior
(e.g. noise scales) into one structured prior:

    p(θ) = p(θ_model) * Π_l p(θ_l)
"""

import torch
import pyro.distributions as dist
from collections import OrderedDict
from torch.distributions import biject_to
from torch.distributions.transforms import (
    CatTransform,
    ComposeTransform,
    ReshapeTransform,
    Transform,
    identity_transform,
)
from typing import Optional, Tuple

from ..exceptions import DuplicateLikelihoodError, ShapeMismatchError
from ..parameters import ParameterVector

MODEL = "model"


def _component_shape(prior: Optional[dist.Distribution]) -> torch.Size:
    if prior is None:
        return torch.Size([0])
    return prior.batch_shape + prior.event_shape


class JointPrior:
    """
    Structured prior over the composite parameter vector.

    Components are ``model`` followed by one component per likelihood,
    in the order given. Likelihoods without a prior get a zero-length
    component so every likelihood name is a field of every sample.

    Parameters
    ----------
    model_prior : dist.Distribution
        Prior over the forward model parameters
    *likelihoods : SimulatorLikelihood
        Likelihoods whose ``prior`` attributes are folded in

    Raises
    ------
    DuplicateLikelihoodError
        If two likelihoods share a name, or one is named ``model``
    """

    def __init__(
        self,
        model_prior: dist.Distribution,
        *likelihoods,
    ):
        priors = OrderedDict([(MODEL, model_prior)])
        for lik in likelihoods:
            if lik.name in priors:
                raise DuplicateLikelihoodError(
                    f"Likelihood name '{lik.name}' is not unique"
                    + (" ('model' is reserved for the model prior)" if lik.name == MODEL else "")
                )
            priors[lik.name] = lik.prior

        self.model_prior = model_prior
        self.priors = priors
        self.shapes = OrderedDict((name, _component_shape(p)) for name, p in priors.items())
        self._bijector = None

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self.priors.keys())

    @property
    def dimension(self) -> int:
        return sum(shape.numel() for shape in self.shapes.values())

    def __getitem__(self, name: str) -> Optional[dist.Distribution]:
        return self.priors[name]

    def sample(self) -> ParameterVector:
        """
        Draw one joint sample.

        Returns
        -------
        theta : ParameterVector
            One field per component; ``theta.model`` holds the forward
            model parameters
        """
        components = OrderedDict()
        for name, prior in self.priors.items():
            if prior is None:
                components[name] = torch.zeros(self.shapes[name])
            else:
                components[name] = prior.sample()
        return ParameterVector.from_components(components)

    def log_prob(self, theta: ParameterVector) -> torch.Tensor:
        """
        Sum of the component log-densities at ``theta``.

        Raises
        ------
        ShapeMismatchError
            If ``theta`` does not have exactly this prior's components
        """
        if not isinstance(theta, ParameterVector) or theta.layout != self.shapes:
            layout = dict(theta.layout) if isinstance(theta, ParameterVector) else type(theta).__name__
            raise ShapeMismatchError(
                f"Parameter layout {layout} does not match prior components {dict(self.shapes)}"
            )

        logp = torch.zeros((), dtype=theta.dtype)
        for name, prior in self.priors.items():
            if prior is None:
                continue
            logp = logp + prior.log_prob(theta[name]).sum()
        return logp

    def forward_map(self, theta: ParameterVector) -> ParameterVector:
        """
        Map prior-space parameters to the space consumed by the simulator
        and likelihoods. Identity for the joint prior; must stay pure.
        """
        return theta

    def bijector(self) -> Transform:
        """
        Constrained → unconstrained transform over the flat parameter vector.

        Its inverse (``.inv``) maps unconstrained vectors into the support
        of every component and provides the log-abs-det-Jacobian needed
        for sampling in unconstrained space.

        Raises
        ------
        ValueError
            If a component's support transform changes dimensionality
        """
        if self._bijector is None:
            self._bijector = self._build_bijector()
        return self._bijector

    def _build_bijector(self) -> Transform:
        parts = []
        lengths = []
        for name, prior in self.priors.items():
            n = self.shapes[name].numel()
            if prior is None or n == 0:
                continue
            shape = self.shapes[name]
            flat = torch.Size([n])
            t = biject_to(prior.support)
            if t.forward_shape(shape) != shape:
                raise ValueError(
                    f"Support of component '{name}' ({prior.support}) needs a "
                    f"dimension-changing transform, which is not supported"
                )
            if shape != flat:
                # transform in the component's own shape, on a flat slice
                t = ComposeTransform([
                    ReshapeTransform(flat, shape),
                    t,
                    ReshapeTransform(shape, flat),
                ])
            parts.append(t)
            lengths.append(n)

        if not parts:
            return identity_transform

        # biject_to maps unconstrained -> constrained; invert for the bijector
        return CatTransform(parts, dim=-1, lengths=lengths).inv

    def __repr__(self) -> str:
        comps = ", ".join(
            f"{name}={type(p).__name__ if p is not None else None}"
            for name, p in self.priors.items()
        )
        return f"JointPrior({comps})"
