"""
Inference algorithm interface and the generic ``solve`` entry point.
"""

import logging
from typing import Optional

from .solution import SimulatorInferenceSolution
from .storage import SimulationArrayStorage

logger = logging.getLogger(__name__)


class SimulatorInferenceAlgorithm:
    """
    Base class for inference algorithms.

    Subclasses implement ``solve(problem, storage, **kwargs)`` and return
    a SimulatorInferenceSolution.
    """

    def solve(
        self,
        problem,
        storage: SimulationArrayStorage,
        **kwargs,
    ) -> SimulatorInferenceSolution:
        raise NotImplementedError

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({params})"


def solve(
    problem,
    alg: SimulatorInferenceAlgorithm,
    storage: Optional[SimulationArrayStorage] = None,
    **kwargs,
) -> SimulatorInferenceSolution:
    """
    Solve an inference problem with the given algorithm.

    Parameters
    ----------
    problem : SimulatorInferenceProblem
        Problem to solve
    alg : SimulatorInferenceAlgorithm
        Inference algorithm
    storage : Optional[SimulationArrayStorage]
        Where simulator inputs/outputs are recorded (None = new in-memory storage)
    **kwargs
        Algorithm-specific options, passed through to ``alg.solve``

    Returns
    -------
    solution : SimulatorInferenceSolution
    """
    if storage is None:
        storage = SimulationArrayStorage()

    logger.info(f"Solving inference problem ({problem.dimension} parameters) with {type(alg).__name__}...")
    solution = alg.solve(problem, storage, **kwargs)
    logger.info(f"Done! Recorded {len(solution.storage)} simulations.")

    return solution
