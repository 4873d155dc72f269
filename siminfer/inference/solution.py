"""
Container for the results of an inference algorithm.
"""

from typing import Any, Optional


class SimulatorInferenceSolution:
    """
    Generic solution of a SimulatorInferenceProblem.

    The type of ``result`` depends on the algorithm and should hold its
    final product (e.g. posterior samples). ``storage`` records the
    simulator inputs and outputs seen during inference.

    Parameters
    ----------
    prob : SimulatorInferenceProblem
        Problem that was solved
    alg : Any
        Algorithm that produced the solution
    storage : Optional[SimulationArrayStorage]
        Recorded simulator inputs/outputs
    result : Any
        Algorithm-specific result
    """

    def __init__(
        self,
        prob,
        alg: Any,
        storage: Optional[Any] = None,
        result: Any = None,
    ):
        self.prob = prob
        self.alg = alg
        self.storage = storage
        self.result = result

    def getinputs(self, *args):
        """Recorded simulator inputs; ``args`` are passed to the storage."""
        return self.storage.getinputs(*args)

    def getoutputs(self, *args):
        """Recorded simulator outputs; ``args`` are passed to the storage."""
        return self.storage.getoutputs(*args)

    def __repr__(self) -> str:
        n = len(self.storage) if self.storage is not None else 0
        return (
            f"SimulatorInferenceSolution(alg={type(self.alg).__name__}, "
            f"n_simulations={n}, result={type(self.result).__name__})"
        )
