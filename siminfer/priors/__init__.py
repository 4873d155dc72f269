"""
Prior module: the joint prior over model and likelihood parameters.
"""

from .joint import JointPrior, MODEL

__all__ = [
    "JointPrior",
    "MODEL",
]
