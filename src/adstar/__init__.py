"""adstar: Anytime Dynamic A* with incremental repair.

Public API:
- ADStar driver with ADStarParams / SearchStats / StepResult
- Node store and OPEN/CLOSED/INCONS bookkeeping
- DirectedGraph and GridWorld collaborators for experiments
"""
from .ad_star import ADStar, ADStarParams, Phase, SearchStats, StepKind, StepResult
from .core.types import Transition
from .errors import (
    ADStarError,
    InconsistentCollaboratorError,
    InvalidEpsilonError,
    InvalidHeuristicError,
    NegativeCostError,
    UnreachableGoalError,
)
from .frontier import ConsistencySets
from .graph import DirectedGraph, GridWorld
from .node import Membership, Node, NodeStore

__all__ = [
    "ADStar", "ADStarParams", "Phase", "SearchStats", "StepKind", "StepResult",
    "Transition", "Node", "NodeStore", "Membership", "ConsistencySets",
    "DirectedGraph", "GridWorld",
    "ADStarError", "UnreachableGoalError", "InvalidEpsilonError", "NegativeCostError",
    "InvalidHeuristicError", "InconsistentCollaboratorError",
]

__version__ = "0.1.0"
