from __future__ import annotations


class ADStarError(Exception):
    """Base class for every error raised by the search engine."""


class UnreachableGoalError(ADStarError):
    """No finite-cost path to the requested goal is known (yet)."""


class InvalidEpsilonError(ADStarError, ValueError):
    """Epsilon below 1 or raised instead of lowered."""


class NegativeCostError(ADStarError, ValueError):
    """An edge cost was negative or not a number."""


class InvalidHeuristicError(ADStarError, ValueError):
    """A heuristic estimate was negative or not a number."""


class InconsistentCollaboratorError(ADStarError):
    """Forward and reverse transition functions disagree about an edge."""
