from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
import enum
import math
from typing import Generic

from .core.types import HeuristicFn, S as State, Transition
from .errors import InvalidHeuristicError


class Membership(enum.Enum):
    NONE = "none"
    OPEN = "open"
    CLOSED = "closed"
    INCONS = "incons"


@dataclass(eq=False)
class Node(Generic[State]):  # pylint: disable=too-many-instance-attributes
    """Search record of one state.

    ``g`` is the one-step lookahead cost-to-come (minimum over predecessors of
    ``v + cost``), ``v`` the value held at the last expansion. ``parent`` is
    the arena index of the back-pointer node and ``transition`` the edge that
    realizes ``g``.
    """

    index: int
    state: State
    h: float
    g: float = math.inf
    v: float = math.inf
    parent: int | None = None
    transition: Transition[State] | None = None
    membership: Membership = Membership.NONE
    queued_key: tuple[float, float] | None = field(default=None, repr=False)

    @property
    def consistent(self) -> bool:
        return self.g == self.v

    @property
    def overconsistent(self) -> bool:
        return self.v > self.g

    @property
    def underconsistent(self) -> bool:
        return self.v < self.g


class NodeStore(Generic[State]):
    """Arena holding exactly one :class:`Node` per visited state."""

    def __init__(self, h: HeuristicFn[State]) -> None:
        self.h = h
        self._nodes: list[Node[State]] = []
        self._index: dict[State, int] = {}

    def get_or_create(self, state: State) -> Node[State]:
        idx = self._index.get(state)
        if idx is not None:
            return self._nodes[idx]
        h = float(self.h(state))
        if not math.isfinite(h) or h < 0.0:
            raise InvalidHeuristicError(f"heuristic returned {h!r} for state {state!r}")
        node = Node(index=len(self._nodes), state=state, h=h)
        self._index[state] = node.index
        self._nodes.append(node)
        return node

    def existing(self, state: State) -> Node[State] | None:
        idx = self._index.get(state)
        return None if idx is None else self._nodes[idx]

    def __getitem__(self, index: int) -> Node[State]:
        return self._nodes[index]

    def __contains__(self, state: object) -> bool:
        return state in self._index

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node[State]]:
        return iter(self._nodes)
