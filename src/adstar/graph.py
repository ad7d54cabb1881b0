from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator
from dataclasses import dataclass, field
import math
from typing import Generic, cast

from .core.types import HeuristicFn, S as State, Transition
from .errors import NegativeCostError

Cell = tuple[int, int]


class DirectedGraph(Generic[State]):
    """Weighted digraph whose edge costs can change between search steps.

    ``successors`` and ``predecessors`` yield the same :class:`Transition`
    value for a given edge, so they can be handed to the search as its
    forward and reverse transition functions and ``cost`` as its cost function.
    """

    def __init__(self) -> None:
        self._succ: dict[State, dict[State, float]] = {}
        self._pred: dict[State, dict[State, float]] = {}

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[State, State, float]]) -> DirectedGraph[State]:
        graph: DirectedGraph[State] = cls()
        for u, v, c in edges:
            graph.add_edge(u, v, c)
        return graph

    def add_vertex(self, v: State) -> None:
        self._succ.setdefault(v, {})
        self._pred.setdefault(v, {})

    def add_edge(self, u: State, v: State, cost: float) -> Transition[State]:
        cost = float(cost)
        if math.isnan(cost) or cost < 0.0:
            raise NegativeCostError(f"edge {u!r} -> {v!r} cannot cost {cost!r}")
        self.add_vertex(u)
        self.add_vertex(v)
        self._succ[u][v] = cost
        self._pred[v][u] = cost
        return Transition(u, v)

    def connect(self, u: State, v: State, cost: float) -> None:
        self.add_edge(u, v, cost)
        self.add_edge(v, u, cost)

    def transition(self, u: State, v: State) -> Transition[State]:
        if v not in self._succ.get(u, {}):
            raise KeyError((u, v))
        return Transition(u, v)

    def set_cost(self, u: State, v: State, cost: float) -> Transition[State]:
        self.transition(u, v)
        return self.add_edge(u, v, cost)

    def successors(self, state: State) -> Iterator[Transition[State]]:
        for v in self._succ.get(state, {}):
            yield Transition(state, v)

    def predecessors(self, state: State) -> Iterator[Transition[State]]:
        for u in self._pred.get(state, {}):
            yield Transition(u, state)

    def cost(self, transition: Transition[State]) -> float:
        return self._succ[cast(State, transition.origin)][transition.destination]

    def vertices(self) -> list[State]:
        return list(self._succ)

    def edges(self) -> Iterator[tuple[State, State, float]]:
        for u, out in self._succ.items():
            for v, c in out.items():
                yield u, v, c

    def __contains__(self, v: Hashable) -> bool:
        return v in self._succ


_DIRS4 = [(1, 0), (-1, 0), (0, 1), (0, -1)]
_DIRS8 = _DIRS4 + [(1, 1), (1, -1), (-1, 1), (-1, -1)]


@dataclass
class GridWorld:  # pylint: disable=too-many-instance-attributes
    """4- or 8-connected grid where entering a cell costs ``step * terrain``.

    Walls stay in the graph as infinite-cost edges, so blocking and unblocking
    a cell only changes costs. Each mutator returns the ``(transition, cost)``
    pairs that the search must be told about.
    """

    width: int
    height: int
    walls: set[Cell] = field(default_factory=set)
    step: float = 1.0
    diagonal: bool = False
    terrain: dict[Cell, float] = field(default_factory=dict)
    graph: DirectedGraph[Cell] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.graph = DirectedGraph()
        for x in range(self.width):
            for y in range(self.height):
                p = (x, y)
                self.graph.add_vertex(p)
                for q, unit in self._moves(p):
                    self.graph.add_edge(p, q, self._entry_cost(q, unit))

    def in_bounds(self, p: Cell) -> bool:
        x, y = p
        return 0 <= x < self.width and 0 <= y < self.height

    def passable(self, p: Cell) -> bool:
        return p not in self.walls

    def _moves(self, p: Cell) -> Iterator[tuple[Cell, float]]:
        x, y = p
        for dx, dy in _DIRS8 if self.diagonal else _DIRS4:
            q = (x + dx, y + dy)
            if self.in_bounds(q):
                yield q, (self.step if dx == 0 or dy == 0 else math.sqrt(2) * self.step)

    def _entry_cost(self, q: Cell, unit: float) -> float:
        if not self.passable(q):
            return math.inf
        return unit * self.terrain.get(q, 1.0)

    def _refresh(self, q: Cell) -> list[tuple[Transition[Cell], float]]:
        changed = []
        for p, unit in self._moves(q):
            # moves are symmetric: p reaches q with the same unit length
            cost = self._entry_cost(q, unit)
            changed.append((self.graph.set_cost(p, q, cost), cost))
        return changed

    def block(self, cell: Cell) -> list[tuple[Transition[Cell], float]]:
        self.walls.add(cell)
        return self._refresh(cell)

    def unblock(self, cell: Cell) -> list[tuple[Transition[Cell], float]]:
        self.walls.discard(cell)
        return self._refresh(cell)

    def set_terrain(self, cell: Cell, factor: float) -> list[tuple[Transition[Cell], float]]:
        if factor < 1.0:
            raise ValueError("terrain factors below 1 would break the grid heuristics")
        self.terrain[cell] = float(factor)
        return self._refresh(cell)

    def manhattan(self, goal: Cell) -> HeuristicFn[Cell]:
        def h(p: Cell) -> float:
            return (abs(p[0] - goal[0]) + abs(p[1] - goal[1])) * self.step

        return cast(HeuristicFn[Cell], h)

    def octile(self, goal: Cell) -> HeuristicFn[Cell]:
        def h(p: Cell) -> float:
            dx = abs(p[0] - goal[0])
            dy = abs(p[1] - goal[1])
            dmin, dmax = (dx if dx < dy else dy), (dx if dx >= dy else dy)
            return ((dmax - dmin) + math.sqrt(2) * dmin) * self.step

        return cast(HeuristicFn[Cell], h)
