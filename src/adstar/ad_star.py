from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
import enum
import math
import time
from typing import Any, Generic

from .core.types import CostFn, HeuristicFn, S as State, Transition, TransitionFn
from .errors import (
    ADStarError,
    InconsistentCollaboratorError,
    InvalidEpsilonError,
    NegativeCostError,
    UnreachableGoalError,
)
from .frontier import ConsistencySets, Key
from .logging import get_logger as _get_logger
from .node import Node, NodeStore


class Phase(enum.Enum):
    EXPANDING = "expanding"
    CONVERGED = "converged"
    AWAITING_CHANGE = "awaiting_change"


class StepKind(enum.Enum):
    OVERCONSISTENT = "overconsistent"
    UNDERCONSISTENT = "underconsistent"
    CONVERGED = "converged"


@dataclass(frozen=True)
class StepResult(Generic[State]):
    kind: StepKind
    node: Node[State] | None = None


@dataclass
class SearchStats:
    expansions: int = 0
    overconsistent: int = 0
    underconsistent: int = 0
    generated: int = 0
    edge_changes: int = 0
    episodes: int = 1
    runtime_ms: float = 0.0


@dataclass
class ADStarParams:
    epsilon: float = 2.0
    tie_break: str = "g_low"
    max_expansions: int | None = None
    max_runtime_ms: float | None = None
    log_every: int | None = None


@dataclass
class _Lookahead(Generic[State]):
    node: Node[State]
    g: float
    parent: int | None
    transition: Transition[State] | None


def _check_cost(cost: float, transition: Transition[Any]) -> float:
    if math.isnan(cost) or cost < 0.0:
        raise NegativeCostError(f"cost {cost!r} for {transition!r}")
    return cost


class ADStar(Generic[State]):  # pylint: disable=too-many-instance-attributes
    """Anytime Dynamic A* driven one node at a time.

    ``successors(s)`` yields transitions leaving ``s`` and ``predecessors(s)``
    yields transitions entering ``s``; both must describe the same edges with
    equal :class:`Transition` values. Each :meth:`step` processes one node,
    so callers can interleave search with other work, lower epsilon, or
    report changed edge costs between steps.
    """

    def __init__(
        self,
        start: State,
        goals: Iterable[State],
        successors: TransitionFn[State],
        predecessors: TransitionFn[State],
        cost: CostFn[State],
        h: HeuristicFn[State],
        *,
        params: ADStarParams | None = None,
        logger: Any | None = None,
    ) -> None:
        cfg = params or ADStarParams()
        if not cfg.epsilon >= 1.0:
            raise InvalidEpsilonError(f"epsilon must be >= 1, got {cfg.epsilon!r}")
        if cfg.tie_break not in ("g_low", "g_high"):
            raise ValueError(f"unknown tie_break {cfg.tie_break!r}")
        self.successors = successors
        self.predecessors = predecessors
        self.cost = cost
        self.h = h
        self.tie_break = cfg.tie_break
        self.max_expansions = cfg.max_expansions
        self.max_runtime_ms = cfg.max_runtime_ms
        self.log_every = cfg.log_every
        self.logger = logger or _get_logger(__name__)
        self._epsilon = float(cfg.epsilon)
        self._overrides: dict[Transition[State], float] = {}
        self.store: NodeStore[State] = NodeStore(h)
        self.sets: ConsistencySets[State] = ConsistencySets(self.store, self._key)
        self.stats = SearchStats()
        self._phase = Phase.EXPANDING

        self._start = self.store.get_or_create(start)
        self._start.g = 0.0
        self._start.transition = Transition(None, start)
        self._goals = [self.store.get_or_create(s) for s in dict.fromkeys(goals)]
        if not self._goals:
            raise ValueError("at least one goal state is required")
        self.sets.insert_open(self._start)

    # keys and costs

    def _key(self, node: Node[State]) -> Key:
        if node.v >= node.g:
            k1, k2 = node.g + self._epsilon * node.h, node.g
        else:
            k1, k2 = node.v + node.h, node.v
        return (k1, k2) if self.tie_break == "g_low" else (k1, -k2)

    def _cost(self, transition: Transition[State]) -> float:
        override = self._overrides.get(transition)
        if override is not None:
            return override
        return _check_cost(float(self.cost(transition)), transition)

    def _lookahead(
        self,
        node: Node[State],
        expected_origin: State | None,
        dropped: Node[State] | None = None,
    ) -> _Lookahead[State]:
        """Best ``v(p) + c(p, node)`` over the predecessors of ``node``.

        ``dropped`` is counted with ``v = inf``; ``expected_origin`` must show
        up among the predecessor edges.
        """
        best = _Lookahead(node, math.inf, None, None)
        seen_expected = expected_origin is None
        for t in self.predecessors(node.state):
            if t.origin is None:
                continue
            if not seen_expected and t.origin == expected_origin:
                seen_expected = True
            pred = self.store.existing(t.origin)
            if pred is None or pred is dropped or math.isinf(pred.v):
                continue
            candidate = pred.v + self._cost(t)
            if candidate < best.g:
                best.g, best.parent, best.transition = candidate, pred.index, t
        if not seen_expected:
            raise InconsistentCollaboratorError(
                f"no predecessor edge {expected_origin!r} -> {node.state!r} "
                "although the successor function reports one"
            )
        return best

    def _apply(self, upd: _Lookahead[State]) -> None:
        node = upd.node
        node.g, node.parent, node.transition = upd.g, upd.parent, upd.transition
        self.sets.update(node)

    # convergence

    def _settled_goal(self) -> Node[State] | None:
        best = self.sets.best_key()
        for goal in self._goals:
            # the start's g = 0 is final even before its first expansion
            if goal is not self._start and not goal.consistent:
                continue
            if best is None or not best < self._key(goal):
                return goal
        return None

    def is_converged(self) -> bool:
        return self.sets.peek_best() is None or self._settled_goal() is not None

    @property
    def phase(self) -> Phase:
        return self._phase

    def current_epsilon(self) -> float:
        return self._epsilon

    # stepping

    def _plan_overconsistent(self, s: Node[State]) -> list[_Lookahead[State]]:
        planned: dict[int, _Lookahead[State]] = {}
        for t in self.successors(s.state):
            self.stats.generated += 1
            child = self.store.get_or_create(t.destination)
            new_g = s.g + self._cost(t)
            prev = planned.get(child.index)
            if new_g < (child.g if prev is None else prev.g):
                planned[child.index] = _Lookahead(child, new_g, s.index, t)
        return list(planned.values())

    def _plan_underconsistent(self, s: Node[State]) -> list[_Lookahead[State]]:
        planned: list[_Lookahead[State]] = []
        if s is not self._start:
            origin = None if s.parent is None else self.store[s.parent].state
            planned.append(self._lookahead(s, origin, dropped=s))
        done = {s.index}
        for t in self.successors(s.state):
            self.stats.generated += 1
            child = self.store.existing(t.destination)
            if child is None or child.index in done or child.parent != s.index:
                continue
            if child is self._start:
                continue
            done.add(child.index)
            planned.append(self._lookahead(child, s.state, dropped=s))
        return planned

    def step(self) -> StepResult[State]:
        """Process the most promising OPEN node, or report convergence."""
        s = self.sets.peek_best()
        if s is None or self._settled_goal() is not None:
            new_phase = Phase.CONVERGED if self._epsilon > 1.0 else Phase.AWAITING_CHANGE
            if self._phase is Phase.EXPANDING:
                goal = self._settled_goal()
                self.logger.debug(
                    "converged: epsilon=%s cost=%s expansions=%d",
                    self._epsilon,
                    goal.g if goal is not None else None,
                    self.stats.expansions,
                    extra={"epsilon": self._epsilon, "phase": new_phase.value},
                )
            self._phase = new_phase
            return StepResult(StepKind.CONVERGED)
        self._phase = Phase.EXPANDING
        if s.overconsistent:
            updates = self._plan_overconsistent(s)
            self.sets.pop_best()
            s.v = s.g
            self.sets.move_to_closed(s)
            kind = StepKind.OVERCONSISTENT
            self.stats.overconsistent += 1
        else:
            updates = self._plan_underconsistent(s)
            self.sets.pop_best()
            s.v = math.inf
            if not updates or updates[0].node is not s:
                self.sets.update(s)
            kind = StepKind.UNDERCONSISTENT
            self.stats.underconsistent += 1
        for upd in updates:
            self._apply(upd)
        self.stats.expansions += 1
        return StepResult(kind, s)

    def advance(self) -> Node[State] | None:
        return self.step().node

    def __iter__(self) -> Iterator[Node[State]]:
        return self

    def __next__(self) -> Node[State]:
        node = self.advance()
        if node is None:
            raise StopIteration
        return node

    # episode control

    def _begin_episode(self) -> None:
        closed = self.sets.clear_closed()
        moved = self.sets.flush_incons()
        self._phase = Phase.EXPANDING
        self.stats.episodes += 1
        self.logger.debug(
            "episode %d: epsilon=%s, %d closed released, %d incons reopened",
            self.stats.episodes,
            self._epsilon,
            closed,
            moved,
            extra={"epsilon": self._epsilon, "episode": self.stats.episodes},
        )

    def lower_epsilon(self, new_epsilon: float) -> None:
        new_epsilon = float(new_epsilon)
        if not 1.0 <= new_epsilon <= self._epsilon:
            raise InvalidEpsilonError(
                f"epsilon can only be lowered within [1, {self._epsilon}], got {new_epsilon!r}"
            )
        self._epsilon = new_epsilon
        self._begin_episode()

    def notify_edge_changed(self, transition: Transition[State], new_cost: float) -> None:
        """Record that ``transition`` now costs ``new_cost`` (``inf`` blocks it)."""
        new_cost = _check_cost(float(new_cost), transition)
        if transition.origin is None:
            raise ValueError("a changed transition needs an origin state")
        previous = self._overrides.get(transition)
        self._overrides[transition] = new_cost
        target = self.store.existing(transition.destination)
        upd: _Lookahead[State] | None = None
        if target is not None and target is not self._start:
            try:
                upd = self._lookahead(target, transition.origin)
            except ADStarError:
                if previous is None:
                    del self._overrides[transition]
                else:
                    self._overrides[transition] = previous
                raise
        self.stats.edge_changes += 1
        self.logger.debug(
            "edge %r -> %r now costs %s", transition.origin, transition.destination, new_cost
        )
        if upd is None or (upd.g == upd.node.g and upd.parent == upd.node.parent):
            return
        # CLOSED nodes improved by the change must be expandable again
        self._begin_episode()
        self._apply(upd)

    # solutions

    @property
    def start(self) -> State:
        return self._start.state

    @property
    def goals(self) -> list[State]:
        return [g.state for g in self._goals]

    def node(self, state: State) -> Node[State] | None:
        return self.store.existing(state)

    def _goal_node(self, goal: State | None) -> Node[State]:
        if goal is None:
            node = min(self._goals, key=lambda n: n.g)
        else:
            found = self.store.existing(goal)
            if found is None:
                raise UnreachableGoalError(f"{goal!r} has not been reached")
            node = found
        if math.isinf(node.g):
            raise UnreachableGoalError(f"no path to {node.state!r} is known")
        return node

    def _chain(self, goal: State | None) -> list[Node[State]]:
        node = self._goal_node(goal)
        chain = [node]
        seen = {node.index}
        while node.parent is not None:
            node = self.store[node.parent]
            if node.index in seen:
                raise ADStarError(f"back-pointer cycle through {node.state!r}")
            seen.add(node.index)
            chain.append(node)
        if node is not self._start:
            raise UnreachableGoalError(
                f"back-pointers from {chain[0].state!r} stop at {node.state!r}"
            )
        chain.reverse()
        return chain

    def extract_path(self, goal: State | None = None) -> list[State]:
        """States from start to ``goal`` (the cheapest goal when omitted)."""
        return [n.state for n in self._chain(goal)]

    def extract_transitions(self, goal: State | None = None) -> list[Transition[State]]:
        return [n.transition for n in self._chain(goal)[1:] if n.transition is not None]

    def path_cost(self, goal: State | None = None) -> float:
        return self._goal_node(goal).g

    def _solution(self) -> tuple[list[State] | None, float | None]:
        try:
            return self.extract_path(), self.path_cost()
        except UnreachableGoalError:
            return None, None

    def compute_or_improve_path(
        self, max_expansions: int | None = None
    ) -> tuple[list[State] | None, float | None]:
        """Step until convergence or a budget runs out; return the current solution."""
        budget = max_expansions if max_expansions is not None else self.max_expansions
        t0 = time.perf_counter()
        done = 0
        while True:
            if self.max_runtime_ms is not None:
                if (time.perf_counter() - t0) * 1000.0 > self.max_runtime_ms:
                    self.logger.info("max_runtime_ms reached; stopping search")
                    break
            if self.step().kind is StepKind.CONVERGED:
                break
            done += 1
            if self.log_every and (self.stats.expansions % self.log_every == 0):
                self.logger.info(
                    "expansions=%(exp)d, generated=%(gen)d, underconsistent=%(under)d",
                    {
                        "exp": self.stats.expansions,
                        "gen": self.stats.generated,
                        "under": self.stats.underconsistent,
                    },
                    extra={"epsilon": self._epsilon, "expansions": self.stats.expansions},
                )
            if budget is not None and done >= budget:
                self.logger.info("max_expansions reached; stopping search")
                break
        self.stats.runtime_ms += (time.perf_counter() - t0) * 1000.0
        return self._solution()

    def run_schedule(
        self, epsilons: list[float]
    ) -> tuple[list[tuple[float, float]], list[State] | None]:
        """Converge once per epsilon in ``epsilons`` (non-increasing)."""
        hist: list[tuple[float, float]] = []
        best_cost = math.inf
        best_path: list[State] | None = None
        for i, eps in enumerate(epsilons):
            if i > 0 or eps != self._epsilon:
                self.lower_epsilon(eps)
            p, c = self.compute_or_improve_path()
            if p is not None and c is not None and c < best_cost:
                best_cost = c
                best_path = p
            hist.append((self._epsilon, best_cost))
        return hist, best_path
