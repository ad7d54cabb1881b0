from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
import heapq
from typing import Generic

from .core.types import S as State
from .node import Membership, Node, NodeStore

Key = tuple[float, float]


@dataclass(order=True)
class _FrontierItem:
    key: Key
    count: int
    index: int = field(compare=False)


class ConsistencySets(Generic[State]):
    """OPEN / CLOSED / INCONS over a :class:`NodeStore`.

    Membership lives on each node; the heap only orders OPEN candidates.
    A node re-queued with a new key gets a fresh heap entry and the old one
    is dropped lazily when it surfaces: an entry is live only while its node
    is OPEN and the entry key equals ``node.queued_key``.
    """

    def __init__(self, store: NodeStore[State], key_fn: Callable[[Node[State]], Key]) -> None:
        self.store = store
        self.key_fn = key_fn
        self._heap: list[_FrontierItem] = []
        self._counter = 0

    def _push(self, node: Node[State]) -> None:
        key = self.key_fn(node)
        if node.membership is Membership.OPEN and node.queued_key == key:
            return
        node.membership = Membership.OPEN
        node.queued_key = key
        heapq.heappush(self._heap, _FrontierItem(key, self._counter, node.index))
        self._counter += 1

    def insert_open(self, node: Node[State]) -> None:
        self._push(node)

    def remove(self, node: Node[State]) -> None:
        node.membership = Membership.NONE
        node.queued_key = None

    def move_to_closed(self, node: Node[State]) -> None:
        node.membership = Membership.CLOSED
        node.queued_key = None

    def move_to_incons(self, node: Node[State]) -> None:
        node.membership = Membership.INCONS
        node.queued_key = None

    def update(self, node: Node[State]) -> None:
        """Place ``node`` according to its consistency."""
        if not node.consistent:
            if node.membership is Membership.CLOSED:
                self.move_to_incons(node)
            elif node.membership is not Membership.INCONS:
                self._push(node)
        elif node.membership in (Membership.OPEN, Membership.INCONS):
            self.remove(node)

    def _live(self, item: _FrontierItem) -> Node[State] | None:
        node = self.store[item.index]
        if node.membership is Membership.OPEN and node.queued_key == item.key:
            return node
        return None

    def peek_best(self) -> Node[State] | None:
        while self._heap:
            node = self._live(self._heap[0])
            if node is not None:
                return node
            heapq.heappop(self._heap)
        return None

    def pop_best(self) -> Node[State] | None:
        node = self.peek_best()
        if node is not None:
            heapq.heappop(self._heap)
            self.remove(node)
        return node

    def best_key(self) -> Key | None:
        node = self.peek_best()
        return None if node is None else node.queued_key

    def members(self, membership: Membership) -> Iterator[Node[State]]:
        return (n for n in self.store if n.membership is membership)

    def counts(self) -> dict[Membership, int]:
        out = dict.fromkeys(Membership, 0)
        for node in self.store:
            out[node.membership] += 1
        return out

    def clear_closed(self) -> int:
        closed = list(self.members(Membership.CLOSED))
        for node in closed:
            self.remove(node)
        return len(closed)

    def flush_incons(self) -> int:
        """Move every INCONS node into OPEN and rebuild the heap."""
        incons = list(self.members(Membership.INCONS))
        for node in incons:
            node.membership = Membership.OPEN
        self.rekey()
        return len(incons)

    def rekey(self) -> None:
        self._heap.clear()
        for node in self.members(Membership.OPEN):
            node.queued_key = None
            self._push(node)

    def __len__(self) -> int:
        return sum(1 for _ in self.members(Membership.OPEN))
