from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

S = TypeVar("S", bound=Hashable)
_StateContra_contra = TypeVar("_StateContra_contra", bound=Hashable, contravariant=True)


@dataclass(frozen=True)
class Transition(Generic[S]):
    """Directed edge ``origin -> destination``; ``origin`` is None only for the start."""

    origin: S | None
    destination: S
    action: Hashable = None


class TransitionFn(Protocol[S]):
    def __call__(self, state: S) -> Iterable[Transition[S]]: ...


class CostFn(Protocol[_StateContra_contra]):
    def __call__(self, transition: Transition[_StateContra_contra]) -> float: ...


class HeuristicFn(Protocol[_StateContra_contra]):
    def __call__(self, state: _StateContra_contra) -> float: ...
