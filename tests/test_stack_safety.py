from __future__ import annotations

import sys

from algae import Computation, EffectGenerator, drive, effectful
from tests.effects import Tick

N = 100_000


def _depth() -> int:
    frame = sys._getframe(1)
    depth = 0
    while frame is not None:
        depth += 1
        frame = frame.f_back
    return depth


@effectful
def count_to(n: int) -> EffectGenerator[int]:
    total = 0
    for _ in range(n):
        total += yield Tick()
    return total


@effectful
def one_tick() -> EffectGenerator[int]:
    return (yield Tick())


@effectful
def many_nested(n: int) -> EffectGenerator[int]:
    total = 0
    for _ in range(n):
        total += yield from one_tick()
    return total


class DepthProbe:
    def __init__(self) -> None:
        self.first: int | None = None
        self.last: int | None = None

    def handle(self, op):
        depth = _depth()
        if self.first is None:
            self.first = depth
        self.last = depth
        return 1


def test_long_chain_of_performs_completes():
    assert drive(count_to(N), lambda op: 1) == N


def test_stack_depth_does_not_grow_with_suspensions():
    probe = DepthProbe()
    assert drive(count_to(N), probe) == N
    assert probe.first == probe.last


def test_sequential_nested_computations():
    probe = DepthProbe()
    assert drive(many_nested(N), probe) == N
    assert probe.first == probe.last


def test_manual_advance_loop_is_flat():
    comp: Computation[int] = count_to(N)
    step = comp.advance()
    while not comp.done:
        step = comp.advance(1)
    assert step.value == N
