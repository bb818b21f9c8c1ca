from __future__ import annotations

import gc

import pytest

from algae import (
    Completed,
    Computation,
    ComputationState,
    DoubleResumeError,
    EffectGenerator,
    EffectRequest,
    InvalidResumeError,
    Reply,
    Suspended,
    TypeMismatchError,
    UnfilledReplyError,
    UnhandledOperationError,
    Variant,
    effectful,
    perform,
)
from algae.operations import NoneType
from tests.effects import Info, Print, ReadLine, Tick, greet


class TestAdvance:
    def test_new_computation_is_pending(self):
        comp = greet()
        assert comp.state is ComputationState.PENDING
        assert comp.pending is None
        assert not comp.done

    def test_first_advance_suspends_on_first_operation(self):
        comp = greet()
        step = comp.advance()

        assert isinstance(step, Suspended)
        assert step.request.operation == Print("What's your name?")
        assert step.request.expected is NoneType
        assert comp.state is ComputationState.SUSPENDED
        assert comp.pending is step.request

    def test_step_by_step_to_completion(self):
        comp = greet()
        comp.advance()
        step = comp.advance(Reply.unit())
        assert step.request.operation == ReadLine()

        step = comp.advance("Alice")
        assert step == Completed("Hello, Alice!")
        assert comp.state is ComputationState.COMPLETED
        assert comp.result == "Hello, Alice!"
        assert comp.done

    def test_none_is_the_unit_reply(self):
        comp = greet()
        comp.advance()
        step = comp.advance(None)

        assert step.request.operation == ReadLine()
        assert comp.state is ComputationState.SUSPENDED
        assert comp.advance("Alice") == Completed("Hello, Alice!")

    def test_none_before_start_is_a_reply(self):
        with pytest.raises(InvalidResumeError, match="has not started"):
            greet().advance(None)

    def test_none_after_completion_is_double_resume(self):
        comp = Computation.pure(1)
        comp.advance()
        with pytest.raises(DoubleResumeError):
            comp.advance(None)

    def test_resume_from_prefilled_request(self):
        comp = greet()
        step = comp.advance()
        step.request.respond(None)
        step = comp.advance()
        step.request.fill(Reply.of("Bob"))
        assert comp.advance() == Completed("Hello, Bob!")

    def test_pure_computation_completes_immediately(self):
        comp = Computation.pure(5)
        assert comp.advance() == Completed(5)

    def test_plain_function_performs_nothing(self):
        @effectful
        def answer():
            return 42

        assert answer().advance() == Completed(42)

    def test_generator_factory_is_accepted(self):
        def program():
            count = yield Tick()
            return count + 1

        comp = Computation(program)
        comp.advance()
        assert comp.advance(1) == Completed(2)

    def test_non_generator_program_is_rejected(self):
        with pytest.raises(TypeError, match="Cannot convert int"):
            Computation(3).advance()  # type: ignore[arg-type]

    def test_result_before_completion(self):
        with pytest.raises(InvalidResumeError, match="has no result"):
            greet().result


class TestResumeErrors:
    def test_reply_before_start(self):
        with pytest.raises(InvalidResumeError, match="has not started"):
            greet().advance("Alice")

    def test_reply_after_completion_is_double_resume(self):
        comp = Computation.pure(1)
        comp.advance()
        with pytest.raises(DoubleResumeError):
            comp.advance(1)

    def test_advance_after_completion(self):
        comp = Computation.pure(1)
        comp.advance()
        with pytest.raises(InvalidResumeError, match="cannot be advanced"):
            comp.advance()

    def test_resuming_same_request_twice(self):
        comp = greet()
        first = comp.advance().request
        comp.advance(Reply.unit())

        assert first.resumed
        with pytest.raises(DoubleResumeError):
            first.respond(None)

    def test_filling_a_slot_twice(self):
        comp = greet()
        request = comp.advance().request
        request.respond(None)
        with pytest.raises(DoubleResumeError, match="already filled"):
            request.respond(None)

    def test_unfilled_reply_aborts_the_run(self):
        cleaned_up = []

        @effectful
        def program():
            try:
                yield ReadLine()
            finally:
                cleaned_up.append(True)

        comp = program()
        comp.advance()
        with pytest.raises(UnfilledReplyError, match="Console.ReadLine"):
            comp.advance()
        assert comp.state is ComputationState.FAILED
        assert cleaned_up == [True]

    def test_wrong_reply_type_fails_with_type_mismatch(self):
        comp = greet()
        comp.advance()
        comp.advance(Reply.unit())

        with pytest.raises(TypeMismatchError, match="Console.ReadLine") as exc_info:
            comp.advance(42)
        assert exc_info.value.expected == "str"
        assert exc_info.value.actual == "int"
        assert comp.state is ComputationState.FAILED
        with pytest.raises(InvalidResumeError):
            comp.result

    def test_reentrant_advance(self):
        holder: dict[str, Computation[int]] = {}

        def program():
            holder["comp"].advance()
            yield Tick()

        comp = Computation(program())
        holder["comp"] = comp
        with pytest.raises(InvalidResumeError, match="reentrant"):
            comp.advance()
        assert comp.state is ComputationState.FAILED


class TestBody:
    def test_exception_in_body_propagates(self):
        @effectful
        def program():
            yield Info("about to fail")
            raise ValueError("boom")

        comp = program()
        comp.advance()
        with pytest.raises(ValueError, match="boom"):
            comp.advance(Reply.unit())
        assert comp.state is ComputationState.FAILED

    def test_yielding_a_computation_suggests_yield_from(self):
        @effectful
        def program():
            yield greet()

        with pytest.raises(TypeError, match="yield from"):
            program().advance()

    def test_yielding_a_plain_value(self):
        @effectful
        def program():
            yield 5

        comp = program()
        with pytest.raises(TypeError, match="must yield operations"):
            comp.advance()
        assert comp.state is ComputationState.FAILED

    def test_yield_from_inlines_nested_computation(self):
        @effectful
        def twice() -> EffectGenerator[tuple[str, str]]:
            first = yield from greet()
            second = yield from greet()
            return first, second

        comp = twice()
        replies = iter([None, "Ann", None, "Bo"])
        step = comp.advance()
        while isinstance(step, Suspended):
            step = comp.advance(Reply.of(next(replies)))
        assert step.value == ("Hello, Ann!", "Hello, Bo!")

    def test_only_unstarted_computation_can_be_inlined(self):
        comp = greet()
        comp.advance()
        with pytest.raises(InvalidResumeError, match="unstarted"):
            iter(comp)

    def test_inlined_computation_is_delegated(self):
        comp = greet()
        iter(comp)
        assert comp.state is ComputationState.DELEGATED
        with pytest.raises(InvalidResumeError):
            comp.advance()

    def test_perform_overrides_expected_type(self):
        @effectful
        def program():
            count = yield perform(Tick(), int | None)
            return count

        comp = program()
        step = comp.advance()
        assert step.request.expected == int | None
        assert comp.advance(Reply.unit()) == Completed(None)


class TestClose:
    def test_close_runs_finally_blocks(self):
        events = []

        @effectful
        def program():
            try:
                yield ReadLine()
            finally:
                events.append("closed")

        comp = program()
        comp.advance()
        comp.close()

        assert events == ["closed"]
        assert comp.state is ComputationState.CLOSED
        assert comp.pending is None

    def test_close_is_idempotent_and_final(self):
        comp = greet()
        comp.advance()
        comp.close()
        comp.close()
        with pytest.raises(InvalidResumeError):
            comp.advance("Alice")

    def test_close_unstarted(self):
        comp = greet()
        comp.close()
        assert comp.state is ComputationState.CLOSED

    def test_close_completed_keeps_result(self):
        comp = Computation.pure("x")
        comp.advance()
        comp.close()
        assert comp.result == "x"

    def test_dropping_suspended_computation_releases_frame(self):
        events = []

        @effectful
        def program():
            try:
                yield ReadLine()
            finally:
                events.append("released")

        comp = program()
        comp.advance()
        del comp
        gc.collect()

        assert events == ["released"]

    def test_context_manager(self):
        events = []

        @effectful
        def program():
            try:
                yield Tick()
            finally:
                events.append("released")

        with program() as comp:
            comp.advance()
        assert events == ["released"]


class TestRoot:
    def test_request_carries_root_variant(self, app_root):
        @effectful(root=app_root)
        def program():
            yield Print("What's your name?")

        step = program().advance()
        assert step.request.variant == Variant("App", "Console", Print("What's your name?"))
        assert app_root.project(step.request.variant) == step.request.operation

    def test_operation_outside_root_fails(self, app_root):
        @effectful(root=app_root)
        def program():
            yield Tick()

        comp = program()
        with pytest.raises(UnhandledOperationError, match="'Counter' is not part of root 'App'"):
            comp.advance()
        assert comp.state is ComputationState.FAILED

    def test_no_root_means_no_variant(self):
        step = greet().advance()
        assert step.request.variant is None


def test_request_repr_tracks_progress():
    request = EffectRequest(ReadLine(), str)
    assert "pending" in repr(request)
    request.respond("x")
    assert "filled" in repr(request)


def test_fill_requires_reply():
    request = EffectRequest(ReadLine(), str)
    with pytest.raises(TypeError, match="needs a Reply"):
        request.fill("x")  # type: ignore[arg-type]
