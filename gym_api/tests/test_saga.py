import pytest

from gym_api.core.saga import Saga


def test_compensates_completed_steps_in_reverse_order():
    calls = []

    def fail():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        with Saga("demo", on_compensated=lambda: calls.append("hook")) as saga:
            saga.step("a", lambda: calls.append("a"), lambda: calls.append("undo a"))
            saga.step("b", lambda: calls.append("b"), lambda: calls.append("undo b"))
            saga.step("c", fail, lambda: calls.append("undo c"))

    assert calls == ["a", "b", "undo b", "undo a", "hook"]


def test_failing_compensation_does_not_stop_unwinding():
    calls = []

    def broken():
        raise ValueError("compensation failed")

    def fail():
        raise KeyError("step failed")

    with pytest.raises(KeyError):
        with Saga("demo") as saga:
            saga.step("a", lambda: None, lambda: calls.append("undo a"))
            saga.step("b", lambda: None, broken)
            saga.step("c", fail)

    assert calls == ["undo a"]


def test_successful_saga_runs_no_compensation():
    calls = []
    with Saga("demo") as saga:
        result = saga.step("a", lambda: 42, lambda: calls.append("undo a"))
    assert result == 42
    assert calls == []


def test_session_is_rolled_back_before_compensating():
    class FakeSession:
        def __init__(self):
            self.rolled_back = False

        def rollback(self):
            self.rolled_back = True

    session = FakeSession()
    seen = []

    def fail():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        with Saga("demo", session=session) as saga:
            saga.step("a", lambda: None, lambda: seen.append(session.rolled_back))
            saga.step("b", fail)

    assert seen == [True]
