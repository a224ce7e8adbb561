"""Tests for StateMachine.go and its runtime operations."""
import pytest

from hopfsm import (
    HopRecord,
    InvalidConfigurationError,
    NoPathFoundError,
    NullStateError,
    StateMachine,
    TransitionTable,
)
from hopfsm.core import HISTORY_SIZE

from conftest import States

A, B, C, D, E, F = States


def assert_go_works(context, from_state, to_state, expected_transitions):
    machine = context.start_at(from_state)

    assert machine.get_current_state() == from_state
    assert machine.get_transitions_done() == 0

    machine.go(to_state)

    assert machine.get_current_state() == to_state
    assert machine.get_transitions_done() == expected_transitions
    return machine


class TestGo:

    def test_action_of_one_transition_is_executed(self, builder, register):
        builder.from_(A).to(B, lambda: register.append(1)).start_at(A).go(B)

        assert register == [1]

    def test_two_actions_of_one_transition_are_executed_in_order(self, builder, register):
        (builder.from_(A).to(B, lambda: register.append(1)).to(B, lambda: register.append(2))
         .start_at(A).go(B))

        assert register == [1, 2]

    def test_actions_on_shortest_path_are_executed(self, builder, register):
        (builder
         .from_(A).to(B, lambda: register.append(1)).to(B, lambda: register.append(2))
         .from_(B).to(C, lambda: register.append(3))
         .from_(C).to(D)
         .from_(D).to(E, lambda: register.append(4))
         .from_(A).to(F, lambda: register.append(9))
         .start_at(A).go(E))

        assert register == [1, 2, 3, 4]

    def test_actions_fire_in_hop_order(self, builder, register):
        (builder
         .from_(A).to(B, lambda: register.append(1)).to(B, lambda: register.append(2))
         .from_(B).to(C, lambda: register.append(3))
         .start_at(A).go(C))

        assert register == [1, 2, 3]

    def test_go_to_directly_connected_state(self, builder):
        assert_go_works(builder.from_(A).to(B), A, B, 1)

    def test_go_over_one_hop(self, builder):
        assert_go_works(builder.from_(A).to(B).from_(B).to(C), A, C, 2)

    def test_go_over_two_hops(self, builder):
        assert_go_works(builder.from_(A).to(B).from_(B).to(C).from_(C).to(D), A, D, 3)

    def test_chain_visits_every_intermediate_state(self, builder):
        machine = (builder.from_(A).to(B).from_(B).to(C).from_(C).to(D)
                   .from_(D).to(E).from_(E).to(F).start_at(A))

        machine.go(F)

        visited = [record.to_state for record in machine.get_history()]
        assert visited == [B, C, D, E, F]
        assert machine.transitions_done == 5

    def test_go_to_current_state_is_noop(self, builder, register):
        machine = builder.from_(A).to(B, lambda: register.append(1)).from_(B).to(A).start_at(A)

        result = machine.go(A)

        assert result is machine
        assert machine.current_state == A
        assert machine.transitions_done == 0
        assert register == []

    def test_go_returns_machine_for_chaining(self, builder):
        machine = builder.from_(A).to(B).from_(B).to(C).start_at(A)

        assert machine.go(B).go(C) is machine
        assert machine.transitions_done == 2

    def test_shortest_path_when_configured_first(self, builder):
        assert_go_works(
            builder.from_(A).to(B).from_(B).to(F).from_(B).to(C).from_(C).to(D)
            .from_(D).to(E).from_(E).to(F),
            A, F, 2)

    def test_shortest_path_when_configured_last(self, builder):
        machine = assert_go_works(
            builder.from_(A).to(B).from_(B).to(C).from_(C).to(D).from_(D).to(E)
            .from_(E).to(F).from_(B).to(F),
            A, F, 2)

        assert [r.to_state for r in machine.get_history()] == [B, F]

    def test_direct_edge_is_preferred_over_longer_route(self, builder, register):
        machine = (builder
                   .from_(A).to(B, lambda: register.append("ab"))
                   .from_(B).to(C, lambda: register.append("bc"))
                   .from_(A).to(C, lambda: register.append("ac"))
                   .start_at(A))

        machine.go(C)

        assert register == ["ac"]
        assert machine.transitions_done == 1

    def test_exception_when_no_transition(self, builder):
        machine = builder.from_(A).to(B).from_(B).to(C).from_(C).to(D).start_at(A)

        with pytest.raises(NoPathFoundError) as exc_info:
            machine.go(E)

        assert exc_info.value.source == A
        assert exc_info.value.target == E

    def test_no_hop_when_no_transition(self, builder, register):
        machine = builder.from_(A).to(B, lambda: register.append(1)).from_(B).to(C).start_at(A)

        with pytest.raises(NoPathFoundError):
            machine.go(D)

        assert machine.current_state == A
        assert machine.transitions_done == 0
        assert machine.get_history() == []
        assert register == []

    def test_edges_are_directed(self, builder):
        machine = builder.from_(A).to(B).start_at(B)

        with pytest.raises(NoPathFoundError):
            machine.go(A)

    def test_cycle_not_leading_to_target_fails_fast(self, builder):
        machine = (builder.from_(A).to(B).from_(B).to(C).from_(C).to(A)
                   .from_(D).to(E).start_at(A))

        with pytest.raises(NoPathFoundError):
            machine.go(E)

        assert machine.current_state == A
        assert machine.transitions_done == 0

    def test_path_through_cycle_is_found(self, builder):
        machine = (builder.from_(A).to(B).from_(B).to(A).from_(B).to(C)
                   .from_(C).to(B).from_(C).to(D).start_at(A))

        machine.go(D)

        assert machine.current_state == D
        assert machine.transitions_done == 3

    def test_unknown_target_is_rejected(self):
        machine = StateMachine(TransitionTable(["A", "B"]), "A")

        with pytest.raises(InvalidConfigurationError):
            machine.go("X")
        with pytest.raises(NullStateError):
            machine.go(None)

    def test_action_failure_propagates_and_keeps_completed_hops(self, builder, register):
        def explode():
            raise RuntimeError("boom")

        machine = (builder.from_(A).to(B, lambda: register.append(1))
                   .from_(B).to(C, explode).start_at(A))

        with pytest.raises(RuntimeError, match="boom"):
            machine.go(C)

        assert register == [1]
        assert machine.current_state == B
        assert machine.transitions_done == 1


class TestFindPath:

    def test_find_path_does_not_move(self, builder, register):
        machine = builder.from_(A).to(B, lambda: register.append(1)).from_(B).to(C).start_at(A)

        assert machine.find_path(C) == [A, B, C]
        assert machine.current_state == A
        assert register == []

    def test_find_path_to_current_state(self, builder):
        machine = builder.from_(A).to(B).start_at(A)

        assert machine.find_path(A) == [A]

    def test_find_path_unreachable(self, builder):
        machine = builder.from_(A).to(B).start_at(A)

        assert machine.find_path(C) is None

    def test_get_reachable_states(self, builder):
        machine = builder.from_(A).to(C).to(B).start_at(A)

        assert machine.get_reachable_states() == [B, C]


class TestResetAndSetState:

    def test_reset_restores_initial_state_and_counter(self, builder):
        machine = builder.from_(A).to(B).from_(A).to(C).start_at(A)

        machine.go(B)
        assert machine.current_state == B
        assert machine.transitions_done == 1

        machine.reset()
        assert machine.current_state == A
        assert machine.transitions_done == 0

        machine.go(C)
        assert machine.current_state == C
        assert machine.transitions_done == 1

    def test_reset_fires_no_actions_and_clears_history(self, builder, register):
        machine = builder.from_(A).to(B).from_(B).to(A, lambda: register.append(1)).start_at(A)
        machine.go(B)

        machine.reset()

        assert register == []
        assert machine.get_history() == []
        assert machine.initial_state == A

    def test_set_state_does_not_change_transition_counter(self, builder):
        machine = builder.from_(A).to(B).from_(A).to(C).start_at(A)

        machine.go(B)
        machine.set_state(A)
        assert machine.transitions_done == 1

        machine.go(C)
        assert machine.current_state == C
        assert machine.transitions_done == 2

    def test_set_state_to_unreachable_state(self, builder, register):
        machine = builder.from_(A).to(B, lambda: register.append(1)).start_at(A)

        machine.set_state(F)

        assert machine.current_state == F
        assert machine.transitions_done == 0
        assert register == []

    def test_set_state_rejects_unknown_state(self):
        machine = StateMachine(TransitionTable(["A", "B"]), "A")

        with pytest.raises(InvalidConfigurationError):
            machine.set_state("X")
        with pytest.raises(NullStateError):
            machine.set_state(None)
        assert machine.current_state == "A"

    def test_reset_after_set_state_uses_initial_state(self, builder):
        machine = builder.from_(A).to(B).start_at(A)

        machine.set_state(E)
        machine.reset()

        assert machine.current_state == A


class TestHistory:

    def test_history_records_hops(self, builder):
        machine = builder.from_(A).to(B).from_(B).to(C).start_at(A)

        machine.go(C)

        history = machine.get_history()
        assert [(r.from_state, r.to_state) for r in history] == [(A, B), (B, C)]
        assert all(isinstance(r, HopRecord) for r in history)

    def test_history_limit(self, builder):
        machine = builder.from_(A).to(B).from_(B).to(C).from_(C).to(D).start_at(A)
        machine.go(D)

        assert [r.to_state for r in machine.get_history(limit=1)] == [D]
        assert machine.get_history(limit=0) == []

    def test_history_is_bounded(self, builder):
        machine = builder.from_(A).to(B).from_(B).to(A).start_at(A)

        for _ in range(HISTORY_SIZE):
            machine.go(B).go(A)

        assert len(machine.get_history(limit=HISTORY_SIZE * 2)) == HISTORY_SIZE
        assert machine.transitions_done == HISTORY_SIZE * 2
