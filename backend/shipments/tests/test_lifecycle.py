import pytest

from .. import lifecycle
from ..exceptions import IllegalTransition


class TestTransitionTable:
    def test_every_pair_matches_the_table(self):
        for current in lifecycle.ALL_STATES:
            for requested in lifecycle.ALL_STATES:
                allowed = requested in lifecycle.ALLOWED_TRANSITIONS[current]
                assert lifecycle.can_transition(current, requested) is allowed
                if allowed:
                    assert lifecycle.assert_transition(current, requested) == requested
                else:
                    with pytest.raises(IllegalTransition):
                        lifecycle.assert_transition(current, requested)

    def test_terminal_states_have_no_exits(self):
        for state in lifecycle.TERMINAL_STATES:
            assert lifecycle.allowed_next(state) == frozenset()
            assert lifecycle.is_terminal(state)

    def test_every_state_has_a_row(self):
        assert set(lifecycle.ALLOWED_TRANSITIONS) == set(lifecycle.ALL_STATES)

    def test_out_for_delivery_then_delivered_is_final(self):
        assert lifecycle.assert_transition("OUT_FOR_DELIVERY", "DELIVERED") == "DELIVERED"
        with pytest.raises(IllegalTransition) as exc:
            lifecycle.assert_transition("DELIVERED", "IN_TRANSIT")
        assert exc.value.allowed == []
        assert "terminal" in exc.value.message

    def test_error_carries_sorted_allowed_set(self):
        with pytest.raises(IllegalTransition) as exc:
            lifecycle.assert_transition("CREATED", "DELIVERED")
        err = exc.value
        assert err.allowed == ["CANCELLED", "PICKUP_SCHEDULED"]
        assert err.as_dict()["code"] == "ILLEGAL_TRANSITION"
        assert err.extra["current"] == "CREATED"

    def test_status_names_are_case_insensitive(self):
        assert lifecycle.can_transition("created", " pickup_scheduled ")
        assert not lifecycle.can_transition("unknown", "CREATED")

    def test_self_transition_rejected(self):
        with pytest.raises(IllegalTransition):
            lifecycle.assert_transition("IN_TRANSIT", "IN_TRANSIT")
