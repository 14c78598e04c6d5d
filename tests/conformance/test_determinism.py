"""
Determinism Conformance Tests

INVARIANT: The same invocation sequence produces the same world state.

    ∀ invocation sequence S:
        replay(S) on fresh world A == replay(S) on fresh world B

Every payload is deterministic too: queries over equal states return
identical bytes.
"""

from datetime import datetime

from hypothesis import given, settings
from hypothesis import strategies as st

from estate import WorldState

from tests.helpers import submit, evaluate


ids = st.sampled_from(["p1", "p2", "c1", "k1"])
people = st.sampled_from(["alice", "bob", "carol"])

invocations = st.one_of(
    st.tuples(st.just("initProperty"), st.tuples(ids, st.just("house"), st.just("seoul"), people)),
    st.tuples(st.just("initCondition"), st.tuples(ids, ids, people, people, st.sampled_from(["0", "10", "x"]))),
    st.tuples(st.just("createContract"), st.tuples(ids, ids)),
    st.tuples(st.just("transferProperty"), st.tuples(ids, people)),
    st.tuples(st.just("transferPropertiesBasedOnOwner"), st.tuples(people, people)),
    st.tuples(st.sampled_from(["deleteProperty", "deleteCondition", "deleteContract"]), st.tuples(ids)),
)


def _replay(sequence):
    world = WorldState("determinism", datetime(2025, 1, 1), verbose=False)
    outcomes = []
    for function, args in sequence:
        response = submit(world, function, *args)
        outcomes.append((response.status, response.payload, response.message))
    return world, outcomes


class TestDeterminismProperties:
    """Property-based determinism tests."""

    @given(st.lists(invocations, max_size=15))
    @settings(max_examples=50)
    def test_replay_gives_identical_state(self, sequence):
        """
        PROPERTY: Two replays of one sequence agree on every key, value and
        response.
        """
        world_a, outcomes_a = _replay(sequence)
        world_b, outcomes_b = _replay(sequence)

        assert outcomes_a == outcomes_b
        assert world_a.snapshot() == world_b.snapshot()
        assert world_a.keys() == world_b.keys()
        assert [tx.tx_id for tx in world_a.transaction_log] == \
            [tx.tx_id for tx in world_b.transaction_log]

    @given(st.lists(invocations, max_size=15))
    @settings(max_examples=30)
    def test_queries_are_deterministic(self, sequence):
        """
        PROPERTY: Queries over equal states return identical payloads.
        """
        world_a, _ = _replay(sequence)
        world_b, _ = _replay(sequence)

        for function, args in [
            ("getRecordsByRange", ("", "")),
            ("queryPropertiesByOwner", ("alice",)),
            ("getHistoryForKey", ("p1",)),
        ]:
            assert evaluate(world_a, function, *args).payload == \
                evaluate(world_b, function, *args).payload

    @given(st.lists(invocations, max_size=10))
    @settings(max_examples=30)
    def test_clone_replays_like_original(self, sequence):
        """
        PROPERTY: A clone taken before a sequence ends in the same state as
        the original after the same sequence.
        """
        original = WorldState("determinism", datetime(2025, 1, 1), verbose=False)
        assert submit(original, "initProperty", "p1", "house", "seoul", "alice").ok
        cloned = original.clone()

        for function, args in sequence:
            submit(original, function, *args)
            submit(cloned, function, *args)

        assert original.snapshot() == cloned.snapshot()
