"""
test_keys.py - Unit tests for keys.py

Tests:
- primary_key() checks and identity mapping
- Composite key construction, splitting and range bounds
- Collision-freedom between kinds and between component lists
- Index keys derived from each record kind
"""

import pytest
from hypothesis import given, strategies as st

from estate import (
    Property, Condition, Contract, InvalidKey,
    primary_key, create_composite_key, split_composite_key, partial_key_range,
    is_composite_key, type_index_key, owner_index_key, reference_index_key,
    index_keys_for,
    DOC_TYPE_PROPERTY, DOC_TYPE_CONDITION, DOC_TYPE_CONTRACT,
)
from estate.keys import (
    OWNER_INDEX, PROPERTY_CONDITION_INDEX, CONDITION_CONTRACT_INDEX,
    has_reserved_characters,
)


component = st.text(alphabet="abc~ \x01é서", max_size=6)


class TestPrimaryKey:

    def test_key_is_identifier(self):
        assert primary_key(DOC_TYPE_PROPERTY, "p1") == "p1"
        assert primary_key(DOC_TYPE_CONDITION, "c1") == "c1"
        assert primary_key(DOC_TYPE_CONTRACT, "k1") == "k1"

    def test_unknown_doc_type(self):
        with pytest.raises(InvalidKey, match="Unknown docType"):
            primary_key("marble", "m1")

    def test_empty_id(self):
        with pytest.raises(InvalidKey, match="cannot be empty"):
            primary_key(DOC_TYPE_PROPERTY, "")

    @pytest.mark.parametrize("bad", ["p\x001", "p1\U0010FFFF"])
    def test_reserved_characters(self, bad):
        with pytest.raises(InvalidKey, match="reserved"):
            primary_key(DOC_TYPE_PROPERTY, bad)

    def test_primary_keys_are_simple(self):
        assert not is_composite_key(primary_key(DOC_TYPE_PROPERTY, "p1"))


class TestCompositeKey:

    def test_layout(self):
        key = create_composite_key(OWNER_INDEX, ["alice", "p1"])
        assert key == "\x00owner~property\x00alice\x00p1\x00"
        assert is_composite_key(key)

    def test_no_attributes(self):
        assert create_composite_key("property", []) == "\x00property\x00"

    def test_split(self):
        key = create_composite_key(OWNER_INDEX, ["alice", "p1"])
        assert split_composite_key(key) == (OWNER_INDEX, ["alice", "p1"])

    def test_empty_attribute_kept(self):
        key = create_composite_key("t", ["", "x"])
        assert split_composite_key(key) == ("t", ["", "x"])

    def test_empty_object_type_rejected(self):
        with pytest.raises(InvalidKey, match="object type cannot be empty"):
            create_composite_key("", ["a"])

    def test_reserved_attribute_rejected(self):
        with pytest.raises(InvalidKey, match="attribute 1"):
            create_composite_key("t", ["a", "b\x00c"])

    def test_non_string_attribute_rejected(self):
        with pytest.raises(InvalidKey, match="must be a string"):
            create_composite_key("t", [1])

    @pytest.mark.parametrize("bad", ["p1", "", "\x00", "\x00t", "\x00\x00"])
    def test_split_rejects_malformed(self, bad):
        with pytest.raises(InvalidKey):
            split_composite_key(bad)

    @given(object_type=component.filter(bool), attributes=st.lists(component, max_size=4))
    def test_split_inverts_create(self, object_type, attributes):
        key = create_composite_key(object_type, attributes)
        assert split_composite_key(key) == (object_type, attributes)

    @given(
        a=st.tuples(component.filter(bool), st.lists(component, max_size=3)),
        b=st.tuples(component.filter(bool), st.lists(component, max_size=3)),
    )
    def test_distinct_components_give_distinct_keys(self, a, b):
        if a != b:
            assert create_composite_key(*a) != create_composite_key(*b)

    def test_kinds_do_not_collide(self):
        keys = {type_index_key(doc_type, "x1")
                for doc_type in (DOC_TYPE_PROPERTY, DOC_TYPE_CONDITION, DOC_TYPE_CONTRACT)}
        assert len(keys) == 3

    def test_composite_sorts_below_simple(self):
        assert create_composite_key("zzz", ["zzz"]) < "\x01"
        assert create_composite_key("zzz", ["zzz"]) < "a"


class TestPartialKeyRange:

    def test_bounds(self):
        start, end = partial_key_range(OWNER_INDEX, ["alice"])
        assert start == "\x00owner~property\x00alice\x00"
        assert end == start + "\U0010FFFF"

    def test_range_contains_extensions_only(self):
        start, end = partial_key_range(OWNER_INDEX, ["alice"])
        inside = owner_index_key("alice", "p1")
        prefix_sibling = owner_index_key("alicebeth", "p2")
        other = owner_index_key("bob", "p3")
        assert start <= inside < end
        assert not (start <= prefix_sibling < end)
        assert not (start <= other < end)

    def test_type_only_range(self):
        start, end = partial_key_range(DOC_TYPE_PROPERTY)
        assert start <= type_index_key(DOC_TYPE_PROPERTY, "p1") < end
        assert not (start <= type_index_key(DOC_TYPE_CONDITION, "c1") < end)


class TestIndexKeys:

    def test_property_indexes(self):
        prop = Property("p1", "islab", "seoul", "alice")
        assert index_keys_for(prop) == [
            create_composite_key(DOC_TYPE_PROPERTY, ["p1"]),
            create_composite_key(OWNER_INDEX, ["alice", "p1"]),
        ]

    def test_condition_indexes(self):
        cond = Condition("c1", "p1", "alice", "bob", 10)
        assert index_keys_for(cond) == [
            create_composite_key(DOC_TYPE_CONDITION, ["c1"]),
            create_composite_key(PROPERTY_CONDITION_INDEX, ["p1", "c1"]),
        ]

    def test_contract_indexes(self):
        contract = Contract("k1", "c1")
        assert index_keys_for(contract) == [
            create_composite_key(DOC_TYPE_CONTRACT, ["k1"]),
            create_composite_key(CONDITION_CONTRACT_INDEX, ["c1", "k1"]),
        ]

    def test_reference_index_key(self):
        assert reference_index_key(DOC_TYPE_PROPERTY, "p1", "c1") == \
            create_composite_key(PROPERTY_CONDITION_INDEX, ["p1", "c1"])
        with pytest.raises(KeyError):
            reference_index_key(DOC_TYPE_CONTRACT, "k1", "x")

    def test_has_reserved_characters(self):
        assert has_reserved_characters("a\x00")
        assert has_reserved_characters("\U0010FFFF")
        assert not has_reserved_characters("alice")
