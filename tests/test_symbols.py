"""
Symbol Table Tests
==================

Tests for variable slot allocation: first-occurrence ordering, stable
offsets, frame sizing and capacity limits.
"""

import pytest

from stackcc.compiler.symbols import SymbolTable, VariableSlot
from stackcc.compiler.errors import CapacityExceededError
from stackcc.errors import SourceLocation


class TestAllocation:
    """Tests for resolve_or_allocate()."""

    def test_first_slot_is_one_word(self):
        table = SymbolTable()
        assert table.resolve_or_allocate("a") == 8

    def test_distinct_names_get_increasing_offsets(self):
        table = SymbolTable()
        offsets = [table.resolve_or_allocate(name) for name in ("a", "b", "c")]
        assert offsets == [8, 16, 24]

    def test_same_name_same_slot(self):
        table = SymbolTable()
        first = table.resolve_or_allocate("x")
        table.resolve_or_allocate("y")
        assert table.resolve_or_allocate("x") == first
        assert len(table) == 2

    def test_names_are_case_sensitive(self):
        table = SymbolTable()
        assert table.resolve_or_allocate("a") != table.resolve_or_allocate("A")

    def test_custom_word_size(self):
        table = SymbolTable(word_size=4)
        assert table.resolve_or_allocate("a") == 4
        assert table.resolve_or_allocate("b") == 8

    def test_lookup(self):
        table = SymbolTable()
        table.resolve_or_allocate("a")
        assert table.lookup("a") == VariableSlot("a", 8)
        assert table.lookup("b") is None

    def test_contains_and_iter(self):
        table = SymbolTable()
        table.resolve_or_allocate("b")
        table.resolve_or_allocate("a")
        assert "a" in table
        assert "z" not in table
        assert [slot.name for slot in table] == ["b", "a"]

    def test_offsets_in_allocation_order(self):
        table = SymbolTable()
        for name in ("x", "y", "x", "z"):
            table.resolve_or_allocate(name)
        assert table.offsets == {"x": 8, "y": 16, "z": 24}


class TestFrame:
    """Tests for frame sizing."""

    def test_default_frame_size(self):
        """26 slots of 8 bytes, already 16-byte aligned."""
        assert SymbolTable().frame_size == 208

    def test_frame_size_is_aligned(self):
        assert SymbolTable(capacity=3).frame_size == 32
        assert SymbolTable(capacity=0).frame_size == 0

    def test_frame_size_does_not_depend_on_usage(self):
        table = SymbolTable()
        table.resolve_or_allocate("a")
        assert table.frame_size == 208


class TestCapacity:
    """Tests for the variable limit."""

    def test_fills_to_capacity(self):
        table = SymbolTable(capacity=26)
        for i in range(26):
            table.resolve_or_allocate(f"v{i}")
        assert len(table) == 26
        assert table.lookup("v25").offset == 208

    def test_exceeding_capacity_raises(self):
        table = SymbolTable(capacity=2)
        table.resolve_or_allocate("a")
        table.resolve_or_allocate("b")
        location = SourceLocation("<input>", 1, 5, 4)
        with pytest.raises(CapacityExceededError) as exc_info:
            table.resolve_or_allocate("c", location=location, source_line="a;b;c")
        error = exc_info.value
        assert error.limit == 2
        assert error.what == "variables"
        assert error.offset == 4
        assert "too many variables (limit is 2)" in str(error)

    def test_existing_name_at_capacity_is_fine(self):
        table = SymbolTable(capacity=1)
        table.resolve_or_allocate("a")
        assert table.resolve_or_allocate("a") == 8

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            SymbolTable(word_size=0)
        with pytest.raises(ValueError):
            SymbolTable(capacity=-1)
