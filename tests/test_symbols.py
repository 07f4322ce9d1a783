# =============================================================================
# test_symbols.py - Global Symbol Table Tests
# =============================================================================
# Tests for the append-only symbol table and its duplicate policies.
# =============================================================================

import pytest

from twopass_linker.config import DuplicatePolicy
from twopass_linker.errors import DuplicateDefinitionError, LinkerError
from twopass_linker.symbols import SymbolEntry, SymbolTable


class TestDefineAndLookup:
    """Basic table operations."""

    def test_define_and_lookup(self):
        """Test define then lookup."""
        table = SymbolTable()
        table.define("xy", 2, module_index=0)
        entry = table.lookup("xy")
        assert entry == SymbolEntry("xy", 2, 0)
        assert str(entry) == "xy=2"

    def test_missing_symbol(self):
        """Unknown names look up as None."""
        assert SymbolTable().lookup("nope") is None

    def test_insertion_order(self):
        """Iteration follows definition order."""
        table = SymbolTable()
        table.define("b", 5, 0)
        table.define("a", 1, 0)
        table.define("c", 9, 1)
        assert [e.name for e in table] == ["b", "a", "c"]
        assert len(table) == 3

    def test_contains(self):
        """Test the in operator."""
        table = SymbolTable()
        table.define("z", 15, 3)
        assert "z" in table
        assert "y" not in table

    def test_as_dict(self):
        """Test the name to address mapping."""
        table = SymbolTable()
        table.define("xy", 2, 0)
        table.define("z", 15, 3)
        assert table.as_dict() == {"xy": 2, "z": 15}


class TestFreeze:
    """A frozen table is read-only."""

    def test_freeze_returns_table(self):
        """freeze() returns the table."""
        table = SymbolTable()
        assert table.freeze() is table
        assert table.frozen

    def test_define_after_freeze(self):
        """A frozen table refuses new definitions."""
        table = SymbolTable().freeze()
        with pytest.raises(LinkerError, match="frozen"):
            table.define("X", 0, 0)

    def test_lookup_after_freeze(self):
        """A frozen table still answers lookups."""
        table = SymbolTable()
        table.define("X", 4, 0)
        table.freeze()
        assert table.lookup("X").absolute_location == 4


class TestDuplicatePolicy:
    """Symbols defined by more than one module."""

    def test_error_policy(self):
        """Test the duplicate error names both modules."""
        table = SymbolTable()
        table.define("X", 0, 0)
        with pytest.raises(DuplicateDefinitionError) as exc_info:
            table.define("X", 7, 2)
        error = exc_info.value
        assert error.symbol == "X"
        assert error.module_index == 2
        assert error.original_module == 0
        assert "first defined in module 0" in str(error)

    def test_error_policy_keeps_table_unchanged(self):
        """A rejected duplicate is not recorded."""
        table = SymbolTable()
        table.define("X", 0, 0)
        with pytest.raises(DuplicateDefinitionError):
            table.define("X", 7, 2)
        assert len(table) == 1

    def test_first_policy(self):
        """FIRST resolves to the earliest definition."""
        table = SymbolTable(DuplicatePolicy.FIRST)
        table.define("X", 0, 0)
        table.define("X", 7, 1)
        assert table.lookup("X").absolute_location == 0
        assert len(table) == 2

    def test_last_policy(self):
        """LAST resolves to the latest definition."""
        table = SymbolTable(DuplicatePolicy.LAST)
        table.define("X", 0, 0)
        table.define("X", 7, 1)
        assert table.lookup("X").absolute_location == 7

    def test_duplicate_is_logged(self, caplog):
        """Accepted duplicates are logged."""
        table = SymbolTable(DuplicatePolicy.FIRST)
        table.define("X", 0, 0)
        table.define("X", 7, 1)
        assert "Symbol 'X' defined in modules 0 and 1" in caplog.text

    def test_duplicates_listing(self):
        """duplicates() names symbols defined more than once."""
        table = SymbolTable(DuplicatePolicy.LAST)
        table.define("X", 0, 0)
        table.define("Y", 1, 0)
        table.define("X", 7, 1)
        assert table.duplicates() == ["X"]
