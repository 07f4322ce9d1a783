# =============================================================================
# test_parser.py - Module Parser Unit Tests
# =============================================================================
# Tests for rebuilding modules from the token stream.
#
# Test coverage includes:
#   - Parser state roles and phase transitions
#   - Module boundaries, zero counts and empty modules
#   - Module layout (start, length, end)
#   - Instruction word splitting
#   - Malformed input and address range errors
# =============================================================================

import pytest

from twopass_linker.config import LinkerConfig
from twopass_linker.errors import AddressRangeError, MalformedInputError
from twopass_linker.models import InstructionType
from twopass_linker.tokenizer import tokenize
from twopass_linker.parser import (
    ModuleParser,
    ParserState,
    Phase,
    TokenRole,
    parse_source,
)


# =============================================================================
# Parser State Tests
# =============================================================================

class TestParserState:
    """The token role follows from phase and remaining count."""

    def test_initial_state_awaits_count(self):
        """A new state waits for a definitions count."""
        state = ParserState()
        assert state.phase is Phase.DEFINITIONS
        assert state.role is TokenRole.COUNT

    @pytest.mark.parametrize("phase,remaining,role", [
        (Phase.DEFINITIONS, 4, TokenRole.DEFINITION_SYMBOL),
        (Phase.DEFINITIONS, 3, TokenRole.DEFINITION_LOCATION),
        (Phase.USES, 2, TokenRole.USE),
        (Phase.USES, 1, TokenRole.USE),
        (Phase.INSTRUCTIONS, 2, TokenRole.INSTRUCTION_TYPE),
        (Phase.INSTRUCTIONS, 1, TokenRole.INSTRUCTION_WORD),
        (Phase.INSTRUCTIONS, 0, TokenRole.COUNT),
    ])
    def test_roles(self, phase, remaining, role):
        """Test the role of the next token in each state."""
        assert ParserState(phase, remaining).role is role

    def test_phase_cycle(self):
        """Phases cycle definitions, uses, instructions."""
        assert Phase.DEFINITIONS.next() is Phase.USES
        assert Phase.USES.next() is Phase.INSTRUCTIONS
        assert Phase.INSTRUCTIONS.next() is Phase.DEFINITIONS

    def test_pairs_double_the_count(self):
        """Definitions and instructions are read in pairs."""
        assert ParserState(Phase.DEFINITIONS).expecting(3).remaining == 6
        assert ParserState(Phase.INSTRUCTIONS).expecting(2).remaining == 4
        assert ParserState(Phase.USES).expecting(2).remaining == 2

    def test_zero_count_advances_phase(self):
        """A zero count moves straight to the next phase's count."""
        state = ParserState(Phase.USES).expecting(0)
        assert state.phase is Phase.INSTRUCTIONS
        assert state.role is TokenRole.COUNT

    def test_last_item_advances_phase(self):
        """Consuming the last item moves to the next phase."""
        state = ParserState(Phase.USES, 1).consumed()
        assert state == ParserState(Phase.INSTRUCTIONS)

    def test_state_is_immutable(self):
        """ParserState is frozen."""
        state = ParserState()
        with pytest.raises(AttributeError):
            state.remaining = 3


# =============================================================================
# Module Structure Tests
# =============================================================================

class TestModuleStructure:
    """Modules, definitions, uses and instructions are rebuilt in order."""

    def test_empty_input(self):
        """Empty input gives an empty store."""
        store = parse_source("")
        assert len(store) == 0
        assert store.total_length == 0

    def test_single_module(self):
        """Test one module with a definition and an instruction."""
        store = parse_source("1 X 2  0  1 I 5010")
        assert len(store) == 1
        module = store[0]
        assert module.start_location == 0
        assert module.length == 1
        assert module.end_location == 0
        assert [(d.name, d.relative_location) for d in module.definitions] == [("X", 2)]
        assert module.uses == []
        instruction = module.instructions[0]
        assert instruction.classification is InstructionType.IMMEDIATE
        assert instruction.opcode == 5
        assert instruction.address == 10

    def test_uses_have_no_location(self):
        """Used symbols carry names only."""
        store = parse_source("0  2 a b  0")
        uses = store[0].uses
        assert [u.name for u in uses] == ["a", "b"]
        assert all(u.relative_location is None for u in uses)

    def test_word_split(self):
        """'1005' is opcode 1, address 5."""
        store = parse_source("0 0 1 R 1005")
        instruction = store[0].instructions[0]
        assert (instruction.opcode, instruction.address) == (1, 5)
        assert instruction.original_address == 5

    def test_two_digit_word(self):
        """Test the shortest valid word."""
        store = parse_source("0 0 1 A 97")
        instruction = store[0].instructions[0]
        assert (instruction.opcode, instruction.address) == (9, 7)

    def test_type_uses_first_character(self):
        """Only the first character of a type token counts."""
        store = parse_source("0 0 1 Rel 1000")
        assert store[0].instructions[0].classification is InstructionType.RELATIVE

    def test_all_classifications(self):
        """Test all four instruction types."""
        store = parse_source("0 1 X 4 I 1000 A 2000 R 3000 E 4000")
        kinds = [i.classification for i in store[0].instructions]
        assert kinds == [
            InstructionType.IMMEDIATE,
            InstructionType.ABSOLUTE,
            InstructionType.RELATIVE,
            InstructionType.EXTERNAL,
        ]

    def test_module_boundary_on_zero_definitions(self):
        """A zero definitions count still starts a new module."""
        store = parse_source("0 0 0  0 0 0")
        assert len(store) == 2

    def test_input_ending_after_definitions(self):
        """Input may stop while awaiting a count; the module is kept."""
        store = parse_source("1 X 0")
        assert len(store) == 1
        assert store[0].definitions[0].name == "X"

    def test_input_1_layout(self, input_1):
        """Test start, length and end of the sample modules."""
        store = parse_source(input_1)
        layout = [(m.start_location, m.length, m.end_location) for m in store]
        assert layout == [(0, 5, 4), (5, 6, 10), (11, 2, 12), (13, 3, 15)]
        assert [m.index for m in store] == [0, 1, 2, 3]

    def test_contiguity(self, input_1):
        """Each module starts right after the previous one."""
        store = parse_source(input_1)
        assert store[0].start_location == 0
        for prev, nxt in zip(store, list(store)[1:]):
            assert nxt.start_location == prev.end_location + 1

    def test_zero_size_module(self):
        """An empty module does not shift the modules after it."""
        store = parse_source("0 0 1 I 1000  0 0 0  0 0 1 I 2000")
        assert [m.start_location for m in store] == [0, 1, 1]
        assert store[1].length == 0
        assert store[1].end_location == 0

    def test_parser_is_reusable(self, input_1):
        """One parser can parse several streams."""
        parser = ModuleParser()
        first = parser.parse(tokenize(input_1))
        second = parser.parse(tokenize(input_1))
        assert len(first) == len(second) == 4


# =============================================================================
# Error Tests
# =============================================================================

class TestMalformedInput:
    """Tokens that break the grammar abort the parse."""

    def test_non_numeric_count(self):
        """A count must be numeric."""
        with pytest.raises(MalformedInputError) as exc_info:
            parse_source("X")
        assert exc_info.value.token == "X"
        assert "invalid count" in str(exc_info.value)

    def test_non_numeric_location(self):
        """A definition location must be numeric."""
        with pytest.raises(MalformedInputError) as exc_info:
            parse_source("1 X ab 0 0")
        assert exc_info.value.token == "ab"

    def test_invalid_type(self):
        """Unknown type letters are rejected."""
        with pytest.raises(MalformedInputError) as exc_info:
            parse_source("0 0 1 Q 1000")
        assert exc_info.value.token == "Q"
        assert "I, A, R, E" in str(exc_info.value)

    @pytest.mark.parametrize("letter", ["i", "r", "e", "\u0131"])
    def test_type_is_case_sensitive(self, letter):
        """Only the capitals I, A, R, E name an instruction type."""
        with pytest.raises(MalformedInputError) as exc_info:
            parse_source(f"0 0 1 {letter} 1000")
        assert exc_info.value.token == letter

    def test_word_too_short(self):
        """A word needs an opcode and an address."""
        with pytest.raises(MalformedInputError) as exc_info:
            parse_source("0 0 1 R 5")
        assert "too short" in str(exc_info.value)

    def test_word_with_letters(self):
        """A word must be all digits."""
        with pytest.raises(MalformedInputError) as exc_info:
            parse_source("0 0 1 R 10a5")
        assert exc_info.value.token == "10a5"

    def test_truncated_instruction(self):
        """Input may not stop inside the instruction list."""
        with pytest.raises(MalformedInputError) as exc_info:
            parse_source("0 0 2 R 1000")
        assert "unexpected end of input" in str(exc_info.value)

    def test_truncated_definition(self):
        """Input may not stop inside a definition pair."""
        with pytest.raises(MalformedInputError):
            parse_source("1 X")

    def test_error_location_and_module(self):
        """Errors name the offending token's position and module."""
        source = "0 0 1 I 1000\n0 0 1 R 9x"
        with pytest.raises(MalformedInputError) as exc_info:
            parse_source(source, "prog.txt")
        error = exc_info.value
        assert error.module_index == 1
        assert error.location.line == 2
        assert error.location.column == 9
        assert str(error).startswith("prog.txt:2:9: error:")
        assert "(module 1)" in str(error)


class TestParsedAddressRange:
    """Addresses read from the input must fit the machine."""

    def test_address_too_large(self):
        """Test an address equal to the machine size."""
        with pytest.raises(AddressRangeError) as exc_info:
            parse_source("0 0 1 A 51000")
        assert exc_info.value.address == 1000
        assert exc_info.value.limit == 1000

    def test_leading_zeros_allowed(self):
        """Extra leading zeros in the address are accepted."""
        store = parse_source("0 0 1 A 50999")
        assert store[0].instructions[0].address == 999

    def test_smaller_machine(self):
        """Test address range on a smaller machine."""
        parser = ModuleParser(LinkerConfig(machine_size=10))
        with pytest.raises(AddressRangeError):
            parser.parse(tokenize("0 0 1 A 1050"))
