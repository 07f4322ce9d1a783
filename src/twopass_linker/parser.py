"""
Module Parser
=============

Rebuilds module structure from the flat token stream.

Grammar
-------
    Program      := Module*
    Module       := DefCount DefPair* UseCount UseSym* InstrCount InstrPair*
    DefPair      := Symbol Integer
    UseSym       := Symbol
    InstrPair    := TypeChar Word

A word such as "1005" is one opcode digit followed by the address digits:
opcode 1, address 5.

State Machine
-------------
The parser is an explicit state machine. A ParserState records the
current phase (definitions, uses or instructions), how many tokens of
that phase are still expected, and the first half of a pair that is
waiting for its second token. The role of the next token follows from
the state alone:

    remaining == 0                  -> COUNT for the current phase
    definitions, remaining even     -> DEFINITION_SYMBOL
    definitions, remaining odd      -> DEFINITION_LOCATION
    uses                            -> USE
    instructions, remaining even    -> INSTRUCTION_TYPE
    instructions, remaining odd     -> INSTRUCTION_WORD

A module ends exactly when the parser reads the next definitions count,
even if that count is zero. A zero count moves straight on to the next
phase without consuming another token.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, Optional
import logging
import string

from twopass_linker.config import LinkerConfig
from twopass_linker.errors import AddressRangeError, MalformedInputError
from twopass_linker.models import (
    Instruction,
    InstructionType,
    Module,
    ModuleStore,
    Symbol,
)
from twopass_linker.tokenizer import Token, Tokenizer

logger = logging.getLogger(__name__)


# =============================================================================
# Parser States
# =============================================================================

class Phase(Enum):
    """Sections of a module, in the order they appear."""
    DEFINITIONS = auto()
    USES = auto()
    INSTRUCTIONS = auto()

    def next(self) -> "Phase":
        """The phase that follows this one; instructions wrap to definitions."""
        if self is Phase.DEFINITIONS:
            return Phase.USES
        if self is Phase.USES:
            return Phase.INSTRUCTIONS
        return Phase.DEFINITIONS

    @property
    def tokens_per_item(self) -> int:
        """Definitions and instructions are pairs, uses are single tokens."""
        return 1 if self is Phase.USES else 2


class TokenRole(Enum):
    """What the next token means to the parser."""
    COUNT = auto()
    DEFINITION_SYMBOL = auto()
    DEFINITION_LOCATION = auto()
    USE = auto()
    INSTRUCTION_TYPE = auto()
    INSTRUCTION_WORD = auto()


@dataclass(frozen=True)
class ParserState:
    """
    Immutable parser state.

    Attributes:
        phase: Section of the module being read
        remaining: Tokens still expected in this phase (0 = awaiting count)
        pending: First token of an incomplete pair
    """
    phase: Phase = Phase.DEFINITIONS
    remaining: int = 0
    pending: Optional[Token] = None

    @property
    def role(self) -> TokenRole:
        if self.remaining == 0:
            return TokenRole.COUNT
        if self.phase is Phase.USES:
            return TokenRole.USE
        first_half = self.remaining % 2 == 0
        if self.phase is Phase.DEFINITIONS:
            return (TokenRole.DEFINITION_SYMBOL if first_half
                    else TokenRole.DEFINITION_LOCATION)
        return (TokenRole.INSTRUCTION_TYPE if first_half
                else TokenRole.INSTRUCTION_WORD)

    def expecting(self, count: int) -> "ParserState":
        """State after reading a count for the current phase."""
        if count == 0:
            return ParserState(self.phase.next())
        return ParserState(self.phase, count * self.phase.tokens_per_item)

    def consumed(self, pending: Optional[Token] = None) -> "ParserState":
        """State after reading one item token of the current phase."""
        remaining = self.remaining - 1
        if remaining == 0:
            return ParserState(self.phase.next())
        return ParserState(self.phase, remaining, pending)


# =============================================================================
# Parser Implementation
# =============================================================================

class ModuleParser:
    """
    Parses a token stream into a ModuleStore.

    The parser keeps no state between calls to parse(), so one instance
    can parse any number of programs.

    Usage:
        store = ModuleParser().parse(Tokenizer(text).tokenize())
    """

    def __init__(self, config: Optional[LinkerConfig] = None):
        self.config = config or LinkerConfig()

    def parse(self, tokens: Iterable[Token]) -> ModuleStore:
        """
        Parse tokens into modules.

        Args:
            tokens: Token stream, typically from Tokenizer.tokenize()

        Returns:
            ModuleStore with every module laid out contiguously

        Raises:
            MalformedInputError: If the tokens do not follow the grammar
            AddressRangeError: If an instruction address does not fit
        """
        store = ModuleStore()
        state = ParserState()
        module: Optional[Module] = None
        last_token: Optional[Token] = None

        for token in tokens:
            state, module = self._step(state, token, module, store)
            last_token = token

        if state.remaining:
            raise MalformedInputError(
                f"unexpected end of input while reading "
                f"{state.role.name.lower().replace('_', ' ')}",
                location=last_token.location if last_token else None,
                module_index=len(store),
                hint=f"{state.remaining} more token(s) expected",
            )

        if module is not None:
            self._finalize(module, store)

        logger.debug(f"Parsed {len(store)} module(s), {store.total_length} word(s)")
        return store

    def _step(
        self,
        state: ParserState,
        token: Token,
        module: Optional[Module],
        store: ModuleStore,
    ) -> tuple[ParserState, Optional[Module]]:
        """Consume one token and return the next state and current module."""
        role = state.role
        module_index = len(store)

        if role is TokenRole.COUNT:
            count = self._parse_number(token, "count", module_index)
            if state.phase is Phase.DEFINITIONS:
                # Re-entering the definitions phase always starts a module
                if module is not None:
                    self._finalize(module, store)
                    module_index = len(store)
                module = Module()
            logger.debug(
                f"Module {module_index}: {count} {state.phase.name.lower()}"
            )
            return state.expecting(count), module

        if role is TokenRole.DEFINITION_SYMBOL:
            return state.consumed(pending=token), module

        if role is TokenRole.DEFINITION_LOCATION:
            name_token = state.pending
            relative = self._parse_number(token, "definition location", module_index)
            module.add_definition(Symbol(
                name=name_token.text,
                relative_location=relative,
                location=name_token.location,
            ))
            return state.consumed(), module

        if role is TokenRole.USE:
            module.add_use(Symbol(name=token.text, location=token.location))
            return state.consumed(), module

        if role is TokenRole.INSTRUCTION_TYPE:
            self._parse_type(token, module_index)
            return state.consumed(pending=token), module

        # INSTRUCTION_WORD
        classification = self._parse_type(state.pending, module_index)
        opcode, address = self._parse_word(token, module_index, module.length)
        module.add_instruction(Instruction(
            classification=classification,
            opcode=opcode,
            address=address,
            location=token.location,
        ))
        return state.consumed(), module

    def _finalize(self, module: Module, store: ModuleStore) -> None:
        store.append(module)
        logger.debug(
            f"Module {module.index}: start={module.start_location} "
            f"length={module.length} end={module.end_location}"
        )

    # =========================================================================
    # Token Conversion
    # =========================================================================

    @staticmethod
    def _is_digits(text: str) -> bool:
        return bool(text) and all(char in string.digits for char in text)

    def _parse_number(self, token: Token, what: str, module_index: int) -> int:
        """Parse a non-negative decimal integer token."""
        if not self._is_digits(token.text):
            raise MalformedInputError(
                f"invalid {what}",
                token=token.text,
                location=token.location,
                module_index=module_index,
                hint="expected a non-negative integer",
            )
        return int(token.text)

    def _parse_type(self, token: Token, module_index: int) -> InstructionType:
        """Classify an instruction by the first character of its type token."""
        try:
            return InstructionType.from_char(token.text[0])
        except ValueError:
            raise MalformedInputError(
                "invalid instruction type",
                token=token.text,
                location=token.location,
                module_index=module_index,
                hint="expected one of I, A, R, E",
            ) from None

    def _parse_word(
        self, token: Token, module_index: int, instruction_index: int
    ) -> tuple[int, int]:
        """Split a word token into opcode digit and address."""
        text = token.text
        if len(text) < 2:
            raise MalformedInputError(
                "instruction word too short",
                token=text,
                location=token.location,
                module_index=module_index,
                hint="expected an opcode digit followed by address digits",
            )
        if not self._is_digits(text):
            raise MalformedInputError(
                "instruction word must be all digits",
                token=text,
                location=token.location,
                module_index=module_index,
            )

        opcode = int(text[0])
        address = int(text[1:])
        if address > self.config.max_address:
            raise AddressRangeError(
                address,
                self.config.machine_size,
                instruction_index=instruction_index,
                module_index=module_index,
                location=token.location,
            )
        return opcode, address


def parse_source(
    source: str,
    filename: str = "<input>",
    config: Optional[LinkerConfig] = None,
) -> ModuleStore:
    """Tokenize and parse source text in one call."""
    return ModuleParser(config).parse(Tokenizer(source, filename).tokenize())
